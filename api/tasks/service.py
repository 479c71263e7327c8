"""
Task business logic.

Thin orchestration over the repository. The one piece of logic is `store`,
which assigns the id so the repository never invents one. Failures are logged,
given context, and re-raised with their original type.
"""

from __future__ import annotations

import logging

from core import ids
from core.errors import TaskError
from core.logs import Log

from .domain import Task, TaskEntity, TaskPatchSpec
from .repository import TaskRepository

DEFAULT_ID_LENGTH = 24

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, repository: TaskRepository, *, id_length: int = DEFAULT_ID_LENGTH) -> None:
        self._repo = repository
        self._id_length = id_length

    async def fetch(self, *, log: Log = logger) -> list[Task]:
        try:
            entities = await self._repo.fetch(log=log)
        except TaskError as exc:
            log.warning("%s", exc)
            raise exc.wrap("failed to fetch tasks") from exc

        return [entity.to_task() for entity in entities]

    async def fetch_by_id(self, task_id: str, *, log: Log = logger) -> Task:
        try:
            entity = await self._repo.fetch_by_id(task_id, log=log)
        except TaskError as exc:
            log.warning("%s", exc)
            raise exc.wrap(f"failed to fetch task by id: {task_id}") from exc

        return entity.to_task()

    async def store(self, name: str, *, log: Log = logger) -> Task:
        entity = TaskEntity(id=ids.must_generate_id(self._id_length), name=name)

        try:
            stored = await self._repo.store(entity, log=log)
        except TaskError as exc:
            log.warning("%s", exc)
            raise exc.wrap(f"failed to store task: {name}") from exc

        return stored.to_task()

    async def patch(self, spec: TaskPatchSpec, *, log: Log = logger) -> Task:
        try:
            patched = await self._repo.patch(spec, log=log)
        except TaskError as exc:
            log.warning("%s", exc)
            raise exc.wrap(f"failed to patch task: {spec.id}") from exc

        return patched.to_task()

    async def destroy_by_id(self, task_id: str, *, log: Log = logger) -> None:
        try:
            await self._repo.destroy_by_id(task_id, log=log)
        except TaskError as exc:
            log.warning("%s", exc)
            raise exc.wrap(f"failed to destroy task by id: {task_id}") from exc
