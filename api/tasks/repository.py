"""
Task persistence (raw SQL).

Every query is bounded by `config.query_timeout_s()`. Driver failures are
wrapped into `StorageError`; lookups that match nothing raise `NotFoundError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import asyncpg

from core import config
from core.db import Database, rows_affected
from core.errors import NotFoundError, StorageError, ValidationError
from core.logs import Log

from .domain import TaskEntity, TaskPatchSpec

logger = logging.getLogger(__name__)

TASK_COLUMNS = "id, name, created_at, last_modified_at, is_active"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tasks (
  id TEXT PRIMARY KEY,
  name TEXT UNIQUE NOT NULL,
  created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
  last_modified_at TIMESTAMPTZ NULL,
  is_active BOOLEAN NOT NULL DEFAULT TRUE
)
"""

QUERY_FETCH = f"""
SELECT {TASK_COLUMNS}
FROM tasks
ORDER BY created_at ASC
"""

QUERY_FETCH_BY_ID = f"""
SELECT {TASK_COLUMNS}
FROM tasks
WHERE id = $1
LIMIT 1
"""

QUERY_STORE = f"""
INSERT INTO tasks (id, name)
VALUES ($1, $2)
RETURNING {TASK_COLUMNS}
"""

QUERY_DESTROY = """
DELETE FROM tasks
WHERE id = $1
"""

# Driver-level failures surfaced as StorageError.
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, asyncio.TimeoutError, OSError)


def build_patch_query(spec: TaskPatchSpec) -> tuple[str, list[Any]]:
    """
    Build the UPDATE statement for `spec` and its positional arguments.

    `last_modified_at` is always refreshed. Optional fields follow in a fixed
    order (name, then is_active); the id is always the last argument.
    """
    clauses = ["last_modified_at = now()"]
    args: list[Any] = []

    if spec.name is not None:
        args.append(spec.name)
        clauses.append(f"name = ${len(args)}")

    if spec.is_active is not None:
        args.append(spec.is_active)
        clauses.append(f"is_active = ${len(args)}")

    args.append(spec.id)
    sql = (
        "UPDATE tasks\n"
        f"SET {', '.join(clauses)}\n"
        f"WHERE id = ${len(args)}\n"
        f"RETURNING {TASK_COLUMNS}"
    )
    return sql, args


async def migrate(database: Database, *, timeout: float | None = None) -> None:
    """
    Create the `tasks` table if it does not exist yet.
    """
    await database.execute(SCHEMA_SQL, timeout=timeout or config.query_timeout_s())


class TaskRepository:
    def __init__(self, database: Database, *, timeout: float | None = None) -> None:
        self._db = database
        self._timeout = timeout or config.query_timeout_s()

    async def fetch(self, *, log: Log = logger) -> list[TaskEntity]:
        try:
            rows = await self._db.fetch_all(QUERY_FETCH, timeout=self._timeout)
        except _DRIVER_ERRORS as exc:
            log.error("fetch tasks failed: %r", exc)
            raise StorageError(f"{exc!r}: failed to fetch tasks") from exc

        return [TaskEntity.from_row(row) for row in rows]

    async def fetch_by_id(
        self,
        task_id: str,
        *,
        log: Log = logger,
    ) -> TaskEntity:
        try:
            row = await self._db.fetch_one(QUERY_FETCH_BY_ID, task_id, timeout=self._timeout)
        except _DRIVER_ERRORS as exc:
            log.error("fetch task %s failed: %r", task_id, exc)
            raise StorageError(f"{exc!r}: failed to fetch task by id: {task_id}") from exc

        if row is None:
            log.info("task with id: %s not found", task_id)
            raise NotFoundError(f"task with id: {task_id} not found")
        return TaskEntity.from_row(row)

    async def store(
        self,
        entity: TaskEntity,
        *,
        log: Log = logger,
    ) -> TaskEntity:
        try:
            row = await self._db.fetch_one(QUERY_STORE, entity.id, entity.name, timeout=self._timeout)
        except asyncpg.UniqueViolationError as exc:
            log.info("task name already taken: %s", entity.name)
            raise StorageError(f"task name already taken: {entity.name}") from exc
        except _DRIVER_ERRORS as exc:
            log.error("store task %s failed: %r", entity.name, exc)
            raise StorageError(f"{exc!r}: failed to store task: {entity.name}") from exc

        if row is None:
            raise StorageError(f"failed to store task: {entity.name}")
        return TaskEntity.from_row(row)

    async def patch(
        self,
        spec: TaskPatchSpec,
        *,
        log: Log = logger,
    ) -> TaskEntity:
        if spec.is_empty:
            raise ValidationError("no fields to patch")

        sql, args = build_patch_query(spec)
        log.debug("constructed query: %s with args: %s", sql, args)

        try:
            row = await self._db.fetch_one(sql, *args, timeout=self._timeout)
        except asyncpg.UniqueViolationError as exc:
            log.info("task name already taken: %s", spec.name)
            raise StorageError(f"task name already taken: {spec.name}") from exc
        except _DRIVER_ERRORS as exc:
            log.error("patch task %s failed: %r", spec.id, exc)
            raise StorageError(f"{exc!r}: failed to patch task: {spec.id}") from exc

        if row is None:
            log.info("task with id: %s not found", spec.id)
            raise NotFoundError(f"task with id: {spec.id} not found")
        return TaskEntity.from_row(row)

    async def destroy_by_id(
        self,
        task_id: str,
        *,
        log: Log = logger,
    ) -> None:
        try:
            status = await self._db.execute(QUERY_DESTROY, task_id, timeout=self._timeout)
        except _DRIVER_ERRORS as exc:
            log.error("destroy task %s failed: %r", task_id, exc)
            raise StorageError(f"{exc!r}: failed to destroy task by id: {task_id}") from exc

        if rows_affected(status) == 0:
            log.info("task with id: %s not found", task_id)
            raise NotFoundError(f"task with id: {task_id} not found")
