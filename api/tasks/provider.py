"""
Builds the task dependency chain: repository -> service -> transport.

Call `wire` once per process; the returned transport and everything it holds
are stateless and shared by all requests.
"""

from __future__ import annotations

from core.db import Database

from .repository import TaskRepository
from .router import TaskTransport
from .service import TaskService


def provide_repository(database: Database) -> TaskRepository:
    return TaskRepository(database)


def provide_service(repository: TaskRepository) -> TaskService:
    return TaskService(repository)


def provide_transport(service: TaskService) -> TaskTransport:
    return TaskTransport(service)


def wire(database: Database) -> TaskTransport:
    repository = provide_repository(database)
    service = provide_service(repository)
    return provide_transport(service)
