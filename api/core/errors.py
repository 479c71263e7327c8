"""
Error taxonomy shared by the repository, service and transport layers.

Only the transport turns these into HTTP statuses; lower layers raise and
re-raise with more context.
"""

from __future__ import annotations


class TaskError(RuntimeError):
    # None: the failing operation decides the status.
    status_code: int | None = None

    def wrap(self, context: str) -> "TaskError":
        """
        Return an error of the same type whose message carries `context`.
        """
        return type(self)(f"{self}: {context}")


class ValidationError(TaskError):
    status_code = 400


class NotFoundError(TaskError):
    status_code = 404


class InvalidPathError(TaskError):
    status_code = 404


class StorageError(TaskError):
    pass
