"""
Storage and domain representations of a task.

Each layer builds its own value from the one below:
row -> TaskEntity (repository) -> Task (service) -> TaskResponse (transport).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_epoch_ms(value: datetime) -> int:
    return (_as_utc(value) - EPOCH) // timedelta(milliseconds=1)


@dataclass(frozen=True)
class Task:
    id: str
    name: str
    created_at: datetime
    last_modified_at: datetime | None
    is_active: bool

    @property
    def was_modified(self) -> bool:
        return self.last_modified_at is not None


@dataclass(frozen=True)
class TaskEntity:
    """
    Row of the `tasks` table. `last_modified_at` is NULL until the first patch.
    """

    id: str
    name: str
    created_at: datetime | None = None
    last_modified_at: datetime | None = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "TaskEntity":
        return cls(
            id=str(row["id"]),
            name=str(row["name"]),
            created_at=_as_utc(row["created_at"]),
            last_modified_at=_as_utc(row.get("last_modified_at")),
            is_active=bool(row["is_active"]),
        )

    def to_task(self) -> Task:
        if self.created_at is None:
            raise ValueError(f"task {self.id} has no created_at; was it read back from storage?")
        return Task(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            last_modified_at=self.last_modified_at,
            is_active=self.is_active,
        )


@dataclass(frozen=True)
class TaskPatchSpec:
    """
    Target id plus optional updates; `None` leaves the column untouched.
    """

    id: str
    name: str | None = None
    is_active: bool | None = None

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.is_active is None
