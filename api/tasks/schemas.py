"""
Task API schemas (request/response models).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .domain import Task, TaskPatchSpec, to_epoch_ms


class TaskStoreRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=500)


class TaskPatchRequest(BaseModel):
    # Omitted and null both mean "leave unchanged".
    name: str | None = Field(default=None, min_length=1, max_length=500)
    is_active: bool | None = None

    def to_spec(self, task_id: str) -> TaskPatchSpec:
        return TaskPatchSpec(id=task_id, name=self.name, is_active=self.is_active)


class TaskResponse(BaseModel):
    id: str
    name: str
    created_at: int
    last_modified_at: int | None = None
    is_active: bool

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            name=task.name,
            created_at=to_epoch_ms(task.created_at),
            last_modified_at=to_epoch_ms(task.last_modified_at) if task.was_modified else None,
            is_active=task.is_active,
        )

    def to_wire(self) -> dict[str, Any]:
        """
        JSON body; `last_modified_at` is dropped for never-modified tasks.
        """
        body = self.model_dump()
        if body["last_modified_at"] is None:
            del body["last_modified_at"]
        return body


class ErrorResponse(BaseModel):
    error: str
