from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.dayreport.domain.models.task import Task


class EventKind(str, Enum):
    TASK_UPDATE = "task-update"
    TASK_COMPLETED = "task-completed"
    ERROR = "error"


class TaskEvent(BaseModel):
    """A lifecycle notification; built once and never mutated."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: uuid4().hex)
    kind: EventKind
    task: Task
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def task_id(self) -> str:
        return self.task.id

    @classmethod
    def update(cls, task: Task) -> TaskEvent:
        return cls(kind=EventKind.TASK_UPDATE, task=task.snapshot())

    @classmethod
    def completed(cls, task: Task) -> TaskEvent:
        return cls(kind=EventKind.TASK_COMPLETED, task=task.snapshot())

    @classmethod
    def error(cls, task: Task) -> TaskEvent:
        return cls(kind=EventKind.ERROR, task=task.snapshot())

    def to_wire(self) -> dict[str, object]:
        return {"kind": self.kind.value, "task": self.task.to_wire()}
