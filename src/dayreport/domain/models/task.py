from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.dayreport.domain.models.task_request import TaskRequest
from src.dayreport.domain.models.task_state import TaskState


class Task(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="Unique task identifier.")
    status: TaskState = Field(default=TaskState.PENDING, description="Lifecycle state.")
    progress: int = Field(default=0, ge=0, le=100, description="Completion percentage.")
    request: TaskRequest = Field(description="Snapshot of the submitted request.")
    created_at: datetime = Field(description="When the task was submitted.")
    updated_at: datetime = Field(description="When the task last changed.")
    record_count: int = Field(default=0, description="Records fetched from the endpoint.")
    artifact_count: int = Field(default=0, description="Artifacts written so far.")
    artifacts: list[str] = Field(
        default_factory=list, description="File names of the written artifacts."
    )
    skipped_days: list[str] = Field(
        default_factory=list, description="Day keys whose artifact was not produced."
    )
    result_dir: str | None = Field(
        default=None, description="Output directory, set once completed."
    )
    result_summary: str | None = Field(
        default=None, description="Human-readable outcome, set once completed."
    )
    error_message: str | None = Field(
        default=None, description="Failure reason, set once errored."
    )

    def snapshot(self) -> Task:
        """Detached copy safe to hand to other components."""
        return self.model_copy(deep=True)

    def to_wire(self) -> dict:
        # Request headers may carry credentials and never leave the process.
        return self.model_dump(mode="json", by_alias=True, exclude={"request": {"headers"}})
