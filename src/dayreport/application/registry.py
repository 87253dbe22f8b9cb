from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import inject
from pydantic import ValidationError

from src.dayreport.application.aggregator import group_by_day
from src.dayreport.application.broadcaster import TaskEventBroadcaster
from src.dayreport.application.fetcher import SourceFetcher
from src.dayreport.application.quota import QuotaLedger
from src.dayreport.application.renderer import ArtifactRenderer
from src.dayreport.domain.events.task_event import TaskEvent
from src.dayreport.domain.exceptions import (
    ArtifactTooLargeError,
    InputValidationError,
    InvalidTransitionError,
    PipelineError,
    QuotaExceededError,
    TaskNotFoundError,
)
from src.dayreport.domain.models.task import Task
from src.dayreport.domain.models.task_request import TaskRequest
from src.dayreport.domain.models.task_state import TaskState
from src.dayreport.domain.repositories import ArtifactRepository

logger = logging.getLogger(__name__)

FETCH_PROGRESS_CEILING = 79
AGGREGATED_PROGRESS = 80
GENERATION_PROGRESS_SPAN = 15

_ALLOWED_TRANSITIONS: dict[TaskState, set[TaskState]] = {
    TaskState.PENDING: {TaskState.PROCESSING, TaskState.ERROR},
    TaskState.PROCESSING: {TaskState.PROCESSING, TaskState.COMPLETED, TaskState.ERROR},
    TaskState.COMPLETED: set(),
    TaskState.ERROR: set(),
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        cause = (error.get("ctx") or {}).get("error")
        message = str(cause) if cause is not None else error["msg"]
        field = ".".join(str(loc) for loc in error["loc"])
        parts.append(f"{field}: {message}" if field else message)
    return "; ".join(parts)


def parse_request(payload: TaskRequest | Mapping[str, Any]) -> TaskRequest:
    """Validate a submission payload, raising ``InputValidationError`` on bad input."""
    if isinstance(payload, TaskRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InputValidationError("Task request must be an object")
    try:
        return TaskRequest.model_validate(dict(payload))
    except ValidationError as exc:
        raise InputValidationError(_validation_message(exc)) from exc


def generation_progress(index: int, days_total: int) -> int:
    return AGGREGATED_PROGRESS + (index + 1) * GENERATION_PROGRESS_SPAN // days_total


class TaskRegistry:
    """Owns every task record and drives each one through its lifecycle.

    The registry is the only writer of ``Task`` objects. Each submitted task
    runs as an ``asyncio.Task`` tracked here, and whatever happens inside it
    ends in exactly one terminal transition.
    """

    def __init__(
        self,
        fetcher: SourceFetcher | None = None,
        ledger: QuotaLedger | None = None,
        renderer: ArtifactRenderer | None = None,
        artifacts: ArtifactRepository | None = None,
        broadcaster: TaskEventBroadcaster | None = None,
    ) -> None:
        self._fetcher = fetcher or inject.instance(SourceFetcher)
        self._ledger = ledger or inject.instance(QuotaLedger)
        self._renderer = renderer or inject.instance(ArtifactRenderer)
        self._artifacts = artifacts or inject.instance(ArtifactRepository)
        self._broadcaster = broadcaster or inject.instance(TaskEventBroadcaster)
        self._tasks: dict[str, Task] = {}
        self._handles: dict[str, asyncio.Task[None]] = {}

    async def submit(self, payload: TaskRequest | Mapping[str, Any]) -> Task:
        """Validate ``payload``, register a task and start processing it.

        Returns a snapshot of the freshly created task. Invalid payloads raise
        ``InputValidationError`` and leave no trace in the registry.
        """
        request = parse_request(payload)
        now = _utcnow()
        task = Task(id=uuid4().hex, request=request, created_at=now, updated_at=now)
        self._tasks[task.id] = task
        logger.info("Task submitted", extra={"task_id": task.id, "url": request.api_url})

        handle = asyncio.create_task(self._run(task), name=f"report-task-{task.id}")
        self._handles[task.id] = handle
        handle.add_done_callback(lambda _: self._handles.pop(task.id, None))
        return task.snapshot()

    def get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task.snapshot()

    def list_tasks(self) -> list[Task]:
        return [task.snapshot() for task in self._tasks.values()]

    async def wait(self, task_id: str) -> Task:
        """Wait until ``task_id`` reaches a terminal state and return it."""
        if task_id not in self._tasks:
            raise TaskNotFoundError(task_id)
        handle = self._handles.get(task_id)
        if handle is not None:
            await asyncio.shield(handle)
        return self.get(task_id)

    async def aclose(self) -> None:
        """Cancel tasks that are still running; each is marked as failed."""
        handles = list(self._handles.values())
        for handle in handles:
            handle.cancel()
        if handles:
            await asyncio.gather(*handles, return_exceptions=True)

    async def _run(self, task: Task) -> None:
        try:
            await self._transition(task, TaskState.PROCESSING, progress=0)
            await self._process(task)
        except asyncio.CancelledError:
            await self._fail(task, "Task cancelled before completion")
            raise
        except PipelineError as exc:
            logger.warning("Task failed", extra={"task_id": task.id, "error": str(exc)})
            await self._fail(task, str(exc))
        except Exception as exc:
            logger.exception("Task crashed", extra={"task_id": task.id})
            await self._fail(task, str(exc) or exc.__class__.__name__)

    async def _process(self, task: Task) -> None:
        async def on_page(page: int, total: int) -> None:
            task.record_count = total
            await self._advance(task, min(FETCH_PROGRESS_CEILING, page * 100 // 50))

        records = await self._fetcher.fetch_all(task.request, on_page=on_page)
        task.record_count = len(records)

        buckets = group_by_day(records)
        days = sorted(buckets)
        logger.info(
            "Records grouped by day",
            extra={"task_id": task.id, "records": len(records), "days": len(days)},
        )
        await self._advance(task, AGGREGATED_PROGRESS)

        task_dir = await self._artifacts.prepare_task_dir(task.id)
        for index, day in enumerate(days):
            await self._generate(task, day, buckets[day])
            await self._advance(task, generation_progress(index, len(days)))

        summary = (
            f"Generated {task.artifact_count} of {len(days)} daily report(s) "
            f"from {task.record_count} record(s)"
        )
        if task.skipped_days:
            summary += f"; skipped {', '.join(task.skipped_days)}"
        await self._transition(
            task,
            TaskState.COMPLETED,
            progress=100,
            result_dir=str(task_dir),
            result_summary=summary,
        )

    async def _generate(self, task: Task, day: str, records: list[Any]) -> None:
        file_name = f"{day}.{self._renderer.extension}"
        try:
            async with self._ledger.admission():
                payload = await asyncio.to_thread(self._renderer.render, day, records)
                size = self._ledger.size_check(len(payload))
                await self._artifacts.write(task.id, file_name, payload)
        except (QuotaExceededError, ArtifactTooLargeError) as exc:
            logger.warning(
                "Skipping day artifact",
                extra={"task_id": task.id, "day": day, "reason": str(exc)},
            )
            task.skipped_days.append(day)
            return
        task.artifacts.append(file_name)
        task.artifact_count = len(task.artifacts)
        logger.info(
            "Artifact generated",
            extra={
                "task_id": task.id,
                "file": file_name,
                "records": len(records),
                "size_mb": size.size_mb,
            },
        )

    async def _advance(self, task: Task, progress: int) -> None:
        if progress <= task.progress:
            return
        await self._transition(task, TaskState.PROCESSING, progress=progress)

    async def _fail(self, task: Task, message: str) -> None:
        if task.status.is_terminal:
            return
        await self._transition(task, TaskState.ERROR, error_message=message)

    async def _transition(self, task: Task, target: TaskState, **changes: Any) -> None:
        if target not in _ALLOWED_TRANSITIONS[task.status]:
            raise InvalidTransitionError(task.id, task.status.value, target.value)
        task.status = target
        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_at = _utcnow()

        await self._broadcaster.broadcast(TaskEvent.update(task))
        if target is TaskState.COMPLETED:
            logger.info("Task completed", extra={"task_id": task.id, "dir": task.result_dir})
            await self._broadcaster.broadcast(TaskEvent.completed(task))
        elif target is TaskState.ERROR:
            await self._broadcaster.broadcast(TaskEvent.error(task))
