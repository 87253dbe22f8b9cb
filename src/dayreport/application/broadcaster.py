from __future__ import annotations

from typing import Protocol

from src.dayreport.domain.events.task_event import TaskEvent


class TaskEventBroadcaster(Protocol):
    async def broadcast(self, event: TaskEvent) -> None:
        """Deliver a task lifecycle event to every interested listener."""


class Subscriber(Protocol):
    """One listener attached to the notification bus."""

    @property
    def is_open(self) -> bool:
        """Whether the underlying channel can currently accept messages."""

    async def send(self, event: TaskEvent) -> None:
        """Deliver ``event``; may raise if the channel dropped mid-send."""
