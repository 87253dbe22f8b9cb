from __future__ import annotations

import logging

from src.dayreport.application.broadcaster import Subscriber
from src.dayreport.domain.events.task_event import TaskEvent

logger = logging.getLogger(__name__)


class NotificationBus:
    """Fan-out of task events to every registered subscriber.

    Broadcast only: no acknowledgements, no buffering and no replay. A
    subscriber whose channel is closed is skipped, and one that fails while
    sending is removed so the producing task never sees the error.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        try:
            self._subscribers.remove(subscriber)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def broadcast(self, event: TaskEvent) -> None:
        for subscriber in list(self._subscribers):
            if not subscriber.is_open:
                continue
            try:
                await subscriber.send(event)
            except Exception:
                logger.warning(
                    "Dropping subscriber after failed send",
                    extra={"task_id": event.task_id, "kind": event.kind.value},
                    exc_info=True,
                )
                self.unsubscribe(subscriber)
