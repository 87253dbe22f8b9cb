from __future__ import annotations

import json
from datetime import date
from typing import Any

import httpx

from src.dayreport.application.broadcaster import Subscriber
from src.dayreport.application.fetcher import SourceFetcher
from src.dayreport.domain.events.task_event import EventKind, TaskEvent
from src.dayreport.domain.models.quota import QuotaCounter
from src.dayreport.domain.repositories import QuotaRepository

API_URL = "https://api.example.test/records"
TODAY = date(2024, 3, 10)


class InMemoryQuotaStore(QuotaRepository):
    """Quota repository replacement that keeps the counter in memory."""

    def __init__(self, counter: QuotaCounter | None = None) -> None:
        self.counter = counter
        self.saved: list[QuotaCounter] = []

    async def load(self) -> QuotaCounter | None:
        return self.counter

    async def save(self, counter: QuotaCounter) -> None:
        self.counter = counter
        self.saved.append(counter)


class JsonRenderer:
    """Deterministic renderer writing the day's records as a JSON array."""

    extension = "json"

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    def render(self, day: str, records: list[Any]) -> bytes:
        self.calls.append((day, len(records)))
        return json.dumps(records, sort_keys=True).encode("utf-8")


class RecordingSubscriber(Subscriber):
    def __init__(self, open_: bool = True) -> None:
        self.events: list[TaskEvent] = []
        self._open = open_

    @property
    def is_open(self) -> bool:
        return self._open

    async def send(self, event: TaskEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[EventKind]:
        return [event.kind for event in self.events]


class FakeEndpoint:
    """httpx handler serving canned pages keyed by page number.

    A page value may be a JSON body, an int status code, or an exception
    instance to raise.
    """

    def __init__(self, pages: dict[int, Any]) -> None:
        self.pages = pages
        self.requests: list[httpx.Request] = []

    def page_of(self, request: httpx.Request) -> int:
        if request.method == "GET":
            return int(request.url.params["page"])
        return int(json.loads(request.content)["page"])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.pages.get(self.page_of(request), [])
        if isinstance(body, Exception):
            raise body
        if isinstance(body, int):
            return httpx.Response(body, json={"error": "boom"})
        return httpx.Response(200, json=body)


def make_records(count: int, day: str = "2024-03-05", start: int = 0) -> list[dict[str, Any]]:
    return [
        {"id": start + idx, "createdAt": f"{day}T10:00:00", "value": f"row-{start + idx}"}
        for idx in range(count)
    ]


def make_fetcher(endpoint: Any, **kwargs: Any) -> SourceFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
    kwargs.setdefault("pause_seconds", 0)
    return SourceFetcher(client, **kwargs)
