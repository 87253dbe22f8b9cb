from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from src.dayreport.application.notifications import NotificationBus
from src.dayreport.application.quota import QuotaLedger
from src.dayreport.application.registry import TaskRegistry
from src.dayreport.domain.models.quota import QuotaCounter
from src.dayreport.infrastructure.filesystem import LocalArtifactStore

from .fakes import TODAY, InMemoryQuotaStore, JsonRenderer, RecordingSubscriber, make_fetcher


@dataclass
class Pipeline:
    registry: TaskRegistry
    bus: NotificationBus
    subscriber: RecordingSubscriber
    quota_store: InMemoryQuotaStore
    ledger: QuotaLedger
    artifacts: LocalArtifactStore
    renderer: JsonRenderer

    @property
    def root(self) -> Path:
        return self.artifacts.root


@pytest.fixture
def build_pipeline(tmp_path: Path):
    """Factory wiring a TaskRegistry to fakes rooted in ``tmp_path``."""

    def _build(
        endpoint: Any,
        *,
        counter: QuotaCounter | None = None,
        daily_limit: int = 120,
        max_artifact_bytes: int = 200 * 1024 * 1024,
        renderer: Any = None,
        artifacts: Any = None,
    ) -> Pipeline:
        quota_store = InMemoryQuotaStore(counter)
        ledger = QuotaLedger(
            quota_store,
            daily_limit=daily_limit,
            max_artifact_bytes=max_artifact_bytes,
            today=lambda: TODAY,
        )
        bus = NotificationBus()
        subscriber = RecordingSubscriber()
        bus.subscribe(subscriber)
        store = LocalArtifactStore(tmp_path / "dataZip")
        renderer = renderer or JsonRenderer()
        registry = TaskRegistry(
            fetcher=make_fetcher(endpoint),
            ledger=ledger,
            renderer=renderer,
            artifacts=artifacts or store,
            broadcaster=bus,
        )
        return Pipeline(registry, bus, subscriber, quota_store, ledger, store, renderer)

    return _build
