from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date

from src.dayreport.domain.exceptions import ArtifactTooLargeError, QuotaExceededError
from src.dayreport.domain.models.quota import ArtifactSize, QuotaCounter
from src.dayreport.domain.repositories import QuotaRepository

logger = logging.getLogger(__name__)


class QuotaLedger:
    """Admission control for artifact creation, shared by every task in the process.

    ``try_admit`` and ``commit`` are individually available, but callers that
    produce artifacts should go through ``admission()``, which holds a lock
    across admit, the guarded work and commit so concurrent tasks cannot push
    the count past the daily limit.
    """

    def __init__(
        self,
        store: QuotaRepository,
        daily_limit: int,
        max_artifact_bytes: int,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._daily_limit = daily_limit
        self._max_artifact_bytes = max_artifact_bytes
        self._today = today
        self._lock = asyncio.Lock()

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    async def _current(self) -> QuotaCounter:
        today = self._today()
        stored = await self._store.load()
        if stored is None or stored.date != today:
            counter = QuotaCounter(date=today, count=0)
            await self._store.save(counter)
            return counter
        return stored

    async def try_admit(self) -> bool:
        counter = await self._current()
        if counter.count >= self._daily_limit:
            logger.warning(
                "Daily artifact limit reached",
                extra={"count": counter.count, "limit": self._daily_limit},
            )
            return False
        return True

    async def commit(self) -> int:
        stored = await self._store.load()
        today = self._today()
        counter = (stored or QuotaCounter(date=today)).rolled_over(today)
        counter = counter.model_copy(update={"count": counter.count + 1})
        await self._store.save(counter)
        logger.info(
            "Artifact counted",
            extra={"count": counter.count, "limit": self._daily_limit},
        )
        return counter.count

    async def remaining(self) -> int:
        counter = await self._current()
        return max(self._daily_limit - counter.count, 0)

    def size_check(self, byte_length: int) -> ArtifactSize:
        if byte_length > self._max_artifact_bytes:
            raise ArtifactTooLargeError(byte_length, self._max_artifact_bytes)
        return ArtifactSize(
            size_bytes=byte_length,
            size_mb=round(byte_length / (1024 * 1024), 2),
        )

    @asynccontextmanager
    async def admission(self) -> AsyncIterator[None]:
        """Run the enclosed block as one admitted artifact.

        Raises ``QuotaExceededError`` before the block runs when the budget is
        spent. The slot is committed only if the block finishes without error.
        """
        async with self._lock:
            if not await self.try_admit():
                raise QuotaExceededError(self._daily_limit)
            yield
            await self.commit()
