from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import ValidationError

from src.dayreport.domain.exceptions import PersistenceError
from src.dayreport.domain.models.quota import QuotaCounter

logger = logging.getLogger(__name__)


class JsonQuotaStore:
    """Keeps the daily artifact counter in a small JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> QuotaCounter | None:
        if not self._path.exists():
            return None
        try:
            return QuotaCounter.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError):
            logger.warning("Ignoring unreadable quota file", extra={"path": str(self._path)})
            return None

    def _write(self, counter: QuotaCounter) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(counter.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(self._path)

    async def load(self) -> QuotaCounter | None:
        return await asyncio.to_thread(self._read)

    async def save(self, counter: QuotaCounter) -> None:
        try:
            await asyncio.to_thread(self._write, counter)
        except OSError as exc:
            raise PersistenceError(f"Could not save quota counter: {exc}") from exc
