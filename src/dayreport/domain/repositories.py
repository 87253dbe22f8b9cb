from __future__ import annotations

from pathlib import Path
from typing import Protocol

from src.dayreport.domain.models.quota import QuotaCounter


class QuotaRepository(Protocol):
    """Storage contract for the process-wide artifact counter."""

    async def load(self) -> QuotaCounter | None:
        """Return the persisted counter, or ``None`` when nothing usable is stored."""

    async def save(self, counter: QuotaCounter) -> None:
        """Persist ``counter``; raises ``PersistenceError`` on failure."""


class ArtifactRepository(Protocol):
    """Storage contract for rendered per-day artifacts."""

    @property
    def root(self) -> Path:
        """Directory that owns every task output."""

    async def prepare_task_dir(self, task_id: str) -> Path:
        """Create (if needed) and return the output directory for ``task_id``."""

    async def write(self, task_id: str, file_name: str, payload: bytes) -> Path:
        """Write ``payload`` into the task directory and return its path."""


class FileRevealer(Protocol):
    """Opens a location inside the data root in the user's file manager."""

    def reveal(self, path: str) -> Path:
        """Validate ``path`` against the data root, reveal it and return the resolved path."""
