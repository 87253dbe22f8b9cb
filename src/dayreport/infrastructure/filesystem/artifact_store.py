from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from src.dayreport.domain.exceptions import PersistenceError
from src.dayreport.domain.validation import resolve_inside_root

logger = logging.getLogger(__name__)


class LocalArtifactStore:
    """Writes artifacts to ``<root>/task_<id>/<file>``."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def task_dir(self, task_id: str) -> Path:
        return resolve_inside_root(f"task_{task_id}", self.ensure_root())

    async def prepare_task_dir(self, task_id: str) -> Path:
        def _mkdir() -> Path:
            path = self.task_dir(task_id)
            path.mkdir(parents=True, exist_ok=True)
            return path

        try:
            return await asyncio.to_thread(_mkdir)
        except OSError as exc:
            raise PersistenceError(f"Could not create output directory: {exc}") from exc

    async def write(self, task_id: str, file_name: str, payload: bytes) -> Path:
        def _write() -> Path:
            target = resolve_inside_root(Path(f"task_{task_id}") / file_name, self.ensure_root())
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
            return target

        try:
            path = await asyncio.to_thread(_write)
        except OSError as exc:
            raise PersistenceError(f"Could not write {file_name}: {exc}") from exc
        logger.debug("Artifact written", extra={"path": str(path), "bytes": len(payload)})
        return path
