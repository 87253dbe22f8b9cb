from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

from src.dayreport.domain.validation import resolve_inside_root

logger = logging.getLogger(__name__)


class SystemFileRevealer:
    """Shows an artifact or task directory in the platform file manager."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def reveal(self, path: str) -> Path:
        target = resolve_inside_root(path, self._root)
        directory = target if target.is_dir() else target.parent
        if sys.platform == "win32":
            os.startfile(directory)  # type: ignore[attr-defined]
        elif sys.platform == "darwin":
            args = ["open", str(directory)] if target.is_dir() else ["open", "-R", str(target)]
            subprocess.Popen(args)
        else:
            subprocess.Popen(["xdg-open", str(directory)])
        logger.info("Revealed path", extra={"path": str(target)})
        return target
