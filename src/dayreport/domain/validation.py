"""Guards for caller-supplied URLs and filesystem paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from src.dayreport.domain.exceptions import InputValidationError

ALLOWED_SCHEMES = frozenset({"http", "https"})


def validate_api_url(url: Any) -> str:
    """Return ``url`` unchanged if it is an absolute http(s) URL, else raise.

    Only an allow-list of schemes is accepted so that ``file:``, ``ftp:``,
    ``data:`` and similar endpoints can never be reached from a task request.
    """
    if not isinstance(url, str) or not url.strip():
        raise InputValidationError("API URL is required and must be a string")
    url = url.strip()
    try:
        parts = urlsplit(url)
        # Accessing the port validates it (raises ValueError when out of range).
        parts.port
    except ValueError as exc:
        raise InputValidationError("Invalid URL format") from exc
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InputValidationError("Only HTTP and HTTPS protocols are allowed")
    if not parts.hostname:
        raise InputValidationError("Invalid URL format")
    return url


def resolve_inside_root(candidate: Any, root: str | os.PathLike[str]) -> Path:
    """Resolve ``candidate`` and make sure it stays strictly inside ``root``.

    Relative candidates are interpreted relative to ``root``. Any ``..``
    segment is rejected outright, and the resolved path (symlinks included)
    must be a descendant of the resolved root.
    """
    if not isinstance(candidate, (str, os.PathLike)) or not os.fspath(candidate).strip():
        raise InputValidationError("File path is required and must be a string")
    raw = Path(os.fspath(candidate))
    if ".." in raw.parts:
        raise InputValidationError("Path traversal is not allowed")

    base = Path(root).resolve()
    target = raw if raw.is_absolute() else base / raw
    resolved = target.resolve()
    if resolved == base or base not in resolved.parents:
        raise InputValidationError("Path must be inside the data directory")
    return resolved
