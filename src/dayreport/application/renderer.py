from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class ArtifactRenderer(Protocol):
    """Turns one day's records into the bytes of a tabular report."""

    @property
    def extension(self) -> str:
        """File extension (without the dot) of the produced artifact."""

    def render(self, day: str, records: Sequence[Any]) -> bytes:
        """Render ``records`` for ``day``; identical input must give identical output."""


def table_columns(records: Sequence[Any]) -> list[str]:
    """Column order comes from the first record's keys."""
    if records and isinstance(records[0], Mapping) and records[0]:
        return [str(key) for key in records[0].keys()]
    return ["value"]


def cell_text(record: Any, column: str) -> str:
    if isinstance(record, Mapping):
        value = record.get(column)
    else:
        value = record if column == "value" else None
    return "" if value is None else str(value)
