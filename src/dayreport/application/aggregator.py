"""Group fetched records by the local calendar day they belong to."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

TIMESTAMP_FIELDS = (
    "date",
    "createTime",
    "create_time",
    "createdAt",
    "created_at",
    "time",
    "timestamp",
    "dateTime",
    "datetime",
)

# Epoch values above this are taken to be milliseconds rather than seconds.
_MILLIS_THRESHOLD = 100_000_000_000

_STRING_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%d %b %Y",
    "%b %d %Y",
    "%a, %d %b %Y %H:%M:%S %Z",
)

DayBuckets = dict[str, list[Any]]


def _pick_timestamp(record: Any) -> Any:
    if not isinstance(record, Mapping):
        return None
    for field in TIMESTAMP_FIELDS:
        value = record.get(field)
        if value:
            return value
    return None


def _from_epoch(value: float) -> datetime | None:
    seconds = value / 1000 if abs(value) >= _MILLIS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(seconds)
    except (OverflowError, OSError, ValueError):
        return None


def _from_string(value: str) -> datetime | None:
    text = value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _STRING_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return _from_epoch(int(text))
    except ValueError:
        return None


def resolve_instant(value: Any, now: datetime) -> datetime:
    """Best-effort conversion of a raw timestamp value to a local datetime."""
    parsed: datetime | None = None
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, (int, float)):
        parsed = _from_epoch(value)
    elif isinstance(value, str):
        parsed = _from_string(value)
    if parsed is None:
        return now
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed


def day_key(record: Any, now: datetime) -> str:
    return resolve_instant(_pick_timestamp(record), now).strftime("%Y-%m-%d")


def group_by_day(
    records: Iterable[Any], clock: Callable[[], datetime] = datetime.now
) -> DayBuckets:
    """Partition ``records`` into day buckets.

    Records keep their relative order inside a bucket and none are dropped;
    records without a usable timestamp land in today's bucket.
    """
    now = clock()
    buckets: DayBuckets = {}
    for record in records:
        buckets.setdefault(day_key(record, now), []).append(record)
    return buckets
