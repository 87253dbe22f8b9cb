from datetime import datetime

from src.dayreport.application.aggregator import group_by_day, resolve_instant

NOW = datetime(2024, 3, 10, 15, 30)


def _clock() -> datetime:
    return NOW


def test_group_by_day_is_a_stable_partition() -> None:
    records = [
        {"id": 1, "date": "2024-03-01T08:00:00"},
        {"id": 2, "date": "2024-03-02T09:00:00"},
        {"id": 3, "date": "2024-03-01T23:59:59"},
        {"id": 4, "date": "2024-03-02T00:00:01"},
        {"id": 5, "date": "2024-03-01T00:00:00"},
    ]

    buckets = group_by_day(records, clock=_clock)

    assert sum(len(items) for items in buckets.values()) == len(records)
    assert [r["id"] for r in buckets["2024-03-01"]] == [1, 3, 5]
    assert [r["id"] for r in buckets["2024-03-02"]] == [2, 4]


def test_records_without_timestamp_go_to_today() -> None:
    records = [{"id": 1}, {"id": 2, "createdAt": None}, "plain string", 42]

    buckets = group_by_day(records, clock=_clock)

    assert buckets == {"2024-03-10": records}


def test_field_priority_and_falsy_values_are_skipped() -> None:
    record = {"date": "", "createTime": "2024-01-02 10:00:00", "createdAt": "2024-05-05"}

    buckets = group_by_day([record], clock=_clock)

    assert list(buckets) == ["2024-01-02"]


def test_numeric_epoch_seconds_and_milliseconds() -> None:
    instant = datetime(2023, 7, 4, 12, 0)
    seconds = int(instant.timestamp())
    records = [
        {"id": "s", "timestamp": seconds},
        {"id": "ms", "timestamp": seconds * 1000},
        {"id": "str", "time": str(seconds * 1000)},
    ]

    buckets = group_by_day(records, clock=_clock)

    assert [r["id"] for r in buckets["2023-07-04"]] == ["s", "ms", "str"]


def test_unparseable_values_fall_back_to_now() -> None:
    assert resolve_instant("not a date", NOW) == NOW
    assert resolve_instant(True, NOW) == NOW
    assert resolve_instant({"nested": 1}, NOW) == NOW
    assert resolve_instant(float("inf"), NOW) == NOW


def test_common_string_formats() -> None:
    assert resolve_instant("2024/02/29", NOW).date().isoformat() == "2024-02-29"
    assert resolve_instant("2024/02/29 18:45:00", NOW).date().isoformat() == "2024-02-29"
    assert resolve_instant("2024-02-29", NOW).date().isoformat() == "2024-02-29"
