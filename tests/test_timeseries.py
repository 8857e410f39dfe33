from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fiber_analytics.analysis.timeseries import (
    accumulate_channel_history,
    bucket_and_accumulate,
    capacity_series_from_history,
    merge_series,
    node_history_series,
    series_from_history,
    utc_day,
)
from fiber_analytics.models import HistoryAnalysis

from .factories import make_node, make_channel, ckb


def _at(day: int, hour: int = 12) -> datetime:
    return datetime(2024, 3, day, hour, tzinfo=timezone.utc)


def test_daily_running_total():
    nodes = [
        make_node("a", commit_timestamp=_at(2)),
        make_node("b", commit_timestamp=_at(1)),
        make_node("c", commit_timestamp=_at(2, 3)),
        make_node("d", commit_timestamp=_at(5)),
    ]

    series = node_history_series(nodes)

    assert [(p.timestamp, p.value) for p in series] == [
        ("2024-03-01", 1),
        ("2024-03-02", 3),
        ("2024-03-05", 4),
    ]


def test_duplicates_are_counted_once():
    nodes = [
        make_node("a", commit_timestamp=_at(1)),
        make_node("a", commit_timestamp=_at(3)),
        make_node("b", commit_timestamp=_at(3)),
    ]

    series = bucket_and_accumulate(nodes, lambda n: n.commit_timestamp)

    assert [(p.timestamp, p.value) for p in series] == [("2024-03-01", 1), ("2024-03-03", 2)]


def test_series_never_decreases():
    nodes = [make_node(str(i), commit_timestamp=_at(1 + i % 7, i % 24)) for i in range(50)]

    values = [p.value for p in node_history_series(nodes)]

    assert values == sorted(values)
    assert values[-1] == 50


def test_days_are_utc():
    west = timezone(timedelta(hours=-2))
    assert utc_day(datetime(2024, 1, 1, 23, 30, tzinfo=west)) == "2024-01-02"
    # Naive timestamps are already UTC
    assert utc_day(datetime(2024, 1, 1, 23, 30)) == "2024-01-01"


def test_records_without_timestamp_are_skipped():
    nodes = [make_node("a", commit_timestamp=_at(1)), make_node("b")]

    series = node_history_series(nodes)

    assert [(p.timestamp, p.value) for p in series] == [("2024-03-01", 1)]


def test_channel_history_counts_and_capacity():
    channels = [
        make_channel("0x01", "a", "b", ckb(10), commit_timestamp=_at(1)),
        make_channel("0x02", "a", "c", ckb(5), commit_timestamp=_at(1)),
        make_channel("0x03", "b", "c", ckb(2), commit_timestamp=_at(4)),
        make_channel("0x01", "a", "b", ckb(10), commit_timestamp=_at(4)),
    ]

    counts, capacity = accumulate_channel_history(channels)

    assert [(p.timestamp, p.value) for p in counts] == [("2024-03-01", 2), ("2024-03-04", 3)]
    assert [(p.timestamp, p.value) for p in capacity] == [("2024-03-01", Decimal(15)), ("2024-03-04", Decimal(17))]


def _history():
    return HistoryAnalysis.model_validate({
        "series": [
            {
                "name": "Capacity",
                "points": [
                    ["2024-03-01", [hex(10**8), "0x1", "0x0", hex(3 * 10**8), "250000000"]],
                    ["2024-03-02", [hex(2 * 10**8), "0x1", "0x0", hex(4 * 10**8), "0xnothex"]],
                ],
            },
            {"name": "Channels", "points": [["2024-03-01", 4], ["2024-03-02", 6]]},
        ],
        "meta": {"fields": ["capacity", "channels"], "interval": "day", "range": "1M"},
    })


def test_series_from_history():
    history = _history()

    channels = series_from_history(history, "channels")

    assert [(p.timestamp, p.value) for p in channels] == [("2024-03-01", 4), ("2024-03-02", 6)]
    assert series_from_history(history, "Nodes") == []


def test_capacity_series_picks_aggregation():
    history = _history()

    assert [p.value for p in capacity_series_from_history(history)] == [Decimal(1), Decimal(2)]
    assert [p.value for p in capacity_series_from_history(history, "max")] == [Decimal(3), Decimal(4)]
    assert capacity_series_from_history(history, "avg")[0].value == Decimal("0.00000001")


def test_capacity_series_tolerates_bad_values():
    median = capacity_series_from_history(_history(), "median")

    assert median[0].value == Decimal("2.5")
    assert median[1].value == Decimal(0)


def test_capacity_series_rejects_unknown_aggregation():
    with pytest.raises(ValueError):
        capacity_series_from_history(_history(), "p99")


def test_merge_series():
    counts, capacity = accumulate_channel_history([
        make_channel("0x01", "a", "b", ckb(1), commit_timestamp=_at(1)),
    ])

    rows = merge_series(channels=counts, capacity=capacity)

    assert rows == [{"timestamp": "2024-03-01", "channels": 1, "capacity": Decimal(1)}]
