"""Daily cumulative growth series"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple, TypeVar

from .dedup import canonical_key, unique_by
from .aggregator import channel_capacity
from ..models import Channel, Node, HistoryAnalysis
from ..utils.amounts import AmountDecodeError, parse_amount, to_display
from ..utils.assets import NATIVE_ASSET

logger = logging.getLogger(__name__)

T = TypeVar("T")

CAPACITY_AGGREGATIONS = ("sum", "avg", "min", "max", "median")


@dataclass
class TimePoint:
    """One point of a series; timestamp is a YYYY-MM-DD day or the server's timestamp"""
    timestamp: str
    value: Any


def utc_day(value: datetime) -> str:
    """Calendar day in UTC; naive datetimes are taken to be UTC already"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d")


def _bucket(
    records: Iterable[T],
    date_of: Callable[[T], Optional[datetime]],
    key: Callable[[T], Hashable],
) -> Dict[str, List[T]]:
    """Deduplicate, then group records by UTC day"""
    days: Dict[str, List[T]] = {}
    skipped = 0
    for record in unique_by(records, key):
        moment = date_of(record)
        if moment is None:
            skipped += 1
            continue
        days.setdefault(utc_day(moment), []).append(record)

    if skipped:
        logger.debug(f"Skipped {skipped} records without a timestamp")
    return days


def bucket_and_accumulate(
    records: Iterable[T],
    date_of: Callable[[T], Optional[datetime]],
    key: Callable[[T], Hashable] = canonical_key,
) -> List[TimePoint]:
    """
    Cumulative count of unique records per UTC day

    Records are deduplicated by key before counting. Days are sorted
    ascending and each point carries the running total up to that day,
    so the series never decreases.
    """
    days = _bucket(records, date_of, key)

    series = []
    running = 0
    for day in sorted(days):
        running += len(days[day])
        series.append(TimePoint(timestamp=day, value=running))
    return series


def node_history_series(nodes: Iterable[Node]) -> List[TimePoint]:
    """Cumulative unique nodes by first commit day"""
    return bucket_and_accumulate(nodes, lambda node: node.commit_timestamp)


def accumulate_channel_history(channels: Iterable[Channel]) -> Tuple[List[TimePoint], List[TimePoint]]:
    """
    Cumulative channel count and capacity by commit day

    Returns:
        (channel count series, capacity series in display units)
    """
    days = _bucket(channels, lambda channel: channel.commit_timestamp, canonical_key)

    counts = []
    capacities = []
    running_count = 0
    running_capacity = Decimal(0)
    for day in sorted(days):
        running_count += len(days[day])
        running_capacity += sum((channel_capacity(c) for c in days[day]), Decimal(0))
        counts.append(TimePoint(timestamp=day, value=running_count))
        capacities.append(TimePoint(timestamp=day, value=running_capacity))

    return counts, capacities


def series_from_history(response: HistoryAnalysis, name: str) -> List[TimePoint]:
    """Points of a named count series (e.g. Nodes, Channels)"""
    series = response.get_series(name)
    if series is None:
        logger.warning(f"Series {name} missing from history analysis")
        return []
    return [TimePoint(timestamp=str(point[0]), value=point[1]) for point in series.points if len(point) >= 2]


def capacity_series_from_history(
    response: HistoryAnalysis, aggregation: str = "sum", asset_name: str = NATIVE_ASSET
) -> List[TimePoint]:
    """
    Capacity series from the history analysis endpoint

    Each Capacity point carries [sum, avg, min, max, median]; the chosen
    aggregation is decoded and scaled for display. Undecodable values
    are reported as zero.
    """
    if aggregation not in CAPACITY_AGGREGATIONS:
        raise ValueError(f"Unknown capacity aggregation: {aggregation}")
    position = CAPACITY_AGGREGATIONS.index(aggregation)

    series = response.get_series("Capacity")
    if series is None:
        logger.warning("Series Capacity missing from history analysis")
        return []

    points = []
    for point in series.points:
        if len(point) < 2:
            continue
        timestamp, values = point[0], point[1]
        value = values[position] if isinstance(values, list) and len(values) > position else values
        points.append(TimePoint(timestamp=str(timestamp), value=_decode_history_value(value, asset_name)))
    return points


def _decode_history_value(value: Any, asset_name: str) -> Decimal:
    try:
        if isinstance(value, str) and value.startswith("0x"):
            amount = parse_amount(value)
        else:
            amount = int(Decimal(str(value)))
    except (AmountDecodeError, ArithmeticError, ValueError) as e:
        logger.warning(f"Error parsing history capacity {value!r}: {e}")
        return Decimal(0)
    return to_display(amount, asset_name)


def merge_series(**series: List[TimePoint]) -> List[Dict[str, Any]]:
    """Join several series on timestamp into rows for tabular output"""
    rows: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for name, points in series.items():
        for point in points:
            rows.setdefault(point.timestamp, {"timestamp": point.timestamp})[name] = point.value
    return [rows[timestamp] for timestamp in sorted(rows)]
