"""Combine per-asset capacity summaries into one network-wide row"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence

from ..models import AssetAnalysis
from ..utils.amounts import to_display
from ..utils.assets import is_supported_asset

logger = logging.getLogger(__name__)

# Unit tag for rows summed across assets
MIXED_ASSETS = "mixed"


@dataclass
class KpiData:
    """Headline network figures in display units"""
    asset: str
    total_capacity: Decimal
    total_nodes: int
    total_channels: int
    average_channel_capacity: Decimal
    max_channel_capacity: Decimal
    min_channel_capacity: Decimal
    median_channel_capacity: Decimal


def _as_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        # Tolerate "123.0" style values
        return int(Decimal(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount in analysis row: {value!r}") from e


def approximate_median(medians: Sequence[int]) -> int:
    """
    Unweighted mean of per-asset medians

    Per-asset rows do not carry the underlying distribution, so the true
    median of the union cannot be recovered. This is only an approximation.
    """
    if not medians:
        return 0
    return sum(medians) // len(medians)


def select_rows(rows: Sequence[AssetAnalysis], asset_filter: Optional[str] = None) -> List[AssetAnalysis]:
    """Rows for supported assets, optionally narrowed to one asset"""
    selected = [row for row in rows if is_supported_asset(row.name)]
    if asset_filter:
        wanted = asset_filter.strip().lower()
        selected = [row for row in selected if row.name.lower() == wanted]
    return selected


def combine(rows: Sequence[AssetAnalysis], asset_filter: Optional[str] = None) -> AssetAnalysis:
    """
    Merge per-asset rows into a single summary

    Totals and channel counts are summed, max and min taken across rows,
    the average is weighted by channel count and the median is
    approximated (see approximate_median).

    Args:
        rows: Per-asset summaries from the analysis endpoint
        asset_filter: Restrict to this asset (case-insensitive)

    Returns:
        The combined row; an all-zero row when nothing matches
    """
    selected = select_rows(rows, asset_filter)

    if not selected:
        return AssetAnalysis.zero(asset_filter or "all")
    if len(selected) == 1:
        return selected[0]

    totals = [_as_int(row.total) for row in selected]
    lengths = [_as_int(row.channel_len) for row in selected]
    averages = [_as_int(row.avg) for row in selected]

    channel_len = sum(lengths)
    weighted = sum(avg * length for avg, length in zip(averages, lengths))
    avg = weighted // channel_len if channel_len else 0

    combined = AssetAnalysis(
        name=asset_filter or "all",
        total=str(sum(totals)),
        channel_len=str(channel_len),
        max=str(max(_as_int(row.max) for row in selected)),
        min=str(min(_as_int(row.min) for row in selected)),
        avg=str(avg),
        median=str(approximate_median([_as_int(row.median) for row in selected])),
    )
    logger.debug(f"Combined {len(selected)} asset rows: {combined}")
    return combined


def to_kpi(row: AssetAnalysis, total_nodes, asset: Optional[str] = None) -> KpiData:
    """Scale a combined row into display-unit KPIs

    The unit follows ``asset`` when given, else the row's own name. A row
    summed across several assets has no common unit and stays in base units.
    """
    unit_asset = (asset or row.name or "").strip().lower()
    if not is_supported_asset(unit_asset):
        unit_asset = MIXED_ASSETS
    return KpiData(
        asset=unit_asset,
        total_capacity=to_display(_as_int(row.total), unit_asset),
        total_nodes=_as_int(str(total_nodes)),
        total_channels=_as_int(row.channel_len),
        average_channel_capacity=to_display(_as_int(row.avg), unit_asset),
        max_channel_capacity=to_display(_as_int(row.max), unit_asset),
        min_channel_capacity=to_display(_as_int(row.min), unit_asset),
        median_channel_capacity=to_display(_as_int(row.median), unit_asset),
    )
