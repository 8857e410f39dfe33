"""Deduplication, aggregation, combination and time series over network records"""

from .dedup import canonical_key, unique_by, unique_nodes, unique_channels
from .aggregator import (
    geographical_distribution,
    city_distribution,
    node_locations,
    isp_rankings,
    node_rankings,
    filter_channels_by_valid_nodes,
    group_channels_by_pair,
    total_capacity,
)
from .combiner import KpiData, combine, to_kpi
from .timeseries import TimePoint, bucket_and_accumulate, accumulate_channel_history
from .dashboard import DashboardData, NetworkDashboard

__all__ = [
    'canonical_key',
    'unique_by',
    'unique_nodes',
    'unique_channels',
    'geographical_distribution',
    'city_distribution',
    'node_locations',
    'isp_rankings',
    'node_rankings',
    'filter_channels_by_valid_nodes',
    'group_channels_by_pair',
    'total_capacity',
    'KpiData',
    'combine',
    'to_kpi',
    'TimePoint',
    'bucket_and_accumulate',
    'accumulate_channel_history',
    'DashboardData',
    'NetworkDashboard',
]
