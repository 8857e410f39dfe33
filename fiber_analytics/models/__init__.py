"""Validated API records"""

from .network import (
    Node,
    Channel,
    ChannelState,
    NodePage,
    ChannelPage,
    BasicChannelInfo,
    ChannelStatePage,
    ChannelStateInfo,
)
from .analysis import (
    AssetAnalysis,
    ActiveAnalysis,
    AnalysisRequest,
    HistorySeries,
    HistoryAnalysis,
)

__all__ = [
    'Node',
    'Channel',
    'ChannelState',
    'NodePage',
    'ChannelPage',
    'BasicChannelInfo',
    'ChannelStatePage',
    'ChannelStateInfo',
    'AssetAnalysis',
    'ActiveAnalysis',
    'AnalysisRequest',
    'HistorySeries',
    'HistoryAnalysis',
]
