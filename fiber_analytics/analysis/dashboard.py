"""Network dashboard: fetch, join and aggregate everything one view needs"""

import asyncio
import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Dict, Any, Optional

from .aggregator import (
    GeoAggregate,
    CityAggregate,
    NodeLocation,
    IspRanking,
    NodeRanking,
    geographical_distribution,
    city_distribution,
    node_locations,
    isp_rankings,
    node_rankings,
    total_capacity,
)
from .combiner import KpiData, combine, to_kpi
from .dedup import unique_nodes, unique_channels
from .timeseries import (
    TimePoint,
    node_history_series,
    accumulate_channel_history,
    series_from_history,
    capacity_series_from_history,
)
from ..api.client import FiberDashboardClient
from ..api.pagination import CollectionResult
from ..models import Node, Channel, ActiveAnalysis, AnalysisRequest
from ..utils.config import Config

logger = logging.getLogger(__name__)


@dataclass
class DashboardData:
    """Everything shown on the network dashboard for one fetch"""
    network: str
    fetched_at: datetime
    nodes: List[Node] = field(default_factory=list)
    channels: List[Channel] = field(default_factory=list)
    kpi: Optional[KpiData] = None
    total_capacity: Decimal = Decimal(0)
    countries: List[GeoAggregate] = field(default_factory=list)
    cities: List[CityAggregate] = field(default_factory=list)
    locations: List[NodeLocation] = field(default_factory=list)
    isps: List[IspRanking] = field(default_factory=list)
    top_nodes: List[NodeRanking] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def incomplete(self) -> bool:
        """True when any collection ended early; figures are then lower bounds"""
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "fetched_at": self.fetched_at,
            "incomplete": self.incomplete,
            "errors": self.errors,
            "kpi": asdict(self.kpi) if self.kpi else None,
            "total_capacity": self.total_capacity,
            "countries": [asdict(c) for c in self.countries],
            "cities": [asdict(c) for c in self.cities],
            "locations": [asdict(loc) for loc in self.locations],
            "isps": [asdict(i) for i in self.isps],
            "top_nodes": [asdict(n) for n in self.top_nodes],
            "nodes": [n.model_dump(mode="json") for n in self.nodes],
            "channels": [c.model_dump(mode="json") for c in self.channels],
        }


@dataclass
class GrowthHistory:
    """Cumulative network growth series"""
    nodes: List[TimePoint] = field(default_factory=list)
    channels: List[TimePoint] = field(default_factory=list)
    capacity: List[TimePoint] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _describe_failure(label: str, result: CollectionResult) -> Optional[str]:
    if result.error is not None:
        return f"{label}: stopped after {result.pages_fetched} pages ({result.error})"
    if result.truncated:
        return f"{label}: page limit reached after {result.pages_fetched} pages"
    return None


class NetworkDashboard:
    """Builds dashboard views from the dashboard API"""

    def __init__(self, client: FiberDashboardClient, config: Optional[Config] = None):
        self.client = client
        self.config = config or Config()

    async def build(self) -> DashboardData:
        """
        Fetch active nodes, channels and the analysis summary concurrently,
        then deduplicate and aggregate

        A collection that fails part-way still contributes the records it
        gathered; the failure is recorded in DashboardData.errors.
        """
        logger.info("Starting dashboard data fetch...")

        nodes_result, channels_result, analysis = await asyncio.gather(
            self.client.fetch_all_active_nodes(),
            self.client.fetch_all_active_channels(),
            self.client.get_active_analysis(),
            return_exceptions=True,
        )

        data = DashboardData(network=self.client.network, fetched_at=datetime.now(timezone.utc))

        # Collectors report failures in their result; anything raised here is unexpected
        for label, result in (("nodes", nodes_result), ("channels", channels_result)):
            if isinstance(result, BaseException):
                raise result
            failure = _describe_failure(label, result)
            if failure:
                data.errors.append(failure)

        data.nodes = unique_nodes(nodes_result.records)
        data.channels = unique_channels(channels_result.records)
        logger.info(f"Unique nodes: {len(data.nodes)}, unique channels: {len(data.channels)}")

        if isinstance(analysis, Exception):
            logger.error(f"Error fetching active analysis: {analysis}")
            data.errors.append(f"analysis: {analysis}")
        else:
            data.kpi = self._kpi_from_analysis(analysis)

        self._aggregate(data)
        return data

    def _aggregate(self, data: DashboardData):
        analytics = self.config.analytics
        data.total_capacity = total_capacity(data.channels)
        data.countries = geographical_distribution(data.nodes, data.channels)
        data.cities = city_distribution(data.nodes, data.channels)
        data.locations = node_locations(data.nodes, data.channels)
        data.isps = isp_rankings(data.nodes, data.channels, top_n=analytics.isp_top_n)
        data.top_nodes = node_rankings(data.nodes, data.channels, limit=analytics.top_nodes)

    @staticmethod
    def _kpi_from_analysis(analysis: ActiveAnalysis, asset: Optional[str] = None) -> KpiData:
        row = combine(analysis.assets, asset_filter=asset)
        return to_kpi(row, analysis.total_nodes, asset)

    async def fetch_kpi(self, asset: Optional[str] = None) -> KpiData:
        """Headline figures for all supported assets, or for one asset"""
        analysis = await self.client.get_active_analysis()
        return self._kpi_from_analysis(analysis, asset)

    async def fetch_growth(self, start: Optional[str] = None, end: Optional[str] = None) -> GrowthHistory:
        """Cumulative node, channel and capacity growth from the historical listings"""
        nodes_result, channels_result = await asyncio.gather(
            self.client.fetch_all_historical_nodes(start, end),
            self.client.fetch_all_historical_channels(start, end),
        )

        history = GrowthHistory()
        for label, result in (("historical nodes", nodes_result), ("historical channels", channels_result)):
            failure = _describe_failure(label, result)
            if failure:
                history.errors.append(failure)

        history.nodes = node_history_series(nodes_result.records)
        history.channels, history.capacity = accumulate_channel_history(channels_result.records)
        return history

    async def fetch_history(
        self,
        time_range: Optional[str] = None,
        interval: Optional[str] = None,
        aggregation: str = "sum",
    ) -> Dict[str, List[TimePoint]]:
        """Server-side history series for nodes, channels and capacity"""
        analytics = self.config.analytics
        request = AnalysisRequest(
            range=time_range or analytics.history_range,
            interval=interval or analytics.history_interval,
            fields=["nodes", "channels", "capacity"],
        )
        response = await self.client.get_history_analysis(request)
        return {
            "nodes": series_from_history(response, "Nodes"),
            "channels": series_from_history(response, "Channels"),
            "capacity": capacity_series_from_history(response, aggregation),
        }


def save_data(data: Dict[str, Any], filename: str = "fiber_dashboard.json"):
    """Save fetched data to JSON file"""
    with open(filename, 'w') as f:
        json.dump(data, f, indent=2, default=str)
    logger.info(f"Data saved to {filename}")
