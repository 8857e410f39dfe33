"""Fiber Dashboard API Client"""

import asyncio
import logging
from typing import List, Dict, Any, Optional, Type, TypeVar
import httpx
from pydantic import BaseModel, ValidationError

from .errors import TransportError, ResponseValidationError, ApplicationError
from .pagination import (
    CollectionResult,
    CursorPagination,
    HeuristicPagination,
    PaginationStrategy,
    collect_all,
    make_strategy,
)
from ..models import (
    Node,
    Channel,
    ChannelState,
    NodePage,
    ChannelPage,
    ChannelStatePage,
    ChannelStateInfo,
    ActiveAnalysis,
    AnalysisRequest,
    HistoryAnalysis,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class FiberDashboardClient:
    """Client for the Fiber network dashboard API"""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        network: str = "mainnet",
        timeout: float = 30.0,
        max_concurrent: int = 10,
        page_size: int = 500,
        listing_strategy: Optional[PaginationStrategy] = None,
        max_pages: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.network = network
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.page_size = page_size
        self.listing_strategy = listing_strategy or HeuristicPagination(page_size)
        self.max_pages = max_pages
        self.client: Optional[httpx.AsyncClient] = None
        self._transport = transport
        self._semaphore: Optional[asyncio.Semaphore] = None

    @classmethod
    def from_config(cls, config, **kwargs) -> 'FiberDashboardClient':
        """Build a client from a Config instance"""
        return cls(
            base_url=config.api.base_url,
            network=config.api.network,
            timeout=config.api.timeout,
            max_concurrent=config.api.max_concurrent,
            page_size=config.analytics.page_size,
            listing_strategy=make_strategy(
                config.analytics.listing_pagination, config.analytics.page_size
            ),
            max_pages=config.analytics.max_pages or None,
            **kwargs,
        )

    async def __aenter__(self):
        # Use connection pooling with limits
        limits = httpx.Limits(max_connections=50, max_keepalive_connections=20)
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=limits,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make a network-tagged request and return the decoded JSON payload"""
        if not self.client:
            raise RuntimeError("Client not initialized. Use async with statement.")

        url = f"{self.base_url}{endpoint}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        query["net"] = self.network
        if body is not None:
            body = {**body, "net": self.network}

        logger.debug(f"{method} {url} {query}")

        try:
            response = await self.client.request(method, url, params=query, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"API request failed: {e}")
            raise TransportError(
                f"API request failed: {e.response.status_code} {e.response.reason_phrase}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"API request failed: {e}")
            raise TransportError(f"API request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ResponseValidationError(f"Response from {endpoint} is not JSON") from e

        if isinstance(payload, dict) and payload.get("success") is False:
            logger.error(f"API returned error response for {endpoint}: {payload}")
            raise ApplicationError(payload.get("message") or "API returned error")

        return payload

    @staticmethod
    def _parse(model: Type[M], payload: Any, endpoint: str) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise ResponseValidationError(f"Invalid response from {endpoint}: {e}") from e

    async def _get_model(self, model: Type[M], endpoint: str, **params) -> M:
        return self._parse(model, await self._request("GET", endpoint, params), endpoint)

    # -- paged listings -------------------------------------------------

    async def get_active_nodes_page(self, page: int = 0) -> NodePage:
        """Get one page of nodes seen in the last hour"""
        return await self._get_model(
            NodePage, "/nodes_hourly", page=page, page_size=self.page_size
        )

    async def get_historical_nodes_page(
        self, page: int = 0, start: Optional[str] = None, end: Optional[str] = None
    ) -> NodePage:
        """Get one page of nodes seen over the near-monthly window"""
        return await self._get_model(
            NodePage, "/nodes_nearly_monthly",
            page=page, page_size=self.page_size, start=start, end=end,
        )

    async def get_active_channels_page(self, page: int = 0) -> ChannelPage:
        """Get one page of channels seen in the last hour"""
        return await self._get_model(
            ChannelPage, "/channels_hourly", page=page, page_size=self.page_size
        )

    async def get_historical_channels_page(
        self, page: int = 0, start: Optional[str] = None, end: Optional[str] = None
    ) -> ChannelPage:
        """Get one page of channels seen over the near-monthly window"""
        return await self._get_model(
            ChannelPage, "/channels_nearly_monthly",
            page=page, page_size=self.page_size, start=start, end=end,
        )

    async def get_channels_by_state_page(
        self,
        state: ChannelState,
        page: int = 0,
        asset_name: Optional[str] = None,
        fuzz_name: Optional[str] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
    ) -> ChannelStatePage:
        """Get one page of channels in a lifecycle state"""
        return await self._get_model(
            ChannelStatePage, "/group_channel_by_state",
            state=ChannelState(state).value, page=page,
            asset_name=asset_name, fuzz_name=fuzz_name, sort_by=sort_by, order=order,
        )

    # -- full collections -----------------------------------------------

    async def fetch_all_active_nodes(self) -> CollectionResult:
        return await collect_all(
            self.get_active_nodes_page, self.listing_strategy,
            label="active nodes", max_pages=self.max_pages,
        )

    async def fetch_all_active_channels(self) -> CollectionResult:
        return await collect_all(
            self.get_active_channels_page, self.listing_strategy,
            label="active channels", max_pages=self.max_pages,
        )

    async def fetch_all_historical_nodes(
        self, start: Optional[str] = None, end: Optional[str] = None
    ) -> CollectionResult:
        async def fetch(page: int) -> NodePage:
            return await self.get_historical_nodes_page(page, start, end)

        return await collect_all(
            fetch, self.listing_strategy, label="historical nodes", max_pages=self.max_pages
        )

    async def fetch_all_historical_channels(
        self, start: Optional[str] = None, end: Optional[str] = None
    ) -> CollectionResult:
        async def fetch(page: int) -> ChannelPage:
            return await self.get_historical_channels_page(page, start, end)

        return await collect_all(
            fetch, self.listing_strategy, label="historical channels", max_pages=self.max_pages
        )

    async def fetch_all_channels_by_state(
        self, state: ChannelState, asset_name: Optional[str] = None
    ) -> CollectionResult:
        """Collect every channel in a state; this endpoint pages by cursor"""
        async def fetch(page: int) -> ChannelStatePage:
            return await self.get_channels_by_state_page(state, page, asset_name=asset_name)

        return await collect_all(
            fetch, CursorPagination(),
            label=f"{ChannelState(state).value} channels", max_pages=self.max_pages,
        )

    # -- single records -------------------------------------------------

    async def get_node_info(self, node_id: str) -> Node:
        """Get a single node by id"""
        payload = await self._request("GET", "/node_info", {"node_id": node_id})
        # The API wraps the record as {"node_info": {...}}
        if isinstance(payload, dict) and "node_info" in payload:
            payload = payload["node_info"]
        return self._parse(Node, payload, "/node_info")

    async def get_channel_info(self, channel_outpoint: str) -> Channel:
        """Get a single channel by funding outpoint"""
        payload = await self._request(
            "GET", "/channel_info", {"channel_outpoint": channel_outpoint}
        )
        if isinstance(payload, dict) and "channel_info" in payload:
            payload = payload["channel_info"]
        return self._parse(Channel, payload, "/channel_info")

    async def get_channel_state(self, channel_outpoint: str) -> ChannelStateInfo:
        """Get the current state and transaction history of a channel"""
        payload = await self._request(
            "GET", "/channel_state", {"channel_outpoint": channel_outpoint}
        )
        if isinstance(payload, dict) and "channel_outpoint" not in payload:
            payload = {**payload, "channel_outpoint": channel_outpoint}
        return self._parse(ChannelStateInfo, payload, "/channel_state")

    async def get_nodes_info(self, node_ids: List[str]) -> List[Node]:
        """Look up several nodes concurrently, skipping failures"""
        async def fetch_limited(node_id: str) -> Node:
            async with self._semaphore:
                return await self.get_node_info(node_id)

        results = await asyncio.gather(
            *(fetch_limited(node_id) for node_id in node_ids), return_exceptions=True
        )

        nodes = []
        for node_id, result in zip(node_ids, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to fetch node {node_id[:10]}...: {result}")
            else:
                nodes.append(result)
        return nodes

    # -- pre-aggregated analytics ---------------------------------------

    async def get_active_analysis(self) -> ActiveAnalysis:
        """Get per-asset capacity statistics for the current window"""
        return await self._get_model(ActiveAnalysis, "/analysis_hourly")

    async def get_history_analysis(
        self, request: Optional[AnalysisRequest] = None
    ) -> HistoryAnalysis:
        """Get named time series for a historical range"""
        body = (request or AnalysisRequest()).model_dump(exclude_none=True)
        payload = await self._request("POST", "/analysis", body=body)
        return self._parse(HistoryAnalysis, payload, "/analysis")

    async def get_capacity_distribution(self) -> Any:
        """Get the server-side channel capacity histogram"""
        return await self._request("GET", "/channel_capacity_distribution")

    async def get_channel_count_by_state(self) -> Any:
        return await self._request("GET", "/channel_count_by_state")

    async def get_channel_count_by_asset(self) -> Any:
        return await self._request("GET", "/channel_count_by_asset")

    async def get_node_udt_infos(self, node_id: str) -> List[Dict[str, Any]]:
        """Get the UDT (user-defined token) configs a node accepts"""
        return await self._request("GET", "/node_udt_infos", {"node_id": node_id})

    async def get_nodes_by_udt(self, udt_script: Dict[str, str]) -> List[str]:
        """Get ids of nodes accepting a UDT script"""
        payload = await self._request("POST", "/nodes_by_udt", body={"udt": udt_script})
        if isinstance(payload, dict):
            return payload.get("nodes") or []
        return payload or []
