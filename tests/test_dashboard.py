import json
from decimal import Decimal

import httpx
import pytest

from fiber_analytics.analysis.dashboard import NetworkDashboard, save_data
from fiber_analytics.api import FiberDashboardClient
from fiber_analytics.utils.config import Config

from .factories import ckb

NODES = [
    {"node_id": "a", "node_name": "alpha", "addresses": ["/dns4/a.hetzner.example/tcp/8228"],
     "country_or_region": "US", "city": "New York", "loc": "40.71,-74.00",
     "commit_timestamp": "2024-03-01T10:00:00Z"},
    {"node_id": "b", "node_name": "beta", "addresses": ["/ip4/203.0.113.5/tcp/8228"],
     "country_or_region": "DE", "city": "Berlin", "loc": "52.52,13.40",
     "commit_timestamp": "2024-03-02T10:00:00Z"},
]

CHANNELS = [
    {"channel_outpoint": "0x01", "node1": "a", "node2": "b", "capacity": ckb(10),
     "commit_timestamp": "2024-03-02T11:00:00Z"},
    {"channel_outpoint": "0x02", "node1": "a", "node2": "b", "capacity": ckb(4), "asset_name": "ckb",
     "commit_timestamp": "2024-03-03T11:00:00Z"},
]

ANALYSIS = {
    "total_nodes": "2",
    "assets": [
        {"name": "ckb", "total": str(14 * 10**8), "channel_len": "2", "max": str(10 * 10**8),
         "min": str(4 * 10**8), "avg": str(7 * 10**8), "median": str(7 * 10**8)},
    ],
}


def _handler(fail_channels_page=None):
    def handle(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        page = int(request.url.params.get("page", 0))
        if path in ("/nodes_hourly", "/nodes_nearly_monthly"):
            # Overlapping pages repeat records
            nodes = {0: NODES, 1: NODES[1:]}.get(page, [])
            return httpx.Response(200, json={"nodes": nodes})
        if path in ("/channels_hourly", "/channels_nearly_monthly"):
            if page == fail_channels_page:
                return httpx.Response(500)
            return httpx.Response(200, json={"channels": CHANNELS if page == 0 else []})
        if path == "/analysis_hourly":
            return httpx.Response(200, json=ANALYSIS)
        if path == "/analysis":
            return httpx.Response(200, json={"series": [
                {"name": "Nodes", "points": [["2024-03-01", 2]]},
                {"name": "Channels", "points": [["2024-03-01", 2]]},
                {"name": "Capacity", "points": [["2024-03-01", [hex(14 * 10**8), "0", "0", "0", "0"]]]},
            ]})
        return httpx.Response(404)
    return handle


def _config() -> Config:
    config = Config()
    config.analytics.page_size = 2
    return config


def _client(config, handler) -> FiberDashboardClient:
    return FiberDashboardClient.from_config(config, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_build_dashboard():
    config = _config()

    async with _client(config, _handler()) as client:
        data = await NetworkDashboard(client, config).build()

    assert not data.incomplete
    assert [n.node_id for n in data.nodes] == ["a", "b"]
    assert len(data.channels) == 2
    assert data.total_capacity == Decimal(14)
    assert sum(geo.total_capacity for geo in data.countries) == Decimal(14)
    assert data.kpi.total_nodes == 2
    assert data.kpi.total_capacity == Decimal(14)
    assert data.top_nodes[0].total_capacity == Decimal(14)
    assert [isp.isp for isp in data.isps] in (["Hetzner", "Other ISP"], ["Other ISP", "Hetzner"])


@pytest.mark.asyncio
async def test_partial_failure_is_reported():
    config = _config()
    config.analytics.page_size = 1

    async with _client(config, _handler(fail_channels_page=1)) as client:
        data = await NetworkDashboard(client, config).build()

    assert data.incomplete
    assert any(error.startswith("channels") for error in data.errors)
    assert len(data.channels) == 2


@pytest.mark.asyncio
async def test_fetch_kpi_for_one_asset():
    config = _config()

    async with _client(config, _handler()) as client:
        kpi = await NetworkDashboard(client, config).fetch_kpi("usdi")

    assert kpi.total_capacity == 0
    assert kpi.total_nodes == 2


@pytest.mark.asyncio
async def test_history_and_growth():
    config = _config()

    async with _client(config, _handler()) as client:
        service = NetworkDashboard(client, config)
        history = await service.fetch_history()
        growth = await service.fetch_growth("2024-03-01", "2024-03-31")

    assert history["capacity"][0].value == Decimal(14)
    assert history["channels"][0].value == 2
    assert [p.value for p in growth.nodes] == [1, 2]
    assert [(p.timestamp, p.value) for p in growth.capacity] == [
        ("2024-03-02", Decimal(10)), ("2024-03-03", Decimal(14)),
    ]
    assert growth.errors == []


@pytest.mark.asyncio
async def test_saved_dashboard_is_json(tmp_path):
    config = _config()

    async with _client(config, _handler()) as client:
        data = await NetworkDashboard(client, config).build()

    path = tmp_path / "dashboard.json"
    save_data(data.to_dict(), str(path))
    saved = json.loads(path.read_text())

    assert saved["network"] == "mainnet"
    assert saved["incomplete"] is False
    assert saved["total_capacity"] == "14"
    assert len(saved["nodes"]) == 2
