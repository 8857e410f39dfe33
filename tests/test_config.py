import json

import pytest

from fiber_analytics.utils.config import Config

ENV_VARS = [
    "FIBER_API_URL",
    "FIBER_NETWORK",
    "FIBER_API_TIMEOUT",
    "FIBER_PAGE_SIZE",
    "FIBER_PAGINATION",
    "FIBER_MAX_PAGES",
    "FIBER_VERBOSE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config()

    assert config.api.base_url == "http://localhost:8080"
    assert config.api.network == "mainnet"
    assert config.analytics.page_size == 500
    assert config.analytics.listing_pagination == "heuristic"
    assert config.verbose is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FIBER_API_URL", "https://dashboard.example")
    monkeypatch.setenv("FIBER_NETWORK", "TESTNET")
    monkeypatch.setenv("FIBER_PAGE_SIZE", "100")
    monkeypatch.setenv("FIBER_PAGINATION", "cursor")
    monkeypatch.setenv("FIBER_MAX_PAGES", "0")
    monkeypatch.setenv("FIBER_VERBOSE", "yes")

    config = Config()

    assert config.api.base_url == "https://dashboard.example"
    assert config.api.network == "testnet"
    assert config.analytics.page_size == 100
    assert config.analytics.listing_pagination == "cursor"
    assert config.analytics.max_pages == 0
    assert config.verbose is True


def test_file_overrides_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("FIBER_NETWORK", "testnet")
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "api": {"network": "mainnet", "timeout": 5, "unknown": 1},
        "analytics": {"isp_top_n": 3},
        "verbose": True,
    }))

    config = Config.load(str(path))

    assert config.api.network == "mainnet"
    assert config.api.timeout == 5
    assert config.analytics.isp_top_n == 3
    assert config.verbose is True
    assert not hasattr(config.api, "unknown")


def test_save_and_reload(tmp_path):
    config = Config()
    config.analytics.top_nodes = 7
    path = tmp_path / "nested" / "config.json"

    config.save_to_file(str(path))

    assert Config.load(str(path)).to_dict() == config.to_dict()


def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("FIBER_NETWORK", "regtest")
    with pytest.raises(ValueError):
        Config()

    monkeypatch.setenv("FIBER_NETWORK", "mainnet")
    monkeypatch.setenv("FIBER_PAGINATION", "offset")
    with pytest.raises(ValueError):
        Config()


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        Config("/nonexistent/fiber.json")
