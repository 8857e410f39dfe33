"""Supported channel assets"""

from dataclasses import dataclass
from typing import List, Optional

NATIVE_ASSET = "ckb"


@dataclass(frozen=True)
class AssetConfig:
    """Display configuration for a channel asset"""
    value: str   # lowercase identifier as matched against API names
    label: str
    color: str
    unit: str


SUPPORTED_ASSETS: List[AssetConfig] = [
    AssetConfig(value="ckb", label="CKB", color="#00CC9B", unit="CKB"),
    AssetConfig(value="usdi", label="USDI", color="#7459E6", unit="USDI"),
]


def get_asset_config(asset_name: str) -> Optional[AssetConfig]:
    """Look up an asset by name (case-insensitive)"""
    normalized = (asset_name or "").strip().lower()
    for asset in SUPPORTED_ASSETS:
        if asset.value == normalized:
            return asset
    return None


def is_supported_asset(asset_name: str) -> bool:
    return get_asset_config(asset_name) is not None


def is_native_asset(asset_name: Optional[str]) -> bool:
    return (asset_name or "").strip().lower() == NATIVE_ASSET


def asset_unit(asset_name: Optional[str]) -> str:
    """Display unit for an asset, falling back to the upper-cased name"""
    config = get_asset_config(asset_name or NATIVE_ASSET)
    if config:
        return config.unit
    return (asset_name or "").upper()
