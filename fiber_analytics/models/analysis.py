"""Pre-aggregated analysis payloads served by the dashboard API"""

from typing import Optional, List, Any
from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.amounts import parse_amount
from ..utils.assets import NATIVE_ASSET

ASSET_STAT_FIELDS = ("max", "min", "avg", "median", "total", "channel_len")

# Legacy single-asset payload keys -> per-asset row keys
_LEGACY_FIELDS = {
    "max_capacity": "max",
    "min_capacity": "min",
    "avg_capacity": "avg",
    "median_capacity": "median",
    "total_capacity": "total",
    "channel_len": "channel_len",
}


def _decimal_string(value: Any) -> str:
    """Normalize an amount (int, decimal string or hex string) to a decimal string"""
    if value is None:
        return "0"
    if isinstance(value, str) and value.startswith("0x"):
        return str(parse_amount(value))
    return str(value)


class AssetAnalysis(BaseModel):
    """Per-asset capacity summary; amounts are base-unit decimal strings"""
    name: str
    max: str = "0"
    min: str = "0"
    avg: str = "0"
    median: str = "0"
    total: str = "0"
    channel_len: str = "0"

    @field_validator(*ASSET_STAT_FIELDS, mode="before")
    @classmethod
    def _as_decimal_string(cls, value):
        return _decimal_string(value)

    @classmethod
    def zero(cls, name: str) -> 'AssetAnalysis':
        return cls(name=name)


class ActiveAnalysis(BaseModel):
    """Network summary for the current hourly window"""
    total_nodes: str = "0"
    assets: List[AssetAnalysis] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data):
        # Bare list of per-asset rows
        if isinstance(data, list):
            return {"assets": data}

        # Legacy flat payload describing the native asset only
        if isinstance(data, dict) and "assets" not in data and "total_capacity" in data:
            row = {"name": NATIVE_ASSET}
            for legacy_key, key in _LEGACY_FIELDS.items():
                if legacy_key in data:
                    row[key] = data[legacy_key]
            return {"total_nodes": data.get("total_nodes", "0"), "assets": [row]}

        return data

    @field_validator("total_nodes", mode="before")
    @classmethod
    def _total_nodes_string(cls, value):
        return _decimal_string(value)


class AnalysisRequest(BaseModel):
    """Body of the history analysis request"""
    start: Optional[str] = None  # %Y-%m-%d
    end: Optional[str] = None
    range: Optional[str] = None  # 1M, 3M, 6M, 1Y, 2Y
    interval: Optional[str] = None
    fields: Optional[List[str]] = None


class HistorySeries(BaseModel):
    """Named series of [timestamp, value] points"""
    name: str
    points: List[List[Any]] = Field(default_factory=list)


class HistoryMeta(BaseModel):
    fields: List[str] = Field(default_factory=list)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    interval: Optional[str] = None
    range: Optional[str] = None


class HistoryAnalysis(BaseModel):
    """Historical range analysis response"""
    series: List[HistorySeries] = Field(default_factory=list)
    meta: Optional[HistoryMeta] = None

    def get_series(self, name: str) -> Optional[HistorySeries]:
        for series in self.series:
            if series.name.lower() == name.lower():
                return series
        return None
