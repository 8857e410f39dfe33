"""Node and channel models based on the dashboard API structure"""

from decimal import Decimal
from datetime import datetime
from enum import Enum
from typing import Optional, List, Any, Union
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator

from ..utils.amounts import parse_amount, to_display
from ..utils.assets import NATIVE_ASSET


class Node(BaseModel):
    """A node as announced on the network gossip"""
    model_config = ConfigDict(populate_by_name=True)

    node_id: str
    node_name: str = ""
    addresses: List[str] = Field(default_factory=list)
    commit_timestamp: Optional[datetime] = None
    announce_timestamp: Optional[int] = None
    chain_hash: Optional[str] = None
    auto_accept_min_ckb_funding_amount: Optional[Union[int, str]] = None

    # Geolocation resolved upstream from the node's addresses
    country_or_region: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("country_or_region", "country")
    )
    city: Optional[str] = None
    region: Optional[str] = None
    loc: Optional[str] = None

    @field_validator("addresses", mode="before")
    @classmethod
    def _addresses_default(cls, value):
        return value or []

    @property
    def first_address(self) -> Optional[str]:
        return self.addresses[0] if self.addresses else None


class Channel(BaseModel):
    """A funded channel between two nodes"""
    model_config = ConfigDict(populate_by_name=True)

    channel_outpoint: str
    node1: str
    node2: str
    capacity: str
    asset_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("asset_name", "udt_name", "asset")
    )
    created_timestamp: Optional[datetime] = None
    commit_timestamp: Optional[datetime] = None
    chain_hash: Optional[str] = None
    udt_type_script: Optional[Any] = None
    update_info_of_node1: Optional[Any] = None
    update_info_of_node2: Optional[Any] = None

    @field_validator("capacity", mode="before")
    @classmethod
    def _capacity_as_hex(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return hex(value)
        return value

    @property
    def asset(self) -> str:
        """Asset name, lower-cased, defaulting to the native asset"""
        return (self.asset_name or NATIVE_ASSET).lower()

    @property
    def capacity_amount(self) -> int:
        """Capacity in the asset's smallest unit (raises AmountDecodeError)"""
        return parse_amount(self.capacity)

    @property
    def capacity_display(self) -> Decimal:
        """Capacity scaled to the asset's display unit"""
        return to_display(self.capacity_amount, self.asset)


class ChannelState(str, Enum):
    """Lifecycle states accepted by the grouped channel listing"""
    OPEN = "open"
    COMMITMENT = "commitment"
    CLOSED = "closed"


class NodePage(BaseModel):
    """One page of a node listing"""
    next_page: Any = None
    nodes: List[Node] = Field(default_factory=list)
    total_count: Optional[int] = None

    @field_validator("nodes", mode="before")
    @classmethod
    def _nodes_default(cls, value):
        return value or []

    @property
    def records(self) -> List[Node]:
        return self.nodes


class ChannelPage(BaseModel):
    """One page of a channel listing"""
    next_page: Any = None
    channels: List[Channel] = Field(default_factory=list)
    total_count: Optional[int] = None

    @field_validator("channels", mode="before")
    @classmethod
    def _channels_default(cls, value):
        return value or []

    @property
    def records(self) -> List[Channel]:
        return self.channels


class BasicChannelInfo(BaseModel):
    """Channel summary returned by the grouped-by-state listing"""
    model_config = ConfigDict(extra="allow")

    channel_outpoint: str
    funding_args: Optional[str] = None
    last_block_number: Optional[str] = None
    last_tx_hash: Optional[str] = None
    last_commitment_args: Optional[str] = None


class ChannelStatePage(BaseModel):
    """One page of channels grouped by lifecycle state"""
    model_config = ConfigDict(populate_by_name=True)

    next_page: Any = None
    channels: List[BasicChannelInfo] = Field(default_factory=list, alias="list")

    @field_validator("channels", mode="before")
    @classmethod
    def _channels_default(cls, value):
        return value or []

    @property
    def records(self) -> List[BasicChannelInfo]:
        return self.channels


class ChannelStateInfo(BaseModel):
    """Current state and transaction history of one channel"""
    channel_outpoint: str
    state: str
    funding_args: Optional[str] = None
    txs: Optional[Any] = None
