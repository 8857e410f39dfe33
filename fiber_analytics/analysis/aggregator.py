"""Join channels to their endpoint nodes and build geographic, ISP and node rankings"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import Node, Channel
from ..utils.amounts import AmountDecodeError
from ..utils.geo import (
    UNKNOWN_CITY,
    UNKNOWN_COUNTRY,
    country_code,
    country_display_name,
    parse_coordinates,
)

logger = logging.getLogger(__name__)

UNKNOWN_ISP = "Unknown ISP"
OTHER_ISP = "Other ISP"

# Checked in order against the node's first address
ISP_SIGNATURES: List[Tuple[Tuple[str, ...], str]] = [
    (("cloudflare",), "Cloudflare"),
    (("digitalocean",), "DigitalOcean"),
    (("amazon", "aws"), "AWS"),
    (("ovh",), "OVH"),
    (("hetzner",), "Hetzner"),
    (("linode",), "Linode"),
    (("vultr",), "Vultr"),
    (("google",), "Google Cloud"),
    (("azure", "microsoft"), "Azure"),
]

ZERO = Decimal(0)
HALF = Decimal(2)


@dataclass
class GeoAggregate:
    """Nodes and attributed capacity per country"""
    country: str
    country_code: str
    node_count: int = 0
    total_capacity: Decimal = ZERO


@dataclass
class CityAggregate:
    """Nodes and attributed capacity per city"""
    city: str
    country: str
    country_code: str
    latitude: float = 0.0
    longitude: float = 0.0
    node_count: int = 0
    total_capacity: Decimal = ZERO
    node_ids: List[str] = field(default_factory=list)


@dataclass
class NodeLocation:
    """A single node placed on the map with its half-share capacity"""
    node_id: str
    node_name: str
    city: str
    country: str
    country_code: str
    latitude: float
    longitude: float
    capacity: Decimal = ZERO


@dataclass
class IspRanking:
    """Nodes and attributed capacity per hosting provider"""
    isp: str
    node_count: int = 0
    total_capacity: Decimal = ZERO
    average_capacity: Decimal = ZERO


@dataclass
class NodeRanking:
    """A node's total channel exposure"""
    node_id: str
    node_name: str
    city: str
    country: str
    total_channels: int = 0
    total_capacity: Decimal = ZERO


@dataclass
class _NodeInfo:
    country: str
    city_key: Tuple[str, str]
    isp: str


def isp_from_addresses(addresses: Optional[Sequence[str]]) -> str:
    """Infer the hosting provider from a node's first address"""
    if not addresses:
        return UNKNOWN_ISP

    address = addresses[0].lower()
    for patterns, isp in ISP_SIGNATURES:
        if any(pattern in address for pattern in patterns):
            return isp
    return OTHER_ISP


def _node_country(node: Node) -> str:
    if not node.country_or_region:
        return UNKNOWN_COUNTRY
    return country_code(node.country_or_region)


def _node_city(node: Node) -> str:
    return node.city or UNKNOWN_CITY


def _build_index(nodes: Sequence[Node]) -> Dict[str, _NodeInfo]:
    """node_id -> resolved country / city / ISP, built once per aggregation"""
    index = {}
    for node in nodes:
        country = _node_country(node)
        index[node.node_id] = _NodeInfo(
            country=country,
            city_key=(_node_city(node), country),
            isp=isp_from_addresses(node.addresses),
        )
    return index


def channel_capacity(channel: Channel) -> Decimal:
    """Display capacity of a channel, zero when the field cannot be decoded"""
    try:
        return channel.capacity_display
    except AmountDecodeError as e:
        logger.warning(f"Error parsing capacity of channel {channel.channel_outpoint}: {e}")
        return ZERO


def total_capacity(channels: Sequence[Channel]) -> Decimal:
    return sum((channel_capacity(channel) for channel in channels), ZERO)


def filter_channels_by_valid_nodes(nodes: Sequence[Node], channels: Sequence[Channel]) -> List[Channel]:
    """Drop channels whose endpoints are not both in the node collection"""
    valid_ids = {node.node_id for node in nodes}
    valid = [c for c in channels if c.node1 in valid_ids and c.node2 in valid_ids]

    if len(valid) != len(channels):
        logger.warning(
            f"Filtered out {len(channels) - len(valid)} channels with missing nodes. "
            f"Total channels: {len(channels)}, valid channels: {len(valid)}"
        )
    return valid


def group_channels_by_pair(channels: Sequence[Channel]) -> List[Tuple[Channel, int]]:
    """Assign a stable group id to each unordered pair of endpoints"""
    groups: Dict[Tuple[str, str], int] = {}
    grouped = []
    for channel in channels:
        key = tuple(sorted((channel.node1, channel.node2)))
        if key not in groups:
            groups[key] = len(groups)
        grouped.append((channel, groups[key]))
    return grouped


def geographical_distribution(nodes: Sequence[Node], channels: Sequence[Channel]) -> List[GeoAggregate]:
    """
    Node count and capacity per country

    Each channel's capacity is split in half between its endpoints'
    countries, so the buckets sum to the network total.
    """
    index = _build_index(nodes)

    node_count: Dict[str, int] = defaultdict(int)
    for info in index.values():
        node_count[info.country] += 1

    capacity: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for channel in channels:
        share = channel_capacity(channel) / HALF
        for endpoint in (channel.node1, channel.node2):
            info = index.get(endpoint)
            capacity[info.country if info else UNKNOWN_COUNTRY] += share

    aggregates = [
        GeoAggregate(
            country=country_display_name(code),
            country_code=code,
            node_count=count,
            total_capacity=max(ZERO, capacity.get(code, ZERO)),
        )
        for code, count in node_count.items()
    ]
    aggregates = [
        geo for geo in aggregates
        if geo.country != UNKNOWN_COUNTRY and geo.country_code != UNKNOWN_COUNTRY
    ]
    return sorted(aggregates, key=lambda geo: geo.node_count, reverse=True)


def city_distribution(nodes: Sequence[Node], channels: Sequence[Channel]) -> List[CityAggregate]:
    """Node count, capacity and coordinates per city (half-split capacity)"""
    index = _build_index(nodes)

    cities: Dict[Tuple[str, str], CityAggregate] = {}
    for node in nodes:
        info = index[node.node_id]
        city, country = info.city_key
        aggregate = cities.get(info.city_key)
        if aggregate is None:
            aggregate = CityAggregate(
                city=city, country=node.country_or_region or UNKNOWN_COUNTRY, country_code=country
            )
            cities[info.city_key] = aggregate

        if node.node_id not in aggregate.node_ids:
            aggregate.node_ids.append(node.node_id)

        # First node with a usable location places the city
        coordinates = parse_coordinates(node.loc)
        if coordinates and (aggregate.latitude, aggregate.longitude) == (0.0, 0.0):
            aggregate.latitude, aggregate.longitude = coordinates

    unknown_key = (UNKNOWN_CITY, UNKNOWN_COUNTRY)
    for channel in channels:
        share = channel_capacity(channel) / HALF
        for endpoint in (channel.node1, channel.node2):
            info = index.get(endpoint)
            key = info.city_key if info else unknown_key
            if key in cities:
                cities[key].total_capacity += share

    result = []
    for aggregate in cities.values():
        aggregate.node_count = len(aggregate.node_ids)
        aggregate.total_capacity = max(ZERO, aggregate.total_capacity)
        if aggregate.city == UNKNOWN_CITY or UNKNOWN_COUNTRY in (aggregate.country, aggregate.country_code):
            continue
        if aggregate.latitude == 0 and aggregate.longitude == 0:
            continue
        result.append(aggregate)

    return sorted(result, key=lambda city: city.node_count, reverse=True)


def node_locations(nodes: Sequence[Node], channels: Sequence[Channel]) -> List[NodeLocation]:
    """Locatable nodes with their half-share of channel capacity"""
    capacity: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for channel in channels:
        share = channel_capacity(channel) / HALF
        capacity[channel.node1] += share
        capacity[channel.node2] += share

    locations = []
    for node in nodes:
        coordinates = parse_coordinates(node.loc)
        if not coordinates:
            continue

        country = _node_country(node)
        city = _node_city(node)
        if city == UNKNOWN_CITY or country == UNKNOWN_COUNTRY:
            continue

        locations.append(NodeLocation(
            node_id=node.node_id,
            node_name=node.node_name,
            city=city,
            country=node.country_or_region,
            country_code=country,
            latitude=coordinates[0],
            longitude=coordinates[1],
            capacity=max(ZERO, capacity.get(node.node_id, ZERO)),
        ))

    return sorted(locations, key=lambda location: location.capacity, reverse=True)


def isp_rankings(nodes: Sequence[Node], channels: Sequence[Channel], top_n: int = 10) -> List[IspRanking]:
    """Top hosting providers by node count, with half-split capacity"""
    index = _build_index(nodes)

    rankings: Dict[str, IspRanking] = {}
    for info in index.values():
        ranking = rankings.setdefault(info.isp, IspRanking(isp=info.isp))
        ranking.node_count += 1

    for channel in channels:
        share = channel_capacity(channel) / HALF
        for endpoint in (channel.node1, channel.node2):
            info = index.get(endpoint)
            if info and info.isp in rankings:
                rankings[info.isp].total_capacity += share

    result = []
    for ranking in rankings.values():
        if ranking.isp == UNKNOWN_ISP:
            continue
        if ranking.node_count:
            ranking.average_capacity = ranking.total_capacity / ranking.node_count
        result.append(ranking)

    result.sort(key=lambda ranking: ranking.node_count, reverse=True)
    return result[:top_n]


def node_rankings(
    nodes: Sequence[Node], channels: Sequence[Channel], limit: Optional[int] = None
) -> List[NodeRanking]:
    """
    Rank nodes by total channel exposure

    Unlike the geographic views, each endpoint is credited with the full
    capacity of every channel it is part of.
    """
    capacity: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    channel_count: Dict[str, int] = defaultdict(int)
    for channel in channels:
        amount = channel_capacity(channel)
        for endpoint in (channel.node1, channel.node2):
            capacity[endpoint] += amount
            channel_count[endpoint] += 1

    rankings = [
        NodeRanking(
            node_id=node.node_id,
            node_name=node.node_name,
            city=_node_city(node),
            country=_node_country(node),
            total_channels=channel_count.get(node.node_id, 0),
            total_capacity=capacity.get(node.node_id, ZERO),
        )
        for node in nodes
    ]
    rankings.sort(key=lambda r: (r.total_capacity, r.total_channels), reverse=True)
    return rankings[:limit] if limit else rankings
