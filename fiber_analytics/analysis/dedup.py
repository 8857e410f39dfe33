"""Remove duplicate records returned by overlapping historical pages"""

from typing import Callable, Hashable, Iterable, List, TypeVar

from ..models import Node, Channel, BasicChannelInfo

T = TypeVar("T")


def canonical_key(record) -> str:
    """Canonical identity of a node or channel record"""
    if isinstance(record, Node):
        return record.node_id
    if isinstance(record, (Channel, BasicChannelInfo)):
        # Unique per funding transaction output
        return record.channel_outpoint
    raise TypeError(f"No canonical key for {type(record).__name__}")


def unique_by(records: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    """Keep the first record for each key, preserving order"""
    seen = set()
    unique = []
    for record in records:
        record_key = key(record)
        if record_key in seen:
            continue
        seen.add(record_key)
        unique.append(record)
    return unique


def unique_nodes(nodes: Iterable[Node]) -> List[Node]:
    return unique_by(nodes, lambda node: node.node_id)


def unique_channels(channels: Iterable[Channel]) -> List[Channel]:
    return unique_by(channels, lambda channel: channel.channel_outpoint)
