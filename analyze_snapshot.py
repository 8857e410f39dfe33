#!/usr/bin/env python3
"""Analyze a saved network snapshot to understand capacity patterns"""

import json
import sys
from pathlib import Path
import pandas as pd
import numpy as np
from typing import Dict, List, Any

from fiber_analytics.analysis.dedup import unique_by
from fiber_analytics.utils.amounts import AmountDecodeError, parse_capacity
from fiber_analytics.utils.assets import NATIVE_ASSET


def load_snapshot(path: Path) -> Dict[str, Any]:
    """Load a snapshot written by `fiber-analytics snapshot`"""
    with open(path, 'r') as f:
        snapshot = json.load(f)

    if not snapshot.get('complete', True):
        print("Warning: snapshot was collected with errors, figures are lower bounds")
    return snapshot


def analyze_channels(channels: List[Dict[str, Any]]) -> pd.DataFrame:
    """Convert channel records to a DataFrame with decoded capacity"""
    rows = []

    for ch in unique_by(channels, lambda c: c.get('channel_outpoint')):
        asset = (ch.get('asset_name') or NATIVE_ASSET).lower()
        try:
            capacity = float(parse_capacity(ch.get('capacity', '0x0'), asset))
        except AmountDecodeError as e:
            print(f"Error parsing capacity of {ch.get('channel_outpoint')}: {e}")
            capacity = 0.0

        rows.append({
            'channel_outpoint': ch.get('channel_outpoint', ''),
            'node1': ch.get('node1', ''),
            'node2': ch.get('node2', ''),
            'asset': asset,
            'capacity': capacity,
            'created': ch.get('created_timestamp'),
        })

    df = pd.DataFrame(rows, columns=['channel_outpoint', 'node1', 'node2', 'asset', 'capacity', 'created'])
    df['created'] = pd.to_datetime(df['created'], utc=True, errors='coerce')
    return df


def analyze_nodes(nodes: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            'node_id': node.get('node_id', ''),
            'node_name': node.get('node_name') or 'Unknown',
            'country': node.get('country_or_region') or 'Unknown',
            'city': node.get('city') or 'Unknown City',
        }
        for node in unique_by(nodes, lambda n: n.get('node_id'))
    ]
    return pd.DataFrame(rows, columns=['node_id', 'node_name', 'country', 'city'])


def node_exposure(channels: pd.DataFrame) -> pd.DataFrame:
    """Full channel capacity credited to each endpoint"""
    endpoints = pd.concat([
        channels[['node1', 'capacity']].rename(columns={'node1': 'node_id'}),
        channels[['node2', 'capacity']].rename(columns={'node2': 'node_id'}),
    ])
    return endpoints.groupby('node_id')['capacity'].agg(['count', 'sum']).rename(
        columns={'count': 'channels', 'sum': 'total_capacity'}
    )


def print_analysis(channels: pd.DataFrame, nodes: pd.DataFrame):
    """Print capacity analysis of the snapshot"""
    print("=== Fiber Network Snapshot Analysis ===\n")

    print(f"Total Nodes: {len(nodes)}")
    print(f"Total Channels: {len(channels)}")
    if channels.empty:
        return

    # Per-asset statistics
    print(f"\n=== Capacity by Asset ===")
    stats = channels.groupby('asset')['capacity'].agg(['count', 'sum', 'mean', 'median', 'min', 'max'])
    print(stats.to_string(float_format=lambda v: f"{v:,.2f}"))

    # Native capacity distribution on log-spaced buckets
    native = channels[(channels['asset'] == NATIVE_ASSET) & (channels['capacity'] > 0)]['capacity']
    if len(native) > 0:
        print(f"\n=== {NATIVE_ASSET.upper()} Capacity Distribution ===")
        low = np.floor(np.log10(native.min()))
        high = np.ceil(np.log10(native.max()))
        edges = np.logspace(low, max(high, low + 1), num=int(max(high - low, 1)) + 1)
        counts, edges = np.histogram(native, bins=edges)
        for count, lower, upper in zip(counts, edges[:-1], edges[1:]):
            print(f"{lower:>16,.0f} - {upper:<16,.0f} {count:>6} {'#' * int(np.ceil(50 * count / max(counts.max(), 1)))}")

    # Geography
    print(f"\n=== Top 10 Countries ===")
    print(nodes['country'].value_counts().head(10).to_string())

    # Top nodes
    print(f"\n=== Top 10 Nodes by Channel Capacity ===")
    exposure = node_exposure(channels).join(nodes.set_index('node_id')[['node_name']], how='left')
    exposure = exposure.sort_values(['total_capacity', 'channels'], ascending=False)
    print(exposure.head(10).to_string(float_format=lambda v: f"{v:,.2f}"))

    # Growth
    dated = channels.dropna(subset=['created'])
    if len(dated) > 0:
        print(f"\n=== Channels Opened per Month ===")
        per_month = dated.groupby(dated['created'].dt.strftime('%Y-%m')).size()
        print(per_month.to_string())


if __name__ == "__main__":
    snapshot_path = Path(sys.argv[1] if len(sys.argv) > 1 else "fiber_snapshot.json")

    print(f"Loading snapshot {snapshot_path}...")
    snapshot = load_snapshot(snapshot_path)

    channels_df = analyze_channels(snapshot.get('channels', []))
    nodes_df = analyze_nodes(snapshot.get('nodes', []))
    print(f"Loaded {len(nodes_df)} nodes and {len(channels_df)} channels\n")

    print_analysis(channels_df, nodes_df)

    # Save processed data
    channels_df.to_csv("channel_analysis.csv", index=False)
    print(f"\nAnalysis saved to channel_analysis.csv")
