"""Console rendering of dashboard views"""

from decimal import Decimal
from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .aggregator import channel_capacity
from .combiner import MIXED_ASSETS, KpiData
from .dashboard import DashboardData, GrowthHistory
from .timeseries import TimePoint, merge_series
from ..models import Node, Channel, ChannelStateInfo
from ..utils.amounts import format_compact
from ..utils.assets import asset_unit

console = Console()


def _short(value: str, width: int = 16) -> str:
    return value[:width] + "..." if len(value) > width else value


def _amount(value: Decimal) -> str:
    # Rounding happens here only
    return f"{value:,.2f}"


def kpi_unit(kpi: KpiData) -> str:
    if kpi.asset == MIXED_ASSETS:
        return "base units (mixed assets)"
    return asset_unit(kpi.asset)


def print_kpi(kpi: KpiData):
    unit = kpi_unit(kpi)
    summary = f"""
[bold]Network KPIs ({unit})[/bold]
Total Capacity: {_amount(kpi.total_capacity)} {unit}
Total Nodes: {kpi.total_nodes:,}
Total Channels: {kpi.total_channels:,}
Average Channel: {_amount(kpi.average_channel_capacity)} {unit}
Max Channel: {_amount(kpi.max_channel_capacity)} {unit}
Min Channel: {_amount(kpi.min_channel_capacity)} {unit}
Median Channel (approx.): {_amount(kpi.median_channel_capacity)} {unit}
    """
    console.print(Panel(summary.strip(), title="Network Overview"))


def print_dashboard(data: DashboardData, limit: int = 10):
    """Print all dashboard views"""
    if data.incomplete:
        warning = "\n".join(data.errors)
        console.print(Panel(
            f"[yellow]Some collections ended early, figures are lower bounds:[/yellow]\n{warning}",
            title="Incomplete data",
        ))

    if data.kpi:
        print_kpi(data.kpi)

    console.print(
        f"\nCollected [bold]{len(data.nodes)}[/bold] nodes and "
        f"[bold]{len(data.channels)}[/bold] channels on {data.network}, "
        f"{_amount(data.total_capacity)} CKB locked"
    )

    table = Table(title="Nodes by Country", show_header=True, header_style="bold magenta")
    table.add_column("Country")
    table.add_column("Code", style="dim")
    table.add_column("Nodes", justify="right")
    table.add_column("Capacity", justify="right")
    for geo in data.countries[:limit]:
        table.add_row(geo.country, geo.country_code, str(geo.node_count), format_compact(geo.total_capacity))
    console.print(table)

    table = Table(title="Nodes by City", show_header=True, header_style="bold magenta")
    table.add_column("City")
    table.add_column("Country")
    table.add_column("Nodes", justify="right")
    table.add_column("Capacity", justify="right")
    table.add_column("Location", style="dim")
    for city in data.cities[:limit]:
        table.add_row(
            city.city,
            city.country,
            str(city.node_count),
            format_compact(city.total_capacity),
            f"{city.latitude:.2f}, {city.longitude:.2f}",
        )
    console.print(table)

    table = Table(title="Hosting Providers", show_header=True, header_style="bold magenta")
    table.add_column("ISP")
    table.add_column("Nodes", justify="right")
    table.add_column("Capacity", justify="right")
    table.add_column("Avg / Node", justify="right")
    for isp in data.isps:
        table.add_row(
            isp.isp, str(isp.node_count), format_compact(isp.total_capacity), format_compact(isp.average_capacity)
        )
    console.print(table)

    print_node_rankings(data, limit)


def print_node_rankings(data: DashboardData, limit: int = 10):
    table = Table(title="Top Nodes by Channel Capacity", show_header=True, header_style="bold magenta")
    table.add_column("Node", style="dim")
    table.add_column("Name")
    table.add_column("Location")
    table.add_column("Channels", justify="right")
    table.add_column("Capacity", justify="right")
    for ranking in data.top_nodes[:limit]:
        table.add_row(
            _short(ranking.node_id),
            ranking.node_name or "Unknown",
            f"{ranking.city}, {ranking.country}",
            str(ranking.total_channels),
            _amount(ranking.total_capacity),
        )
    console.print(table)


def print_series(series: Dict[str, List[TimePoint]], title: str = "Network History"):
    """Print several series side by side, one row per timestamp"""
    rows = merge_series(**series)
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Date")
    for name in series:
        table.add_column(name.title(), justify="right")
    for row in rows:
        table.add_row(
            row["timestamp"],
            *(_format_point(row.get(name)) for name in series),
        )
    console.print(table)


def _format_point(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, Decimal):
        return _amount(value)
    return str(value)


def print_growth(history: GrowthHistory):
    for error in history.errors:
        console.print(f"[yellow]Incomplete: {error}[/yellow]")
    print_series(
        {"nodes": history.nodes, "channels": history.channels, "capacity": history.capacity},
        title="Cumulative Network Growth",
    )


def print_node(node: Node):
    location = ", ".join(part for part in (node.city, node.region, node.country_or_region) if part)
    details = f"""
[bold]{node.node_name or 'Unknown'}[/bold]
Node ID: {node.node_id}
Location: {location or 'Unknown'}
Addresses: {', '.join(node.addresses) or 'none'}
Announced: {node.commit_timestamp or 'unknown'}
    """
    console.print(Panel(details.strip(), title="Node"))


def print_channel(channel: Channel, state: Optional[ChannelStateInfo] = None):
    unit = asset_unit(channel.asset)
    details = f"""
[bold]{channel.channel_outpoint}[/bold]
Node 1: {channel.node1}
Node 2: {channel.node2}
Capacity: {_amount(channel_capacity(channel))} {unit}
Created: {channel.created_timestamp or 'unknown'}
    """
    details = details.strip()
    if state:
        details += f"\nState: {state.state}"
    console.print(Panel(details, title="Channel"))


def print_channel_states(records: List, state: str, limit: int = 50):
    table = Table(title=f"Channels ({state})", show_header=True, header_style="bold magenta")
    table.add_column("Outpoint")
    table.add_column("Last Block", justify="right")
    table.add_column("Last Tx", style="dim")
    for info in records[:limit]:
        table.add_row(info.channel_outpoint, str(info.last_block_number or "-"), _short(info.last_tx_hash or "-"))
    console.print(table)
    if len(records) > limit:
        console.print(f"[dim]... and {len(records) - limit} more[/dim]")
