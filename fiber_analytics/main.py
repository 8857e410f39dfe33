#!/usr/bin/env python3
"""Fiber Network Analytics - Main entry point"""

import asyncio
import click
import logging
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler

from .api.client import FiberDashboardClient
from .api.errors import FiberApiError
from .analysis.dashboard import NetworkDashboard, save_data
from .analysis import report
from .models import ChannelState
from .utils.config import Config, NETWORKS

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)]
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def run(coro):
    """Run a command coroutine, turning API failures into a clean abort"""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
    except FiberApiError as e:
        logger.exception("API request failed")
        console.print(f"\n[red]Error: {str(e)}[/red]")
        raise click.Abort()


@click.group()
@click.option('--api-url', help='Dashboard API URL (overrides FIBER_API_URL)')
@click.option('--network', type=click.Choice(NETWORKS), help='Network to query')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, api_url: Optional[str], network: Optional[str], config: Optional[str], verbose: bool):
    """Fiber Network Analytics - nodes, channels and liquidity of a Fiber network"""
    cfg = Config.load(config)
    if api_url:
        cfg.api.base_url = api_url
    if network:
        cfg.api.network = network
    cfg.verbose = cfg.verbose or verbose

    setup_logging(cfg.verbose)
    ctx.obj = cfg


@cli.command()
@click.option('--limit', default=10, show_default=True, help='Rows per table')
@click.option('--output', '-o', type=click.Path(), help='Save dashboard data to JSON file')
@click.pass_obj
def dashboard(config: Config, limit: int, output: Optional[str]):
    """Collect all active nodes and channels and show the network overview"""
    async def _run():
        async with FiberDashboardClient.from_config(config) as client:
            console.print(f"[cyan]Fetching {config.api.network} network data...[/cyan]")
            data = await NetworkDashboard(client, config).build()

        report.print_dashboard(data, limit)
        if output:
            save_data(data.to_dict(), output)
            console.print(f"\n[green]Dashboard saved to {output}[/green]")

    run(_run())


@cli.command()
@click.option('--asset', help='Restrict to one asset (e.g. ckb, usdi)')
@click.pass_obj
def kpi(config: Config, asset: Optional[str]):
    """Show headline capacity figures from the analysis endpoint"""
    async def _run():
        async with FiberDashboardClient.from_config(config) as client:
            report.print_kpi(await NetworkDashboard(client, config).fetch_kpi(asset))

    run(_run())


@cli.command()
@click.option('--range', 'time_range', help='History range (1M, 3M, 6M, 1Y, 2Y)')
@click.option('--interval', help='Bucket interval (day, week, month)')
@click.option('--aggregation', type=click.Choice(['sum', 'avg', 'min', 'max', 'median']),
              default='sum', show_default=True, help='Capacity statistic to show')
@click.option('--from-listings', is_flag=True,
              help='Rebuild growth from historical listings instead of the analysis endpoint')
@click.option('--start', help='Start date (YYYY-MM-DD) for --from-listings')
@click.option('--end', help='End date (YYYY-MM-DD) for --from-listings')
@click.pass_obj
def history(config: Config, time_range: Optional[str], interval: Optional[str], aggregation: str,
            from_listings: bool, start: Optional[str], end: Optional[str]):
    """Show network growth over time"""
    async def _run():
        async with FiberDashboardClient.from_config(config) as client:
            service = NetworkDashboard(client, config)
            if from_listings:
                report.print_growth(await service.fetch_growth(start, end))
            else:
                series = await service.fetch_history(time_range, interval, aggregation)
                report.print_series(series)

    run(_run())


@cli.command('channels-by-state')
@click.argument('state', type=click.Choice([s.value for s in ChannelState]))
@click.option('--asset', help='Restrict to one asset')
@click.option('--limit', default=50, show_default=True, help='Rows to show')
@click.pass_obj
def channels_by_state(config: Config, state: str, asset: Optional[str], limit: int):
    """List channels in a lifecycle state"""
    async def _run():
        async with FiberDashboardClient.from_config(config) as client:
            result = await client.fetch_all_channels_by_state(ChannelState(state), asset_name=asset)

        if result.error is not None:
            console.print(f"[yellow]Listing ended early: {result.error}[/yellow]")
        report.print_channel_states(result.records, state, limit)

    run(_run())


@cli.command()
@click.argument('node_id')
@click.pass_obj
def node(config: Config, node_id: str):
    """Show a single node"""
    async def _run():
        async with FiberDashboardClient.from_config(config) as client:
            report.print_node(await client.get_node_info(node_id))

    run(_run())


@cli.command()
@click.argument('channel_outpoint')
@click.option('--with-state', is_flag=True, help='Also fetch the lifecycle state')
@click.pass_obj
def channel(config: Config, channel_outpoint: str, with_state: bool):
    """Show a single channel"""
    async def _run():
        async with FiberDashboardClient.from_config(config) as client:
            info = await client.get_channel_info(channel_outpoint)
            state = await client.get_channel_state(channel_outpoint) if with_state else None
        report.print_channel(info, state)

    run(_run())


@cli.command()
@click.option('--output', '-o', type=click.Path(), default='fiber_snapshot.json', show_default=True,
              help='Snapshot file')
@click.pass_obj
def snapshot(config: Config, output: str):
    """Save raw active nodes and channels for offline analysis"""
    async def _run():
        async with FiberDashboardClient.from_config(config) as client:
            nodes_result, channels_result = await asyncio.gather(
                client.fetch_all_active_nodes(),
                client.fetch_all_active_channels(),
            )

        save_data({
            "network": config.api.network,
            "complete": nodes_result.complete and channels_result.complete,
            "nodes": [n.model_dump(mode="json") for n in nodes_result.records],
            "channels": [c.model_dump(mode="json") for c in channels_result.records],
        }, output)
        console.print(
            f"[green]Saved {len(nodes_result)} nodes and {len(channels_result)} channels to {output}[/green]"
        )

    run(_run())


def main():
    cli()


if __name__ == "__main__":
    main()
