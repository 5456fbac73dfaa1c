"""CLI interface for TokenMeter."""

import asyncio
import json
import logging
from pathlib import Path

import click
import httpx
import uvicorn
from rich.console import Console
from rich.live import Live
from rich.table import Table

from . import __version__
from .activity import get_stats, token_percent_of
from .config import DASHBOARD_PORT, DB_PATH, DEFAULT_TOKEN_LIMIT, POLL_INTERVAL
from .db import Database
from .formatting import format_compact, format_money
from .interceptor import process_response
from .loader import UsageLoader
from .models import OverageSnapshot, PrepaidSnapshot, SessionUsageReport, UsageReport, UsageSnapshot
from .schema import get_schema_info

console = Console()
logger = logging.getLogger("tokenmeter")


@click.group()
@click.version_option(__version__)
@click.option("--log-level", default="warning", type=click.Choice(["debug", "info", "warning", "error"]))
def cli(log_level):
    """TokenMeter - Claude usage from local session logs and usage reports."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def _today_table(report: UsageReport) -> Table:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Messages", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Cache Write", justify="right")
    table.add_column("Cache Read", justify="right")
    table.add_column("Total", justify="right", style="yellow")
    table.add_row(
        f"{report.message_count:,}",
        f"{report.input_tokens:,}",
        f"{report.output_tokens:,}",
        f"{report.cache_creation_tokens:,}",
        f"{report.cache_read_tokens:,}",
        f"[bold]{report.total_tokens:,}[/]",
    )
    return table


def _session_table(report: SessionUsageReport, limit: int) -> Table:
    percent = token_percent_of(report, limit)
    stats = get_stats(token_percent=percent)
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Active")
    table.add_column("Sessions", justify="right")
    table.add_column("Context", justify="right")
    table.add_column("Cache Write", justify="right")
    table.add_column("Used", justify="right", style="yellow")
    table.add_column("Level")
    table.add_row(
        "[green]yes[/]" if report.is_active else "[dim]no[/]",
        str(report.active_session_count),
        f"{format_compact(report.total_tokens)} / {format_compact(limit)}",
        f"{report.cache_creation_tokens:,}",
        f"{percent}%",
        f"{stats.level} ({stats.description})",
    )
    return table


@cli.command()
def today():
    """Show token usage since local midnight."""
    report = asyncio.run(UsageLoader().get_today_usage())
    console.print("\n[bold]Today[/]\n")
    console.print(_today_table(report))
    console.print()


@cli.command()
@click.option("--workspace", "-w", default=None, help="Only look at this project's sessions")
@click.option("--limit", default=DEFAULT_TOKEN_LIMIT, help="Context window size in tokens")
def session(workspace, limit):
    """Show context usage of the busiest active session."""
    report = asyncio.run(UsageLoader(workspace_path=workspace).get_current_session_usage())
    console.print("\n[bold]Current session[/]\n")
    console.print(_session_table(report, limit))
    console.print()


@cli.command()
@click.option("--workspace", "-w", default=None, help="Only look at this project's sessions")
@click.option("--interval", "-i", default=POLL_INTERVAL, help="Seconds between refreshes")
@click.option("--limit", default=DEFAULT_TOKEN_LIMIT, help="Context window size in tokens")
def watch(workspace, interval, limit):
    """Refresh usage periodically and record each snapshot."""
    try:
        asyncio.run(_watch(workspace, interval, limit))
    except KeyboardInterrupt:
        pass


async def _watch(workspace, interval, limit):
    db = Database()
    await db.init()
    loader = UsageLoader(workspace_path=workspace)

    def build(today_report, session_report):
        grid = Table.grid()
        grid.add_row(_today_table(today_report))
        grid.add_row(_session_table(session_report, limit))
        return grid

    try:
        with Live(console=console, refresh_per_second=1) as live:
            while True:
                today_report = await loader.get_today_usage()
                session_report = await loader.get_current_session_usage()
                try:
                    await db.log_today(today_report)
                    await db.log_session(session_report)
                except Exception:
                    logger.exception("Failed to record snapshot")
                live.update(build(today_report, session_report))
                await asyncio.sleep(interval)
    finally:
        await db.close()


@cli.command()
@click.option("--limit", "-n", default=20, help="Number of snapshots to show")
@click.option("--kind", type=click.Choice(["today", "session"]), default=None)
def history(limit, kind):
    """Show recorded usage snapshots."""
    asyncio.run(_history(limit, kind))


async def _history(limit, kind):
    db = Database()
    await db.init()
    try:
        entries = await db.get_recent(limit, kind)
    finally:
        await db.close()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Time", style="dim")
    table.add_column("Kind")
    table.add_column("Total", justify="right", style="yellow")
    table.add_column("Messages", justify="right")
    table.add_column("Sessions", justify="right")
    for e in entries:
        table.add_row(
            e.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            e.kind,
            f"{e.total_tokens:,}",
            f"{e.message_count:,}",
            str(e.active_session_count) if e.kind == "session" else "-",
        )
    console.print(table)


@cli.command()
def schema():
    """List the remote fields and endpoints TokenMeter understands."""
    for group, names in get_schema_info().items():
        console.print(f"[bold]{group}[/]: {', '.join(names)}")


@cli.command()
@click.argument("url")
@click.argument("body_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def parse(url, body_file):
    """Normalize a saved usage API response BODY_FILE fetched from URL."""
    result = process_response(url, body_file.read_bytes())
    if result is None:
        console.print(f"[red]Not a usage API endpoint: {url}[/]")
        raise SystemExit(1)

    endpoint, snapshot = result
    if snapshot is None:
        console.print(f"[yellow]{endpoint}: not enabled[/]")
    elif isinstance(snapshot, OverageSnapshot):
        console.print(
            f"{endpoint}: {format_money(snapshot.used, snapshot.currency)} of "
            f"{format_money(snapshot.limit, snapshot.currency)} ({snapshot.percent}%)"
        )
    elif isinstance(snapshot, PrepaidSnapshot):
        console.print(f"{endpoint}: balance {format_money(snapshot.balance, snapshot.currency)}")
    elif isinstance(snapshot, UsageSnapshot):
        console.print_json(json.dumps(snapshot.model_dump(mode="json", by_alias=True, exclude={"fetched_at"})))


@cli.command()
@click.option("--port", default=DASHBOARD_PORT, help="JSON API port")
@click.option("--host", default="127.0.0.1")
def serve(port, host):
    """Serve usage reports as JSON."""
    from .dashboard_app import create_dashboard_app

    console.print(f"[bold green]TokenMeter v{__version__}[/]")
    console.print(f"  API:       http://{host}:{port}")
    console.print(f"  Database:  {DB_PATH}")
    uvicorn.run(create_dashboard_app(), host=host, port=port)


@cli.command()
@click.option("--port", default=DASHBOARD_PORT, help="JSON API port")
def status(port):
    """Check if the TokenMeter JSON API is running."""
    try:
        resp = httpx.get(f"http://localhost:{port}/health", timeout=3)
        if resp.status_code == 200:
            console.print(f"[green]TokenMeter API is running on port {port}[/]")
        else:
            console.print(f"[yellow]API responded with status {resp.status_code}[/]")
    except httpx.HTTPError:
        console.print(f"[red]TokenMeter API is not running on port {port}[/]")


@cli.command()
@click.confirmation_option(prompt="Are you sure you want to clear all recorded snapshots?")
def reset():
    """Clear the snapshot history."""
    asyncio.run(_reset())


async def _reset():
    db = Database()
    await db.init()
    await db.reset()
    await db.close()
    console.print("[green]History cleared.[/]")
