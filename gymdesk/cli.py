"""CLI interface for gymdesk - Headless store connection tools.

Usage:
    gymdesk status [--attempts N]
    gymdesk env
    gymdesk tables
    gymdesk watch
"""

import asyncio
import sys
from typing import Optional

import typer
from loguru import logger

from gymdesk import __version__
from gymdesk.core.constants import LOG_FILE, SUPABASE_KEY_ENV, SUPABASE_URL_ENV
from gymdesk.core.container import ApplicationContainer, bootstrap
from gymdesk.core.types import ConnectionState, ConnectionTestResult

# Create Typer app
app = typer.Typer(
    name="gymdesk",
    help="gymdesk headless CLI - Check and watch the store connection",
    add_completion=False,
)

STATUS_ICONS = {
    ConnectionState.CONNECTED: "🟢",
    ConnectionState.DISCONNECTED: "⚪",
    ConnectionState.ERROR: "🔴",
    ConnectionState.TESTING: "🔵",
}


def _init_core():
    """Initialize container and store client without any UI."""
    # Set default level to INFO for CLI to avoid debug noise
    logger.remove()
    logger.add(sys.stderr, level="INFO")
    # Still log to file at DEBUG if needed
    logger.add(LOG_FILE, level="DEBUG", rotation="10 MB")

    container = ApplicationContainer()
    monitor = bootstrap(container)
    return container, monitor


def _format_result(state: ConnectionState, result: ConnectionTestResult) -> list[str]:
    last_test = result.timestamp.astimezone().strftime("%H:%M:%S") if result.tested else "Never"
    response = f"{result.response_time_ms}ms" if result.response_time_ms is not None else "N/A"

    lines = [
        f"{STATUS_ICONS.get(state, '🟡')} Status: {state}",
        f"   Last test: {last_test}",
        f"   Response time: {response}",
    ]
    if result.error:
        lines.append(f"   Error: {result.error}")
    return lines


def _require_online(monitor) -> None:
    if not monitor.is_online:
        typer.echo(f"{STATUS_ICONS[ConnectionState.DISCONNECTED]} Status: disconnected (offline mode)", err=True)
        typer.echo(f"   Set {SUPABASE_URL_ENV} and {SUPABASE_KEY_ENV} to connect", err=True)
        raise typer.Exit(1)


@app.command()
def status(
    attempts: Optional[int] = typer.Option(None, "--attempts", "-a", min=1, help="Probe attempts before giving up"),
):
    """Test the store connection once and show the result."""
    _, monitor = _init_core()
    _require_online(monitor)

    typer.echo("🔄 Testing store connection...")
    result = asyncio.run(monitor.test_connection(attempts))

    state = monitor.get_status()
    for line in _format_result(state, result):
        typer.echo(line)

    if state != ConnectionState.CONNECTED:
        raise typer.Exit(1)


@app.command()
def env():
    """Show which store environment variables are set."""
    container, _ = _init_core()
    diagnostics = container.settings().diagnostics()

    for name in (SUPABASE_URL_ENV, SUPABASE_KEY_ENV):
        mark = "✅" if diagnostics[name] == "set" else "❌"
        typer.echo(f"{mark} {name}: {diagnostics[name]}")

    if diagnostics["url"]:
        typer.echo(f"   Store URL: {diagnostics['url']}")


@app.command()
def tables():
    """Check which dashboard tables answer a bounded read."""
    container, monitor = _init_core()
    _require_online(monitor)

    results = container.table_diagnostics().check()
    for table, result in results.items():
        if result.ok:
            typer.echo(f"✅ {table}: available")
        else:
            typer.echo(f"⚠️  {table}: {result.error}")

    if not all(result.ok for result in results.values()):
        raise typer.Exit(1)


@app.command()
def watch():
    """Test now, then re-test periodically and print every status change."""
    _, monitor = _init_core()
    _require_online(monitor)

    def _on_change(state: ConnectionState, result: ConnectionTestResult):
        for line in _format_result(state, result):
            typer.echo(line)

    monitor.subscribe(_on_change)

    async def _run():
        async with monitor:
            while True:
                await asyncio.sleep(3600)

    typer.echo("👀 Watching store connection (Ctrl+C to stop)")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("\n👋 Stopped")


@app.command()
def version():
    """Show version information."""
    typer.echo(f"gymdesk CLI v{__version__}")


def main():
    """Entry point for gymdesk CLI."""
    app()


if __name__ == "__main__":
    main()
