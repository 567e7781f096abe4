"""CLI for the liftlog readiness engine.

Reads the training log and the external activity store configured in
settings (LIFTLOG_* environment variables or .env) and runs the same
service code path as the HTTP API.
"""

import asyncio
import json
from datetime import timedelta
from pathlib import Path

import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.json import JSON
from rich.table import Table

from liftlog.config.settings import settings
from liftlog.core.logger import configure_logging
from liftlog.db.session import get_session_factory
from liftlog.export.timeline_export import TimelineExportError, write_timeline_export
from liftlog.integrations.health.source import ActivitySourceError, JsonFileActivitySource
from liftlog.models.readiness_config import ReadinessConfig, readiness_config_from_settings
from liftlog.persistence.activity_store import ExternalActivityStore
from liftlog.persistence.errors import ExternalActivityNotFoundError, TrainingLogError
from liftlog.readiness.types import ReadinessStatus
from liftlog.services.readiness_service import CurrentReadiness, ReadinessService, create_readiness_service
from liftlog.workers.readiness_refresher import ReadinessRefresher

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="liftlog",
    help="liftlog - fatigue and readiness engine for a strength-training log",
    add_completion=False,
)

DEFAULT_HOST = "127.0.0.1"

STATUS_STYLES: dict[ReadinessStatus, str] = {
    ReadinessStatus.READY: "green",
    ReadinessStatus.CAUTION: "yellow",
    ReadinessStatus.BLOCKED: "red",
}


def get_service() -> ReadinessService:
    return create_readiness_service(settings, ExternalActivityStore(get_session_factory()))


def get_config() -> ReadinessConfig:
    return readiness_config_from_settings(settings)


def _format_duration(delta: timedelta | None) -> str:
    if delta is None:
        return "-"
    total_minutes = int(delta.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes:02d}m"


def _readiness_table(current: CurrentReadiness) -> Table:
    table = Table(title=f"Readiness at {current.computed_at.astimezone(settings.tzinfo):%Y-%m-%d %H:%M}")
    table.add_column("Activity")
    table.add_column("Status")
    table.add_column("Message")
    table.add_column("Fresh in", justify="right")
    for category, readiness in current.readiness.items():
        style = STATUS_STYLES[readiness.status]
        table.add_row(
            category.value,
            f"[{style}]{readiness.status.value}[/{style}]",
            readiness.message,
            _format_duration(readiness.time_until_fresh),
        )
    return table


def _print_current(current: CurrentReadiness) -> None:
    if not current.has_data:
        console.print("[yellow]No training data in the window - never trained is not the same as recovered[/yellow]")
    fatigue = current.fatigue
    console.print(
        f"Fatigue: lower=[bold]{fatigue.lower:.1f}[/bold] upper=[bold]{fatigue.upper:.1f}[/bold] "
        f"systemic=[bold]{fatigue.systemic:.1f}[/bold]"
    )
    console.print(_readiness_table(current))


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    configure_logging(settings, debug=debug)


@app.command()
def readiness(as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table")) -> None:
    """Show current fatigue and readiness per activity category."""
    try:
        current = get_service().compute_current_readiness(get_config())
    except TrainingLogError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(code=1) from e

    if as_json:
        payload = {
            "computed_at": current.computed_at.isoformat(),
            "has_data": current.has_data,
            "fatigue": current.fatigue.model_dump(),
            "readiness": {
                category.value: {
                    "status": r.status.value,
                    "message": r.message,
                    "time_until_fresh_seconds": None if r.time_until_fresh is None else int(r.time_until_fresh.total_seconds()),
                }
                for category, r in current.readiness.items()
            },
        }
        console.print(JSON(json.dumps(payload)))
        return
    _print_current(current)


@app.command()
def timeline(
    days: int | None = typer.Option(None, "--days", "-d", min=1, max=365, help="Window length in days"),
) -> None:
    """Show end-of-day fatigue for each day in the window."""
    try:
        result = get_service().build_timeline(days, get_config())
    except TrainingLogError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(code=1) from e

    table = Table(title=f"Fatigue timeline ({len(result.graph_points)} samples, {result.event_count} events)")
    table.add_column("Day")
    table.add_column("Lower", justify="right")
    table.add_column("Upper", justify="right")
    table.add_column("Systemic", justify="right")
    for day, values in result.daily_end_values.items():
        table.add_row(day, f"{values.lower:.1f}", f"{values.upper:.1f}", f"{values.systemic:.1f}")
    console.print(table)

    if result.skipped_events:
        console.print(f"[yellow]{result.skipped_events} session(s) skipped: unparsable date[/yellow]")
    if not result.has_data:
        console.print("[yellow]No training data in the window[/yellow]")


@app.command()
def export(
    output: Path = typer.Option(..., "--output", "-o", help="Path of the JSON export file"),
    days: int | None = typer.Option(None, "--days", "-d", min=1, max=365, help="Window length in days"),
) -> None:
    """Write the versioned timeline export to a JSON file."""
    try:
        document = get_service().export(days, get_config())
        path = write_timeline_export(document, output)
    except TrainingLogError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(code=1) from e
    except TimelineExportError as e:
        console.print(f"[red]Export failed ({e.reason.value}):[/red] {e}", style="bold red")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Exported {document.metadata.total_data_points} data points to {path}[/green]")


@app.command()
def sync(
    source: Path = typer.Option(..., "--source", "-s", help="Health-platform activity export (JSON)"),
    lookback_days: int | None = typer.Option(None, "--lookback-days", min=1, max=90, help="Fetch window in days"),
    retention_days: int | None = typer.Option(None, "--retention-days", help="Retention window in days (1-365)"),
) -> None:
    """Sync external activities from a health-platform export."""
    service = get_service()
    if retention_days is not None:
        applied = service.activity_store.set_retention_days(retention_days)
        console.print(f"Retention set to {applied} days")

    try:
        result = service.sync(
            JsonFileActivitySource(source),
            get_config(),
            lookback_days or settings.sync_lookback_days,
        )
    except (ActivitySourceError, TrainingLogError) as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(code=1) from e

    console.print(f"[green]{result.summary()}[/green]")


@app.command()
def activities() -> None:
    """List stored external activities."""
    stored = get_service().list_external_activities()
    if not stored:
        console.print("[yellow]No external activities stored[/yellow]")
        return

    table = Table(title=f"External activities ({len(stored)})")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Start")
    table.add_column("Minutes", justify="right")
    table.add_column("Ignored")
    table.add_column("Reason")
    for activity in stored:
        minutes = (activity.end_time - activity.start_time).total_seconds() / 60
        table.add_row(
            activity.id,
            activity.type,
            f"{activity.start_time.astimezone(settings.tzinfo):%Y-%m-%d %H:%M}",
            f"{minutes:.0f}",
            "yes" if activity.ignored else "no",
            activity.ignore_reason or "",
        )
    console.print(table)


@app.command()
def toggle(
    activity_id: str = typer.Argument(..., help="External activity id"),
    ignore: bool = typer.Option(True, "--ignore/--include", help="Exclude or include the activity"),
) -> None:
    """Manually exclude or include an external activity (kept across syncs)."""
    try:
        updated = get_service().set_external_activity_ignored(activity_id, ignore)
    except ExternalActivityNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(code=1) from e

    state = "excluded" if updated.ignored else "included"
    console.print(f"[green]Activity {updated.id} {state}[/green]")


@app.command()
def watch(
    interval: float = typer.Option(settings.refresh_interval_seconds, "--interval", help="Refresh interval in seconds"),
    count: int = typer.Option(0, "--count", min=0, help="Stop after this many refreshes (0 = until interrupted)"),
) -> None:
    """Keep recomputing readiness so recovery countdowns stay current."""
    service = get_service()
    config = get_config()

    async def _watch() -> None:
        done = asyncio.Event()
        refreshes = 0

        def _on_result(current: CurrentReadiness) -> None:
            nonlocal refreshes
            refreshes += 1
            _print_current(current)
            if count and refreshes >= count:
                done.set()

        async with ReadinessRefresher(lambda: service.compute_current_readiness(config), _on_result, interval):
            await done.wait()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        logger.info("Watch interrupted")


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Run the FastAPI server.

    This command starts the liftlog FastAPI application using uvicorn.
    """
    logger.info(f"Starting FastAPI server on {host}:{port} (reload={reload})")
    uvicorn.run("liftlog.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
