"""
VLRBUDDY - CLI Admin Commands
Command-line interface for running and inspecting the catalog mirror
"""

import asyncio
import logging
import signal
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from app.models.catalog import Collection, Record
from app.utils.time_format import format_score, format_timestamp

console = Console()
logger = logging.getLogger(__name__)


def _setup_logging():
    from app.core.config import get_settings

    logging.basicConfig(
        level=get_settings().LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@click.group()
def cli():
    """VLRBuddy - Esports Catalog Mirror"""
    pass


# ============== Worker Command ==============

@cli.command()
def worker():
    """
    Run the ingestion scheduler without the API server.

    Refreshes the catalog once at startup, then every
    INGESTION_INTERVAL_SECONDS until interrupted.
    """
    from app.core.config import get_settings

    settings = get_settings()
    _setup_logging()

    console.print(Panel.fit(
        "[bold green]VLRBUDDY[/bold green]\n"
        "Ingestion Worker",
        title="Worker Starting"
    ))
    console.print(f"Environment: {settings.environment}")
    console.print(f"Interval: {settings.INGESTION_INTERVAL_SECONDS}s")

    async def run_worker():
        from app.core.database import get_mirror_store
        from app.services.collectors.pandascore import get_pandascore_collector
        from app.services.scheduling import get_ingestion_scheduler

        store = get_mirror_store()
        scheduler = get_ingestion_scheduler()

        console.print("[yellow]Initializing services...[/yellow]")
        try:
            await store.initialize()
            console.print("[green]✓[/green] Mirror store connected")

            report = await scheduler.start()
            console.print("[green]✓[/green] Scheduler started")
            _print_report(report)

            console.print("\n[bold green]Worker is running![/bold green]")
            console.print("Press Ctrl+C to stop\n")

            stop_event = asyncio.Event()

            def signal_handler():
                console.print("\n[yellow]Shutdown signal received...[/yellow]")
                stop_event.set()

            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                try:
                    loop.add_signal_handler(sig, signal_handler)
                except NotImplementedError:
                    # Windows doesn't support add_signal_handler
                    pass

            await stop_event.wait()

        except Exception as e:
            console.print(f"[red]✗[/red] Worker error: {e}")
            logger.exception("Worker failed")
            raise
        finally:
            console.print("[yellow]Shutting down worker...[/yellow]")
            await scheduler.stop()
            await scheduler.wait_idle()
            console.print("[green]✓[/green] Scheduler stopped")
            await get_pandascore_collector().close()
            await store.close()
            console.print("[green]Worker stopped[/green]")

    try:
        asyncio.run(run_worker())
    except KeyboardInterrupt:
        console.print("\n[yellow]Worker interrupted[/yellow]")


@cli.command()
def ingest():
    """Run one catalog refresh and print its report."""
    _setup_logging()

    async def run():
        from app.core.database import get_mirror_store
        from app.core.exceptions import IngestionError
        from app.services.collectors.pandascore import get_pandascore_collector
        from app.services.ingestion import IngestionService

        store = get_mirror_store()
        upstream = get_pandascore_collector()
        await store.initialize()
        try:
            report = await IngestionService(upstream, store).run_cycle()
        except IngestionError as e:
            console.print(f"[red]✗[/red] {e}")
            if e.report is not None:
                _print_report(e.report)
            raise SystemExit(1)
        finally:
            await upstream.close()
            await store.close()

        _print_report(report)

    asyncio.run(run())


def _print_report(report):
    tbl = Table(title="Catalog Refresh")
    tbl.add_column("Collection", style="cyan")
    tbl.add_column("Fetched", justify="right")
    tbl.add_column("Written", justify="right", style="green")
    tbl.add_column("Failed Chunks", justify="right")
    tbl.add_column("Status")

    for step in report.steps:
        status = "[green]ok[/green]" if step.success else f"[red]{step.error}[/red]"
        tbl.add_row(
            step.collection.value,
            str(step.fetched),
            str(step.written),
            str(step.failed_chunks),
            status,
        )
    console.print(tbl)


# ============== Database Commands ==============

@cli.group()
def db():
    """Mirror store commands"""
    pass


@db.command()
def stats():
    """Show record counts per collection"""

    async def run():
        from app.core.database import get_mirror_store

        store = get_mirror_store()
        await store.initialize()

        tbl = Table(title="Mirror Statistics")
        tbl.add_column("Collection", style="cyan")
        tbl.add_column("Records", justify="right", style="green")

        try:
            for collection in Collection:
                tbl.add_row(collection.value, str(await store.count(collection)))
        finally:
            await store.close()
        console.print(tbl)

    asyncio.run(run())


@db.command()
@click.argument("collection", required=False, type=click.Choice([c.value for c in Collection]))
def clear(collection: Optional[str]):
    """Delete every record of one collection (or all of them)"""
    target = collection or "ALL collections"
    if not click.confirm(f"⚠️  This will DELETE {target}. Are you sure?"):
        console.print("[yellow]Aborted[/yellow]")
        return

    async def run():
        from app.core.database import get_mirror_store

        store = get_mirror_store()
        await store.initialize()
        try:
            targets = [Collection(collection)] if collection else list(Collection)
            for coll in targets:
                deleted = await store.clear(coll)
                console.print(f"[green]✓[/green] {coll.value}: {deleted} deleted")
        finally:
            await store.close()

    asyncio.run(run())


# ============== Catalog Commands ==============

@cli.group()
@click.option("--backend-url", default=None, help="Mirror API base (defaults to BACKEND_URL)")
@click.pass_context
def catalog(ctx, backend_url: Optional[str]):
    """Browse the catalog through the mirror API, falling back to PandaScore"""
    ctx.ensure_object(dict)
    ctx.obj["backend_url"] = backend_url


def _catalog_service(backend_url: Optional[str]):
    from app.services.catalog import CatalogService
    from app.services.collectors.backend import BackendMirrorClient
    from app.services.collectors.pandascore import PandaScoreCollector

    return CatalogService(BackendMirrorClient(base_url=backend_url), PandaScoreCollector())


async def _close(service):
    await service.mirror.close()
    await service.upstream.close()


def _opponents(match: Record) -> str:
    names = []
    for entry in match.get("opponents") or []:
        opponent = entry.get("opponent") if isinstance(entry, dict) else None
        if isinstance(opponent, dict):
            names.append(opponent.get("name") or str(opponent.get("id")))
    return " vs ".join(names) if names else "TBD"


def _match_table(title: str, matches: List[Record]) -> Table:
    tbl = Table(title=title)
    tbl.add_column("ID", style="dim")
    tbl.add_column("Match", style="cyan")
    tbl.add_column("Scheduled")
    tbl.add_column("Score", justify="center", style="green")
    tbl.add_column("Tournament")

    for match in matches:
        tournament = match.get("tournament") or {}
        tbl.add_row(
            str(match.get("id")),
            _opponents(match),
            format_timestamp(match.get("scheduled_at")),
            format_score(match),
            tournament.get("name") or "-",
        )
    return tbl


@catalog.command()
@click.option(
    "--status", "-s",
    type=click.Choice(["upcoming", "live", "past"]),
    default="upcoming",
    help="Which matches to list",
)
@click.option("--limit", "-n", default=20, help="Maximum rows to show")
@click.pass_context
def matches(ctx, status: str, limit: int):
    """List upcoming, live or past matches"""
    from app.utils.time_format import sort_by_timestamp

    async def run():
        service = _catalog_service(ctx.obj["backend_url"])
        try:
            if status == "upcoming":
                records = await service.get_upcoming_matches()
            elif status == "live":
                records = await service.get_live_matches()
            else:
                records = await service.get_past_matches()
        finally:
            await _close(service)

        records = sort_by_timestamp(records, descending=status == "past")
        console.print(_match_table(f"{status.title()} Matches ({len(records)})", records[:limit]))

    asyncio.run(run())


@catalog.command()
@click.argument("team_id")
@click.pass_context
def team(ctx, team_id: str):
    """Show a team with its roster and matches"""

    async def run():
        service = _catalog_service(ctx.obj["backend_url"])
        try:
            details = await service.get_team_details(team_id)
        finally:
            await _close(service)

        console.print(Panel.fit(
            f"[bold]{details.get('name')}[/bold] ({details.get('acronym') or '-'})\n"
            f"Tournaments: {len(details['tournaments'])}",
            title=f"Team {details.get('id')}"
        ))

        roster = Table(title="Roster")
        roster.add_column("Player", style="cyan")
        roster.add_column("Name")
        roster.add_column("Role")
        for player in details["players"]:
            full_name = " ".join(p for p in (player.get("first_name"), player.get("last_name")) if p)
            roster.add_row(player.get("name") or "-", full_name or "-", player.get("role") or "-")
        console.print(roster)

        console.print(_match_table("Upcoming Matches", details["upcoming_matches"]))
        console.print(_match_table("Past Matches", details["past_matches"]))

    asyncio.run(run())


# ============== Server Command ==============

@cli.command()
@click.option("--host", "-h", default=None, help="Host to bind (defaults to HOST)")
@click.option("--port", "-p", default=None, type=int, help="Port to bind (defaults to PORT)")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Start the API server"""
    import uvicorn

    from app.core.config import get_settings

    settings = get_settings()
    host = host or settings.HOST
    port = port or settings.port

    console.print(Panel.fit(
        "[bold green]VLRBUDDY[/bold green]\n"
        f"Starting API server on {host}:{port}",
        title="Server"
    ))

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    cli()
