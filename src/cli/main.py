"""BoxCycle CLI: delivery scheduling and order generation.

Runs the generation engine in-process against the configured database.

Usage:
    boxcycle schedule              Show the next delivery dates
    boxcycle generate              Generate orders for the due cycle
    boxcycle cron                  Scheduled run (records + notifies)
    boxcycle cycle-state <id>      Show derived state of a cycle
    boxcycle attach <sub-id>       Attach a new subscription to its first cycle
    boxcycle serve                 Start the HTTP API
"""

import asyncio
import logging
from datetime import date
from typing import Optional

import typer
from rich.console import Console

from src.cli.config import load_config
from src.cli.output import (
    format_assignment,
    format_cycle_state,
    format_generation_result,
    format_schedule,
)
from src.db.connection import get_db_context, init_db
from src.delivery.config import get_delivery_config
from src.delivery.cycle_state import compute_cycle_state
from src.delivery.factory import (
    build_assignment_resolver,
    build_customer_notifier,
    build_generator,
    build_notifier,
)
from src.delivery.schedule import calculate_next_n_delivery_dates, is_first_delivery
from src.delivery.triggers import run_admin_generation, run_scheduled_generation
from src.errors import DomainError, NotFoundError
from src.services import DeliveryCycleService, SiteConfigService
from src.utils.paths import ensure_dirs_exist

_log = logging.getLogger(__name__)

app = typer.Typer(
    name="boxcycle",
    help="Delivery cycle scheduling and subscription order generation",
    no_args_is_help=True,
)

console = Console()

# --- Global state ---
_config_path: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to boxcycle.yaml config file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """BoxCycle CLI for subscription box delivery automation."""
    global _config_path
    _config_path = config
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _prepare_db() -> None:
    ensure_dirs_exist()
    init_db()


def _fail(error: Exception) -> None:
    code = getattr(error, "code", None)
    prefix = f"[{code}] " if code else ""
    console.print(f"[red]Error:[/red] {prefix}{error}")
    if isinstance(error, DomainError) and error.remediation:
        console.print(f"  {error.remediation}")
    raise typer.Exit(1)


@app.command()
def schedule(
    count: int = typer.Option(3, "--count", "-n", min=1, max=24, help="Number of dates"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show the next delivery dates computed from site config."""
    _prepare_db()

    async def _run():
        with get_db_context() as db:
            config = get_delivery_config(await SiteConfigService(db).get_config_map())
        today = date.today()
        dates = calculate_next_n_delivery_dates(config, count, today)
        console.print(
            format_schedule(dates, is_first_delivery(config, today), as_json=json_output)
        )

    asyncio.run(_run())


@app.command()
def generate(
    cycle_id: Optional[str] = typer.Option(
        None, "--cycle-id", help="Cycle to generate for (default: earliest due cycle)"
    ),
    performed_by: str = typer.Option("admin", "--performed-by", help="Actor for history"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Generate subscription orders for a delivery cycle."""
    _prepare_db()
    cfg = load_config(config_path=_config_path)
    customer_notifier = build_customer_notifier(cfg.notifications)

    async def _run():
        try:
            with get_db_context() as db:
                result = await run_admin_generation(
                    build_generator(db, customer_notifier), cycle_id, performed_by
                )
        finally:
            await customer_notifier.drain()
        console.print(format_generation_result(result, as_json=json_output))
        if result.has_errors:
            raise typer.Exit(2)

    try:
        asyncio.run(_run())
    except DomainError as e:
        _fail(e)


@app.command()
def cron(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Run the scheduled generation pass and notify the operator."""
    _prepare_db()
    cfg = load_config(config_path=_config_path)
    notifier = build_notifier(cfg.notifications)
    customer_notifier = build_customer_notifier(cfg.notifications)

    async def _run():
        try:
            with get_db_context() as db:
                return await run_scheduled_generation(
                    build_generator(db, customer_notifier), notifier, SiteConfigService(db)
                )
        finally:
            await notifier.drain()
            await customer_notifier.drain()

    try:
        result = asyncio.run(_run())
    except Exception as e:
        _log.debug("Scheduled run failed", exc_info=True)
        _fail(e)
    console.print(format_generation_result(result, as_json=json_output))


@app.command("cycle-state")
def cycle_state(
    cycle_id: str = typer.Argument(help="Delivery cycle ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show derived flags and labels for a delivery cycle."""
    _prepare_db()

    async def _run():
        with get_db_context() as db:
            cycle = await DeliveryCycleService(db).get_delivery_cycle_by_id(cycle_id)
            if cycle is None:
                raise NotFoundError("Delivery cycle", cycle_id)
            state = compute_cycle_state(cycle)
        console.print(format_cycle_state(state, as_json=json_output))

    try:
        asyncio.run(_run())
    except DomainError as e:
        _fail(e)


@app.command()
def attach(
    subscription_id: str = typer.Argument(help="Subscription ID"),
    performed_by: str = typer.Option("admin", "--performed-by", help="Actor for history"),
):
    """Attach a new subscription to its first delivery cycle."""
    _prepare_db()

    async def _run():
        with get_db_context() as db:
            assignment = await build_assignment_resolver(db).attach_new_subscription(
                subscription_id, performed_by
            )
        console.print(format_assignment(assignment))

    try:
        asyncio.run(_run())
    except DomainError as e:
        _fail(e)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Start the BoxCycle HTTP API with uvicorn."""
    import uvicorn

    cfg = load_config(config_path=_config_path)
    final_host = host or cfg.server.host
    final_port = port or cfg.server.port

    _prepare_db()
    console.print(f"[bold]Starting BoxCycle API on {final_host}:{final_port}[/bold]")
    uvicorn.run(
        "src.api.main:app",
        host=final_host,
        port=final_port,
        workers=1,
        log_level=cfg.server.log_level,
        lifespan="on",
    )


if __name__ == "__main__":
    app()
