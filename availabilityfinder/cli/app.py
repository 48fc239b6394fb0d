"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_store import JsonFileStore
from ..adapters.supabase_store import SupabaseStore
from ..config import AppConfig, get_default_config_path
from ..domain.availability_engine import AvailabilityEngine
from ..domain.exceptions import UpstreamDataError, ValidationError
from ..services.availability_service import AvailabilityService
from ..services.expansion_cache import ExpansionCache

app = typer.Typer(
    name="availabilityfinder",
    help="Resolve bookable time windows for freelancers",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
CategoryOption = Annotated[Optional[str], typer.Option("--category", help="Only count bookings of this category")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the raw response instead of a table")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    try:
        config = AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    return config


def _build_service(config: AppConfig, horizon_strategy: Optional[str] = None) -> AvailabilityService:
    """Wire the configured store and engine into a service."""
    if config.store.backend == "supabase":
        store = SupabaseStore(
            base_url=config.store.supabase_url,
            api_key=config.store.supabase_key,
            timezone=config.timezone,
            timeout=config.store.request_timeout,
        )
    else:
        store = JsonFileStore(data_file=config.store.data_file, timezone=config.timezone)

    engine = AvailabilityEngine(
        timezone=config.timezone,
        horizon_strategy=horizon_strategy or config.horizon_strategy,
    )
    return AvailabilityService(
        rule_store=store,
        booking_store=store,
        engine=engine,
        lookahead_days=config.lookahead_days,
        cache=ExpansionCache(),
    )


def _run(call, *args: Any, **kwargs: Any) -> Dict[str, Any]:
    """Invoke a service call, mapping domain errors to exit codes."""
    try:
        return call(*args, **kwargs)
    except ValidationError as e:
        console.print(f"[bold red]Invalid request:[/bold red] {e}")
        raise typer.Exit(2)
    except UpstreamDataError as e:
        console.print(f"[bold red]Could not load availability data:[/bold red] {e}")
        raise typer.Exit(1)


def _print_json(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def availability(
    freelancer_id: Annotated[str, typer.Argument(help="Freelancer ID")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date to resolve (YYYY-MM-DD)")] = None,
    category: CategoryOption = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """
    Show the bookable blocks of a freelancer on one date.

    Examples:

        availabilityfinder availability f-1 --date 2024-01-08
        availabilityfinder availability f-1 --date 2024-01-08 --category design --json
    """
    config = _load_config(config_file)
    service = _build_service(config)

    response = _run(service.get_availability, freelancer_id, date, category_id=category)

    if as_json:
        _print_json(response)
        return

    blocks = response["availabilityBlocks"]
    if not blocks:
        console.print(f"[yellow]⚠ No availability on {date}.[/yellow]")
        return

    table = Table(
        title=f"Availability {freelancer_id} on {date} ({config.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Block", style="bold yellow")
    table.add_column("Start times")
    table.add_column("Certainty")
    table.add_column("Repeats", style="dim")

    for block in blocks:
        table.add_row(
            f"{block['start']} - {block['end']}",
            ", ".join(block["availableStartTimes"]),
            block["certainty_level"],
            block["recurrence_pattern"] or "-",
        )

    console.print()
    console.print(table)
    console.print()


@app.command("next-available")
def next_available(
    freelancer_id: Annotated[str, typer.Argument(help="Freelancer ID")],
    start: Annotated[Optional[str], typer.Option("--start", help="Search after this date (YYYY-MM-DD). Defaults to today")] = None,
    days: Annotated[Optional[int], typer.Option("--days", help="Number of days to look ahead")] = None,
    exact: Annotated[bool, typer.Option("--exact", help="Resolve full slots per day instead of the count heuristic")] = False,
    category: CategoryOption = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """
    Find the next date with open capacity.
    """
    config = _load_config(config_file)
    service = _build_service(config, horizon_strategy="exact" if exact else None)
    start_date = start or pendulum.today(config.timezone).to_date_string()

    response = _run(service.next_available, freelancer_id, start_date, days=days, category_id=category)

    if as_json:
        _print_json(response)
    elif response["nextAvailableDate"]:
        console.print(f"[bold green]✓ Next available date:[/bold green] {response['nextAvailableDate']}")
    else:
        console.print("[yellow]⚠ No available date within the lookahead window.[/yellow]")


@app.command()
def month(
    freelancer_id: Annotated[str, typer.Argument(help="Freelancer ID")],
    month: Annotated[Optional[str], typer.Option("--month", "-m", help="Month (YYYY-MM). Defaults to the current month")] = None,
    category: CategoryOption = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """
    Show the certainty level and open capacity of every date in a month.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    today = pendulum.today(config.timezone).date()

    response = _run(
        service.month_overview,
        freelancer_id,
        month or today.format("YYYY-MM"),
        category_id=category,
        today=today,
    )

    if as_json:
        _print_json(response)
        return

    if not response["certainty"]:
        console.print("[yellow]⚠ No availability declared in this month.[/yellow]")
        return

    available = set(response["availableDates"])
    table = Table(title=f"Month overview {freelancer_id}", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Certainty")
    table.add_column("Open", justify="center")

    for day, level in response["certainty"].items():
        table.add_row(day, level, "✓" if day in available else "")

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]availabilityfinder[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
