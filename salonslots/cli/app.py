"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional, Tuple, Union

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.http_store import HttpSalonStore
from ..adapters.memory_store import InMemorySalonStore
from ..adapters.yaml_store import load_store_from_yaml
from ..config import AppConfig, get_default_config_path
from ..domain.conflicts import peak_concurrency
from ..domain.exceptions import AvailabilityError
from ..domain.models import Weekday
from ..schemas import SlotCheckRead
from ..services.availability import AvailabilityService
from ..services.schedule import ScheduleLookup

app = typer.Typer(
    name="salonslots",
    help="Check salon appointment availability",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]

Store = Union[InMemorySalonStore, HttpSalonStore]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Salon availability engine command line.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load(config_file: Optional[Path]) -> Tuple[AppConfig, Store, AvailabilityService]:
    """Load the config and wire the store into the availability service."""
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)

    store: Store
    if config.backend == "http":
        store = HttpSalonStore(
            base_url=config.api_base_url,
            token=config.api_token,
            timeout=config.api_timeout_seconds
        )
    else:
        store = load_store_from_yaml(config.data_file)

    service = AvailabilityService(
        schedule=ScheduleLookup(hours_provider=store, closure_provider=store),
        appointments=store,
        capacities=store,
        slot_step_minutes=config.defaults.slot_step_minutes,
        default_capacity=config.defaults.capacity,
        default_timezone=config.default_timezone,
    )
    return config, store, service


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    salon_id: Annotated[str, typer.Argument(help="Salon id")],
    date: Annotated[str, typer.Option("--date", help="Date (YYYY-MM-DD), salon-local")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Appointment duration in minutes")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the endpoint JSON payload.")] = False,
    config_file: ConfigOption = None,
):
    """
    List every slot of a day and whether it can take a new appointment.

    Examples:

        salonslots slots downtown --date 2024-11-25

        salonslots slots downtown --date 2024-11-25 --duration 60 --json
    """
    try:
        config, store, service = _load(config_file)
        salon = store.get_salon(salon_id)
        duration_minutes = duration if duration is not None else config.defaults.duration_minutes

        response = service.describe_day(salon, date, duration_minutes)

        if as_json:
            typer.echo(json.dumps(response.to_payload(), indent=2))
            return

        if not response.available_slots:
            console.print(f"[yellow]⚠ {salon.name} is closed on {date}.[/yellow]")
            return

        table = Table(
            title=f"{salon.name} · {date} · {duration_minutes} min",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Time", style="bold")
        table.add_column("Status")
        table.add_column("Reason", style="dim")

        for slot in response.available_slots:
            status = "[green]✓ available[/green]" if slot.available else "[red]✗ unavailable[/red]"
            table.add_row(slot.time, status, slot.reason or "")

        booked = service.load_day(salon.id, date, salon.timezone)
        free = sum(1 for slot in response.available_slots if slot.available)

        console.print()
        console.print(table)
        console.print(
            f"\n{free}/{len(response.available_slots)} slots open · "
            f"capacity {response.salon_capacity} · "
            f"{len(booked)} booked (peak {peak_concurrency(booked)} at once)\n"
        )

    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        _fail(e)


@app.command()
def check(
    salon_id: Annotated[str, typer.Argument(help="Salon id")],
    date: Annotated[str, typer.Option("--date", help="Date (YYYY-MM-DD), salon-local")],
    time: Annotated[str, typer.Option("--time", help="Start time (HH:MM), salon-local")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Appointment duration in minutes")] = None,
    exclude: Annotated[Optional[List[str]], typer.Option("--exclude", help="Appointment id to ignore (repeatable).")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
    config_file: ConfigOption = None,
):
    """
    Check whether a single slot can take an appointment.
    """
    try:
        config, store, service = _load(config_file)
        salon = store.get_salon(salon_id)
        duration_minutes = duration if duration is not None else config.defaults.duration_minutes

        result = service.is_time_slot_available(
            salon_id=salon.id,
            date=date,
            time=time,
            duration_minutes=duration_minutes,
            exclude_appointment_ids=exclude or [],
            salon_timezone=salon.timezone,
        )

        if as_json:
            typer.echo(json.dumps(SlotCheckRead.from_check(result).to_payload(), indent=2))
            return

        if result.available:
            body = f"[bold green]✓ {date} {time} is available[/bold green]"
        else:
            body = f"[bold red]✗ {date} {time} is not available[/bold red]\n\n{result.reason}"

        console.print(Panel.fit(
            f"{body}\n\n[bold]Capacity:[/bold] {result.capacity_info.format_display()}",
            title=salon.name
        ))

        if not result.available:
            raise typer.Exit(2)

    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        _fail(e)


@app.command()
def hours(
    salon_id: Annotated[str, typer.Argument(help="Salon id")],
    config_file: ConfigOption = None,
):
    """
    Show a salon's weekly business hours.
    """
    try:
        _, store, _ = _load(config_file)
        salon = store.get_salon(salon_id)

        table = Table(
            title=f"{salon.name} ({salon.timezone})",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Day", style="bold yellow")
        table.add_column("Hours")

        for weekday in Weekday:
            record = store.get_business_hours(salon.id, weekday)
            if record is None or record.is_closed:
                table.add_row(weekday.value.title(), "[dim]closed[/dim]")
            else:
                table.add_row(weekday.value.title(), f"{record.open_time} – {record.close_time}")

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        _fail(e)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
