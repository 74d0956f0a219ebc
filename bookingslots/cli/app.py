"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.mock_booking_source import MockBookingSource
from ..adapters.rest_client import RestBookingClient
from ..config import AppConfig, ResourceConfig, get_default_config_path
from ..domain.availability import month_grid
from ..domain.exceptions import BookingSlotsError
from ..domain.formatting import MONTH_NAMES, WEEKDAY_NAMES, format_date, format_duration
from ..services.booking_service import BookingService

app = typer.Typer(
    name="bookingslots",
    help="Find and book available time slots for shared resources",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use mock data instead of the booking service.")]
BookingsOption = Annotated[Optional[Path], typer.Option("--bookings", help="JSON file with mock reservations (with --mock).")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, mock: bool, bookings_file: Optional[Path]) -> BookingService:
    """Wire the service to either the mock source or the REST client."""
    if mock:
        source = MockBookingSource(config=config, data_file=bookings_file)
        console.print("[yellow]⚠  MOCK-LÄGE: Använder testdata[/yellow]\n")
    else:
        if config.backend is None:
            raise typer.BadParameter(
                "Ingen 'backend' i konfigurationen. Lägg till den eller kör med --mock."
            )
        source = RestBookingClient(backend=config.backend, timezone=config.timezone)

    return BookingService(
        data_source=source,
        reservation_committer=source,
        timezone=config.timezone,
        booking_horizon_days=config.defaults.booking_horizon_days,
    )


def _resolve_duration(config: AppConfig, resource: ResourceConfig, duration: Optional[int]) -> int:
    """Pick the requested duration, defaulting to the resource's shortest option."""
    if duration is None:
        return resource.durations[0] if resource.durations else config.defaults.duration_minutes

    if resource.durations and duration not in resource.durations:
        offered = ", ".join(format_duration(d) for d in resource.durations)
        console.print(f"[yellow]Obs: {resource.name} erbjuder normalt {offered}.[/yellow]")

    return duration


def _parse_date(value: Optional[str], tz: str):
    if not value:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        raise typer.BadParameter(f"Ogiltigt datum '{value}' (förväntat YYYY-MM-DD): {e}")


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Fel:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def resources(config_file: ConfigOption = None):
    """
    List all configured resources.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    if not config.resources:
        console.print("[yellow]Inga bokningsbara objekt i konfigurationsfilen.[/yellow]")
        return

    table = Table(
        title="Bokningsbara objekt",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Id", style="bold yellow")
    table.add_column("Namn")
    table.add_column("Tider", style="dim")
    table.add_column("Dagar", style="dim")

    for resource in config.resources:
        weekdays = sorted({rule.weekday for rule in resource.availability if rule.is_active})
        table.add_row(
            resource.id,
            resource.name,
            ", ".join(format_duration(d) for d in resource.durations) or "-",
            ", ".join(WEEKDAY_NAMES[day][:3] for day in weekdays) or "-",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def calendar(
    resource: Annotated[str, typer.Argument(help="Resource id or name")],
    month: Annotated[Optional[str], typer.Option("--month", "-m", help="Month to show (YYYY-MM). Defaults to the current month.")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    bookings_file: BookingsOption = None,
    verbose: VerboseOption = False,
):
    """
    Show which days of a month can be booked.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        target = config.resolve_resource(resource)
        tz = config.timezone

        if month:
            try:
                first = pendulum.from_format(month, "YYYY-MM", tz=tz).date()
            except ValueError as e:
                raise typer.BadParameter(f"Ogiltig månad '{month}' (förväntat YYYY-MM): {e}")
        else:
            first = pendulum.today(tz).date().replace(day=1)

        service = _build_service(config, mock, bookings_file)
        bookable = set(
            asyncio.run(
                service.bookable_days(
                    resource_id=target.id,
                    start=first,
                    days=first.days_in_month,
                )
            )
        )
    except (FileNotFoundError, ValueError, BookingSlotsError) as e:
        _fail(e)

    table = Table(
        title=f"{target.name}: {MONTH_NAMES[first.month].capitalize()} {first.year}",
        show_header=True,
        header_style="bold cyan"
    )
    for day in range(1, 8):
        table.add_column(WEEKDAY_NAMES[day][:3], justify="right")

    for week in month_grid(first.year, first.month):
        cells = []
        for day in week:
            if day is None:
                cells.append("")
            elif day in bookable:
                cells.append(f"[bold green]{day.day}[/bold green]")
            else:
                cells.append(f"[dim]{day.day}[/dim]")
        table.add_row(*cells)

    console.print()
    console.print(table)
    console.print(f"[dim]{len(bookable)} bokningsbara dagar[/dim]\n")


@app.command()
def slots(
    resource: Annotated[str, typer.Argument(help="Resource id or name")],
    date: Annotated[Optional[str], typer.Option("--date", help="Date to search (YYYY-MM-DD). Defaults to today.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Booking duration in minutes")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    bookings_file: BookingsOption = None,
    verbose: VerboseOption = False,
):
    """
    List bookable time slots for a resource on one date.

    Examples:

        bookingslots slots tvattstuga --date 2024-11-27

        bookingslots slots gastlagenhet --duration 1440 --mock
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        target = config.resolve_resource(resource)
        target_date = _parse_date(date, config.timezone)
        minutes = _resolve_duration(config, target, duration)

        console.print(f"[bold cyan]🗓️  {target.name}[/bold cyan]")
        console.print(f"   Datum: {format_date(target_date)}")
        console.print(f"   Längd: {format_duration(minutes)}\n")

        service = _build_service(config, mock, bookings_file)
        found = asyncio.run(
            service.find_slots(
                resource_id=target.id,
                target_date=target_date,
                duration_minutes=minutes,
                step_minutes=config.step_minutes_for(target),
                min_lead_minutes=config.min_lead_minutes_for(target),
            )
        )
    except (FileNotFoundError, ValueError, BookingSlotsError) as e:
        _fail(e)

    if not found:
        console.print(
            "[yellow]⚠ Inga lediga tider detta datum.[/yellow]\n"
            "Prova ett annat datum eller en kortare bokningslängd."
        )
        return

    console.print(f"[bold green]✓ {len(found)} lediga tider:[/bold green]\n")
    for slot in found:
        console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def book(
    resource: Annotated[str, typer.Argument(help="Resource id or name")],
    start: Annotated[str, typer.Option("--start", "-s", help="Slot start (YYYY-MM-DD HH:mm)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Booking duration in minutes")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    bookings_file: BookingsOption = None,
    verbose: VerboseOption = False,
):
    """
    Book the slot starting at the given time, if it is available.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        target = config.resolve_resource(resource)
        minutes = _resolve_duration(config, target, duration)

        try:
            slot_start = pendulum.from_format(start, "YYYY-MM-DD HH:mm", tz=config.timezone)
        except ValueError as e:
            raise typer.BadParameter(f"Ogiltig starttid '{start}' (förväntat YYYY-MM-DD HH:mm): {e}")

        service = _build_service(config, mock, bookings_file)

        async def _find_and_book():
            available = await service.find_slots(
                resource_id=target.id,
                target_date=slot_start.date(),
                duration_minutes=minutes,
                step_minutes=config.step_minutes_for(target),
                min_lead_minutes=config.min_lead_minutes_for(target),
            )
            chosen = next((s for s in available if s.start == slot_start), None)
            if chosen is None:
                return None, None
            return chosen, await service.book(resource_id=target.id, slot=chosen)

        chosen, reservation = asyncio.run(_find_and_book())
    except (FileNotFoundError, ValueError, BookingSlotsError) as e:
        _fail(e)

    if chosen is None:
        console.print(
            f"[yellow]⚠ {start} är inte en ledig tid för {target.name} "
            f"({format_duration(minutes)}).[/yellow]\n"
            f"Se lediga tider med: bookingslots slots {target.id} --date {slot_start.format('YYYY-MM-DD')}"
        )
        raise typer.Exit(1)

    console.print(f"[bold green]✓ Bokat:[/bold green] {target.name}, {chosen.format_display()}")
    if reservation.get("id"):
        console.print(f"[dim]Boknings-id: {reservation['id']}[/dim]")
    if mock:
        console.print("[dim]Mock-bokningar sparas inte mellan körningar.[/dim]")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
