"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional, Sequence

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.mock_workspace_client import MockWorkspaceClient
from ..adapters.workspace_client import WorkspaceClient
from ..config import AppConfig, get_default_config_path
from ..domain.event_types import get_sorted_filtered_event_types, parse_event_type_duration_param
from ..domain.exceptions import GetSetTimeError
from ..domain.models import EventType
from ..domain.time_utils import format_local_date_string, get_day_name
from ..services.booking_session import BookingSession

app = typer.Typer(
    name="getsettime",
    help="Inspect bookable time slots of a Get Set Time workspace",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use bundled mock data instead of the workspace API.")]
ProviderOption = Annotated[Optional[str], typer.Option("--provider", "-p", help="Service provider id")]
EventTypeOption = Annotated[Optional[str], typer.Option("--event-type", "-e", help="Event type id, slug or duration (e.g. 30min)")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """Load config; mock mode runs on defaults when no file exists."""
    config_path = config_file or get_default_config_path()

    if mock and config_file is None and not config_path.exists():
        return AppConfig()

    return AppConfig.load_from_yaml(config_path)


def _build_client(config: AppConfig, mock: bool):
    if mock:
        return MockWorkspaceClient(timezone=config.get_timezone())
    return WorkspaceClient(
        base_url=config.api_base_url,
        access_token=config.get_access_token(),
        timeout=config.request_timeout
    )


def _parse_date(value: str, tz: str) -> DateTime:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).start_of("day")
    except ValueError as e:
        raise ValueError(f"Could not parse date '{value}' (expected YYYY-MM-DD): {e}") from e


def _resolve_event_type(
    event_types: Sequence[EventType],
    selector: Optional[str],
    default_duration: int
) -> EventType:
    """
    Pick an event type by id, slug or duration; without a selector prefer
    the configured default duration, then the shortest type.
    """
    if not event_types:
        raise ValueError("No event types available. Please create an event type first.")

    if selector:
        for event_type in event_types:
            if selector in (event_type.id, event_type.slug):
                return event_type
        duration = parse_event_type_duration_param(selector)
        if duration is not None:
            matches = get_sorted_filtered_event_types(event_types, duration=duration)
            if matches:
                return matches[0]
        raise ValueError(f"Unknown event type: '{selector}'")

    preferred = get_sorted_filtered_event_types(event_types, duration=default_duration)
    return preferred[0] if preferred else event_types[0]


async def _open_session(
    config: AppConfig,
    mock: bool,
    provider: Optional[str],
    days: Optional[List[DateTime]] = None
) -> BookingSession:
    session = BookingSession(
        _build_client(config, mock),
        timezone=config.get_timezone(),
        days=days,
        calendar_days=config.defaults.calendar_days,
        buffer_days_before=config.defaults.buffer_days_before,
        buffer_days_after=config.defaults.buffer_days_after,
    )
    await session.initialize()

    if provider is not None:
        known = {p.id for p in session.service_providers}
        if provider not in known:
            raise ValueError(f"Unknown service provider: '{provider}'")
        await session.select_provider(provider)

    if session.needs_provider:
        raise ValueError(
            "This workspace routes bookings by department. "
            "Pass --provider (see 'getsettime providers')."
        )

    return session


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date to inspect (YYYY-MM-DD)")],
    event_type: EventTypeOption = None,
    provider: ProviderOption = None,
    show_all: Annotated[bool, typer.Option("--all", "-a", help="Also show disabled slots with their reason.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List the time slots for a date.

    Examples:

        getsettime slots 2025-03-10 --mock

        getsettime slots 2025-03-10 -p p-2 -e 60min --all --mock
    """
    _setup_logging(verbose)

    try:
        config = _load_config(config_file, mock)
        tz = config.get_timezone()
        target = _parse_date(date, tz)

        session = asyncio.run(_open_session(config, mock, provider, days=[target]))
        session.select_event_type(_resolve_event_type(
            session.event_types, event_type, config.defaults.duration_minutes
        ))
        timeslots = session.select_date(target)

        console.print(
            f"\n[bold cyan]{config.workspace_name}[/bold cyan] · "
            f"{session.event_type.title or session.event_type.id} "
            f"({session.event_type.effective_duration} min) · "
            f"{target.format('dddd, YYYY-MM-DD')} ({tz})\n"
        )

        visible = timeslots if show_all else [s for s in timeslots if not s.disabled]
        if not visible:
            console.print("[yellow]⚠ No available time slots for this date.[/yellow]\n")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Time", style="bold")
        table.add_column("Status")
        for slot in visible:
            status = "[green]available[/green]" if not slot.disabled else f"[dim]{slot.reason.value}[/dim]"
            table.add_row(slot.time, status)

        console.print(table)
        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (ValueError, GetSetTimeError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def calendar(
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-n", help="Number of days to show")] = None,
    event_type: EventTypeOption = None,
    provider: ProviderOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show which upcoming dates have at least one open slot.
    """
    _setup_logging(verbose)

    try:
        config = _load_config(config_file, mock)
        tz = config.get_timezone()
        first = _parse_date(start, tz) if start else pendulum.now(tz).start_of("day")
        count = days or config.defaults.calendar_days
        window = [first.add(days=offset) for offset in range(count)]

        session = asyncio.run(_open_session(config, mock, provider, days=window))
        session.select_event_type(_resolve_event_type(
            session.event_types, event_type, config.defaults.duration_minutes
        ))
        availability = session.date_availability()

        table = Table(
            title=f"Availability · {session.event_type.title or session.event_type.id}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Date", style="bold")
        table.add_column("Day")
        table.add_column("Open slots", justify="right")

        for day in session.days:
            key = format_local_date_string(day)
            if availability.get(key):
                session.select_date(day)
                open_count = str(sum(1 for s in session.timeslots() if not s.disabled))
                table.add_row(key, get_day_name(day), f"[green]{open_count}[/green]")
            else:
                table.add_row(key, get_day_name(day), "[dim]–[/dim]")

        console.print()
        console.print(table)
        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (ValueError, GetSetTimeError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def providers(
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List departments and their active service providers.
    """
    _setup_logging(verbose)

    try:
        config = _load_config(config_file, mock)
        session = BookingSession(_build_client(config, mock), timezone=config.get_timezone())
        asyncio.run(session.initialize())

        if not session.departments:
            console.print("[yellow]No departments configured; the general availability applies.[/yellow]")
            return

        table = Table(
            title="Departments & providers",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Department", style="bold yellow")
        table.add_column("Provider id")
        table.add_column("Name")
        table.add_column("E-Mail", style="dim")

        for department in session.departments:
            for provider in session.providers_for_department(department.id):
                table.add_row(department.name, provider.id, provider.name, provider.email)

        console.print()
        console.print(table)
        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (ValueError, GetSetTimeError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]getsettime[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
