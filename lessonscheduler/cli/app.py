"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from pendulum import Date
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..adapters.memory_store import InMemoryLessonStore, InMemoryProfileClient
from ..adapters.rpc_client import RpcSchedulingClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SchedulingError
from ..domain.models import (
    RecurrenceOptions,
    RecurrencePattern,
    RecurrenceRequest,
    ReplacementTarget,
    ScheduleRequest,
    combine_local,
)
from ..domain.recurrence import RecurrenceExpander
from ..domain.time_of_day import parse_time_of_day
from ..services.scheduling_coordinator import ScheduleOutcome, SchedulingCoordinator

app = typer.Typer(
    name="lessonscheduler",
    help="Plan and book lessons on a coach's calendar",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


class LoggingScheduleListener:
    """Reports which cached views a committed booking invalidates."""

    def client_record_changed(self, client_id: str) -> None:
        logger.debug("Client record changed: %s", client_id)

    def weekly_schedule_changed(self, client_id: str) -> None:
        logger.debug("Weekly schedule changed: %s", client_id)

    def coach_calendar_changed(self, coach_id: str) -> None:
        logger.debug("Coach calendar changed: %s", coach_id)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """
    Lesson scheduler.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    try:
        config = AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    # --verbose wins over the configured level
    root = logging.getLogger()
    if root.level != logging.DEBUG:
        root.setLevel(config.log_level)
    return config


def _parse_date(value: str, label: str) -> Date:
    try:
        parsed = pendulum.parse(value, exact=True)
    except ValueError as e:
        console.print(f"[red]Could not parse {label} {value!r}: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(parsed, Date) or isinstance(parsed, pendulum.DateTime):
        console.print(f"[red]{label.capitalize()} must be a date (YYYY-MM-DD), got {value!r}[/red]")
        raise typer.Exit(1)
    return parsed


def _build(config: AppConfig) -> Tuple[SchedulingCoordinator, Optional[InMemoryLessonStore]]:
    """
    Wire the coordinator to the configured collaborators.

    Returns the in-memory store too (None when talking to the API) so that
    bookings can be written back to the data file.
    """
    expander = RecurrenceExpander(max_occurrences=config.max_occurrences)
    coordinator_kwargs = dict(
        recurrence_expander=expander,
        listeners=[LoggingScheduleListener()],
        clock=lambda: pendulum.now(config.timezone),
    )

    if config.api is not None:
        client = RpcSchedulingClient(
            base_url=config.api.base_url,
            token=config.api.token,
            timezone=config.timezone,
            timeout=config.api.timeout_seconds,
        )
        return SchedulingCoordinator(client, client, **coordinator_kwargs), None

    if config.data_file is not None:
        store = InMemoryLessonStore.from_json(config.data_file)
    else:
        store = InMemoryLessonStore()
    profiles = InMemoryProfileClient({config.coach_id: config.working_hours.to_domain()})

    return SchedulingCoordinator(store, profiles, **coordinator_kwargs), store


def _finish(config: AppConfig, store: Optional[InMemoryLessonStore], outcome: ScheduleOutcome) -> None:
    """Print the outcome and persist local data on success."""
    if not outcome.ok:
        console.print(f"[bold red]Error:[/bold red] {outcome.error.message}")
        raise typer.Exit(1)

    if store is not None and config.data_file is not None:
        store.save_json(config.data_file)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Time")
    table.add_column("Title", style="dim")
    for booking in outcome.bookings:
        table.add_row(
            booking.local_datetime.format("dddd, MMM D, YYYY", locale="en"),
            booking.local_datetime.format("h:mm A", locale="en"),
            booking.title,
        )

    summary = f"[bold green]✓ {outcome.total_lessons} lesson(s) scheduled[/bold green]"
    if outcome.series_id:
        summary += f"\nSeries: {outcome.series_id}"
    if outcome.skipped:
        summary += f"\n[yellow]{len(outcome.skipped)} date(s) skipped because they were already booked[/yellow]"

    console.print(Panel(summary, expand=False))
    console.print(table)


@app.command()
def slots(
    date: Annotated[str, typer.Option("--date", help="Day to show (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
):
    """
    Show bookable time slots for a day and whether they are free.
    """
    config = _load_config(config_file)
    day = _parse_date(date, "date")
    coordinator, _ = _build(config)

    try:
        availability = asyncio.run(coordinator.day_availability(config.coach_id, day))
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(1)

    if not availability:
        console.print("[yellow]⚠ No bookable slots on this day.[/yellow]")
        return

    table = Table(
        title=f"Slots on {day.format('dddd, MMM D, YYYY', locale='en')}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold yellow")
    table.add_column("Status")
    for entry in availability:
        status = "[green]free[/green]" if entry.available else "[red]booked[/red]"
        table.add_row(entry.slot.label, status)

    console.print(table)


@app.command()
def expand(
    date: Annotated[str, typer.Option("--date", help="First lesson date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", help='Lesson time, e.g. "2:30 PM"')],
    end: Annotated[str, typer.Option("--end", help="Last possible date (YYYY-MM-DD)")],
    pattern: Annotated[RecurrencePattern, typer.Option("--pattern", "-p")] = RecurrencePattern.WEEKLY,
    interval: Annotated[int, typer.Option("--interval", "-i", help="Pattern multiplier")] = 1,
    all_days: Annotated[bool, typer.Option("--all-days", help="Ignore working days")] = False,
    config_file: ConfigOption = None,
):
    """
    Preview the lesson dates a recurrence would produce, without booking.
    """
    config = _load_config(config_file)
    coordinator, _ = _build(config)

    try:
        recurrence = RecurrenceRequest(
            anchor=combine_local(_parse_date(date, "date"), parse_time_of_day(time)),
            end_date=_parse_date(end, "end date"),
            pattern=pattern,
            interval=interval,
        )
        occurrences = asyncio.run(
            coordinator.preview_series(config.coach_id, recurrence, override_working_days=all_days)
        )
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(1)

    if not occurrences:
        console.print("[yellow]⚠ No valid lesson dates found within the specified range.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(occurrences)} lesson date(s):[/bold green]\n")
    for occurrence in occurrences:
        console.print(f"  {occurrence.local_datetime.format('ddd, MMM D, YYYY h:mm A', locale='en')}")


@app.command()
def book(
    client: Annotated[str, typer.Option("--client", help="Client ID")],
    date: Annotated[str, typer.Option("--date", help="Lesson date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", help='Lesson time, e.g. "2:30 PM"')],
    name: Annotated[Optional[str], typer.Option("--name", help="Client name for the lesson title")] = None,
    no_email: Annotated[bool, typer.Option("--no-email", help="Do not email the client")] = False,
    override_days: Annotated[bool, typer.Option("--override-days", help="Allow non-working days")] = False,
    config_file: ConfigOption = None,
):
    """
    Book a single lesson.
    """
    config = _load_config(config_file)
    coordinator, store = _build(config)

    request = ScheduleRequest(
        coach_id=config.coach_id,
        client_id=client,
        selected_date=_parse_date(date, "date"),
        selected_time=time,
        client_name=name,
        send_email=config.send_email and not no_email,
        timezone=config.timezone,
        override_working_days=override_days,
    )
    _finish(config, store, asyncio.run(coordinator.schedule(request)))


@app.command("book-series")
def book_series(
    client: Annotated[str, typer.Option("--client", help="Client ID")],
    date: Annotated[str, typer.Option("--date", help="First lesson date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", help='Lesson time, e.g. "2:30 PM"')],
    end: Annotated[str, typer.Option("--end", help="Last possible date (YYYY-MM-DD)")],
    pattern: Annotated[RecurrencePattern, typer.Option("--pattern", "-p")] = RecurrencePattern.WEEKLY,
    interval: Annotated[int, typer.Option("--interval", "-i", help="Pattern multiplier")] = 1,
    name: Annotated[Optional[str], typer.Option("--name", help="Client name for the lesson title")] = None,
    no_email: Annotated[bool, typer.Option("--no-email", help="Do not email the client")] = False,
    override_days: Annotated[bool, typer.Option("--override-days", help="Allow non-working days")] = False,
    config_file: ConfigOption = None,
):
    """
    Book a recurring series of lessons.
    """
    config = _load_config(config_file)
    coordinator, store = _build(config)

    request = ScheduleRequest(
        coach_id=config.coach_id,
        client_id=client,
        selected_date=_parse_date(date, "date"),
        selected_time=time,
        client_name=name,
        recurrence=RecurrenceOptions(
            end_date=_parse_date(end, "end date"),
            pattern=pattern,
            interval=interval,
        ),
        send_email=config.send_email and not no_email,
        timezone=config.timezone,
        override_working_days=override_days,
    )
    _finish(config, store, asyncio.run(coordinator.schedule(request)))


@app.command()
def replace(
    client: Annotated[str, typer.Option("--client", help="Client ID")],
    program: Annotated[str, typer.Option("--program", help="Program ID holding the workout")],
    date: Annotated[str, typer.Option("--date", help="Workout day (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", help='Lesson time, e.g. "2:30 PM"')],
    title: Annotated[str, typer.Option("--title", help="Lesson title")] = "Lesson",
    description: Annotated[str, typer.Option("--description", help="Lesson notes")] = "",
    config_file: ConfigOption = None,
):
    """
    Replace a scheduled program workout with a lesson.
    """
    config = _load_config(config_file)
    coordinator, store = _build(config)

    request = ScheduleRequest(
        coach_id=config.coach_id,
        client_id=client,
        selected_date=_parse_date(date, "date"),
        selected_time=time,
        replacement=ReplacementTarget(program_id=program, title=title, description=description),
        timezone=config.timezone,
    )
    _finish(config, store, asyncio.run(coordinator.schedule(request)))


@app.command()
def version():
    """
    Show version information.
    """
    console.print(f"[bold cyan]lessonscheduler[/bold cyan] version {__version__}")
