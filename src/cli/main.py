"""`wroclaw-transit` command line (Typer).

Commands pick an endpoint client, run it once and render the result. The
"zero mirrors answered" exit code is decided here; the fan-out fetcher itself
always returns partial results.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, TypeVar

import typer
from rich.console import Console

from adapters.json_exporter import dumps, export_json
from adapters.transit_sources import MpkClient, SimsClient
from cli import doctor
from cli.ui_components import (
    Column,
    build_error_panel,
    build_failures_panel,
    build_records_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.models import FetchOutcome, PositionalBatch
from core.errors import ClientError
from core.observability import configure_logging

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Live transit data for Wrocław (MPK and SIMS mirrors).")
mpk_app = typer.Typer(no_args_is_help=True, help="MPK Wrocław mobile API (HTTP Digest).")
sims_app = typer.Typer(no_args_is_help=True, help="SIMS API, queried on every mirror at once.")
app.add_typer(mpk_app, name="mpk")
app.add_typer(sims_app, name="sims")
app.add_typer(doctor.app, name="doctor")

_console = Console()

_MPK_VEHICLE_COLUMNS: list[Column] = [
    ("Code", lambda v: v.code),
    ("Line", lambda v: v.line),
    ("Type", lambda v: v.vehicle_type),
    ("Course", lambda v: v.course),
    ("x", lambda v: v.latitude),
    ("y", lambda v: v.longitude),
    ("Delay", lambda v: v.delay),
]
_DEPARTURE_COLUMNS: list[Column] = [
    ("Line", lambda d: d.label),
    ("Direction", lambda d: d.direction),
    ("Time", lambda d: d.time),
    ("Course", lambda d: d.course),
]
_COURSE_COLUMNS: list[Column] = [
    ("Course", lambda c: c.course),
    ("Stops", lambda c: len(c.stops)),
    ("First", lambda c: c.stops[0].symbol if c.stops else None),
    ("Last", lambda c: c.stops[-1].symbol if c.stops else None),
]
_SIMS_VEHICLE_COLUMNS: list[Column] = [
    ("Side no.", lambda v: v.side_number),
    ("Line", lambda v: v.line),
    ("Connected", lambda v: v.is_connected),
    ("Lat", lambda v: v.latitude),
    ("Lon", lambda v: v.longitude),
    ("Delay", lambda v: v.delay),
    ("Received", lambda v: v.receive_time.isoformat()),
]
_BUS_STOP_COLUMNS: list[Column] = [
    ("Code", lambda s: s.code),
    ("Name", lambda s: s.name),
    ("Lat", lambda s: s.latitude),
    ("Lon", lambda s: s.longitude),
]
_TIMETABLE_COLUMNS: list[Column] = [
    ("Line", lambda t: t.line.number),
    ("Direction", lambda t: t.direction.name),
    ("Departure", lambda t: t.timetable_departure_time.isoformat()),
    ("Hidden", lambda t: t.departure_hide),
]


@dataclass
class CliState:
    settings: AppSettings
    json_output: bool = False
    output: Path | None = None


def _state(ctx: typer.Context) -> CliState:
    state = ctx.obj
    if not isinstance(state, CliState):
        state = CliState(settings=AppSettings())
        ctx.obj = state
    return state


@app.callback()
def main(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print JSON instead of tables."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also export the result as JSON to this path."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level."),
    no_banner: bool = typer.Option(False, "--no-banner", help="Do not print the banner."),
) -> None:
    settings = AppSettings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.log_json)
    ctx.obj = CliState(settings=settings, json_output=json_output, output=output)
    if not json_output and not no_banner:
        print_banner(_console)


def _emit(state: CliState, value: Any, render: Callable[[], None]) -> None:
    if state.output is not None:
        path = export_json(value=value, output_path=state.output)
        if not state.json_output:
            _console.print(f"[green]Saved JSON to:[/green] {path}")
    if state.json_output:
        typer.echo(dumps(value))
    else:
        render()


def _run_mpk(
    state: CliState,
    call: Callable[[MpkClient], Awaitable[T]],
    render: Callable[[T], None],
) -> None:
    client = MpkClient(state.settings)
    try:
        value = asyncio.run(call(client))
    except ClientError as exc:
        _console.print(build_error_panel(exc))
        raise typer.Exit(code=1) from exc
    _emit(state, value, lambda: render(value))


def _run_sims(
    state: CliState,
    call: Callable[[SimsClient], Awaitable[FetchOutcome[T]]],
    title: str,
    columns: Sequence[Column],
) -> None:
    client = SimsClient(state.settings)
    outcome = asyncio.run(call(client))

    def render() -> None:
        if not outcome.all_failed:
            _console.print(build_records_table(title, columns, outcome.items))
        if outcome.errors:
            _console.print(build_failures_panel(outcome.errors, total_hosts=len(client.hosts)))

    _emit(state, outcome, render)
    if outcome.all_failed:
        raise typer.Exit(code=1)


@mpk_app.command("buses")
def mpk_buses(ctx: typer.Context) -> None:
    """Current vehicle positions."""

    def render(batch: PositionalBatch[Any]) -> None:
        _console.print(build_records_table(f"Vehicles @ {batch.metadata}", _MPK_VEHICLE_COLUMNS, batch.records))

    _run_mpk(_state(ctx), lambda client: client.get_buses(), render)


@mpk_app.command("post-info")
def mpk_post_info(ctx: typer.Context, symbol: str = typer.Argument(..., help="Stop (post) symbol.")) -> None:
    """Upcoming departures from a stop."""

    _run_mpk(
        _state(ctx),
        lambda client: client.get_post_info(symbol),
        lambda departures: _console.print(build_records_table(f"Stop {symbol}", _DEPARTURE_COLUMNS, departures)),
    )


@mpk_app.command("course-posts")
def mpk_course_posts(
    ctx: typer.Context,
    courses: list[str] = typer.Argument(..., help="One or more course identifiers."),
) -> None:
    """Stops visited by each course."""

    _run_mpk(
        _state(ctx),
        lambda client: client.get_course_posts(courses),
        lambda infos: _console.print(build_records_table("Courses", _COURSE_COLUMNS, infos)),
    )


@mpk_app.command("post-plate")
def mpk_post_plate(
    ctx: typer.Context,
    post: str = typer.Argument(..., help="Stop (post) symbol."),
    line: str = typer.Argument(..., help="Line number."),
) -> None:
    """Printed timetable of a stop for one line."""

    def render(plate: Any) -> None:
        rows = [
            (table.valid_from, direction.direction, day.day_name, hour.hour, " ".join(hour.minutes))
            for table in plate.time_table
            for direction in table.values
            for day in direction.days
            for hour in day.hours
        ]
        columns: list[Column] = [
            ("Valid from", lambda r: r[0]),
            ("Direction", lambda r: r[1]),
            ("Day", lambda r: r[2]),
            ("Hour", lambda r: r[3]),
            ("Minutes", lambda r: r[4]),
        ]
        _console.print(build_records_table(f"Line {plate.line} @ {plate.post}", columns, rows))

    _run_mpk(_state(ctx), lambda client: client.get_post_plate(post, line), render)


@sims_app.command("buses")
def sims_buses(ctx: typer.Context) -> None:
    """Vehicle positions from every mirror."""

    _run_sims(_state(ctx), lambda client: client.get_buses(), "Vehicles", _SIMS_VEHICLE_COLUMNS)


@sims_app.command("stops")
def sims_stops(ctx: typer.Context) -> None:
    """Bus stops from every mirror."""

    _run_sims(_state(ctx), lambda client: client.get_bus_stops(), "Bus stops", _BUS_STOP_COLUMNS)


@sims_app.command("timetable")
def sims_timetable(ctx: typer.Context, code: str = typer.Argument(..., help="Bus stop code.")) -> None:
    """Departures from one stop, from every mirror."""

    _run_sims(
        _state(ctx),
        lambda client: client.get_timetable(code),
        f"Timetable {code}",
        _TIMETABLE_COLUMNS,
    )


def run() -> None:
    app()
