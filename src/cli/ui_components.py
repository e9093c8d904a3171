"""Rich tables and panels shared by the `mpk` and `sims` commands."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Any

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import HostFailure
from core.errors import ClientError

Column = tuple[str, Callable[[Any], object]]


def print_banner(console: Console) -> None:
    """Print the banner (skipped with `--json` or `--no-banner`)."""

    title = Text("wroclaw-transit", style="bold cyan")
    subtitle = Text("Live positions • Stops • Timetables", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _cell(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def build_records_table(title: str, columns: Sequence[Column], records: Iterable[Any]) -> Table:
    """Table with one row per record; each column pulls its value with a getter."""

    table = Table(title=title)
    for index, (header, _) in enumerate(columns):
        table.add_column(header, style="cyan" if index == 0 else "white", no_wrap=index == 0)
    for record in records:
        table.add_row(*(_cell(getter(record)) for _, getter in columns))
    return table


def build_failures_panel(failures: Sequence[HostFailure], *, total_hosts: int) -> Panel:
    """Degradation notice listing the mirrors that failed."""

    body = Text()
    body.append(
        f"{len(failures)} of {total_hosts} mirrors failed; data below may be incomplete.\n\n",
        style="bold",
    )
    for failure in failures:
        body.append(f"- {failure.host}", style="magenta")
        body.append(f" [{failure.stage.value}] ", style="dim")
        body.append(f"{failure.error}\n")
    return Panel(body, title=Text("Degraded", style="bold yellow"), border_style="yellow")


def build_error_panel(error: ClientError) -> Panel:
    title = Text(f"{error.kind} error", style="bold red")
    return Panel(Text(str(error)), title=title, border_style="red")
