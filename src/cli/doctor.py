"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.transit_sources import MpkClient
from core.config import AppSettings, write_user_env_vars
from core.errors import ClientError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or exc.__class__.__name__


async def _check_hosts(urls: list[str], settings: AppSettings) -> list[tuple[bool, str]]:
    return list(await asyncio.gather(*(_check_http(url, settings) for url in urls)))


async def _check_digest(settings: AppSettings, symbol: str) -> tuple[bool, str]:
    try:
        departures = await MpkClient(settings).get_post_info(symbol)
    except ClientError as exc:
        return False, f"{exc.kind}: {exc}"
    return True, f"{len(departures)} departures for stop {symbol}"


@app.command()
def run(
    symbol: str = typer.Option("20329", "--symbol", help="Stop used for the MPK digest handshake check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="wroclaw-transit Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("MPK host", "OK", f"{settings.mpk_base_url}/{settings.mpk_path}")
    table.add_row("MPK user", "OK", settings.mpk_username)
    table.add_row("SIMS mirrors", "OK", f"{len(settings.sims_mirrors)} configured")

    # Connectivity (best-effort)
    results = asyncio.run(_check_hosts(list(settings.sims_mirrors), settings))
    for mirror, (ok, detail) in zip(settings.sims_mirrors, results):
        table.add_row(f"Mirror {mirror}", "OK" if ok else "FAIL", detail)

    ok_auth, detail_auth = asyncio.run(_check_digest(settings, symbol))
    table.add_row("MPK digest auth", "OK" if ok_auth else "FAIL", detail_auth)

    _console.print(table)

    if not ok_auth:
        _console.print(
            "\n[yellow]Note:[/yellow] run `doctor setup-mpk` if the MPK credentials have changed."
        )


@app.command(name="setup-mpk")
def setup_mpk() -> None:
    """Interactive MPK credential setup (stored in the user config .env)."""

    settings = AppSettings()
    username = typer.prompt("MPK username", default=settings.mpk_username, show_default=True).strip()
    password = typer.prompt("MPK password", hide_input=True, confirmation_prompt=False).strip()

    if not username or not password:
        raise typer.BadParameter("username and password are required")

    env_path = write_user_env_vars(
        {
            "WROCLAW_TRANSIT_MPK_USERNAME": username,
            "WROCLAW_TRANSIT_MPK_PASSWORD": password,
        }
    )

    _console.print(f"[green]Saved MPK config to:[/green] {env_path}")
