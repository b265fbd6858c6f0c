from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from app.schemas import ScanResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_scan
from logging_config import configure_logging
from services.aggregator import build_default_aggregator


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Discover hardware sensors locally or query a running sensor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Sensor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds for remote commands.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("scan")
def scan_command(
    intervals: bool = typer.Option(
        False,
        "--intervals/--no-intervals",
        help="Also print the UpdateInterval line of every reading.",
    ),
    grouped: bool = typer.Option(
        False,
        "--grouped",
        help="Group readings by category instead of printing report lines.",
    ),
) -> None:
    """Scan the sensors of this machine."""
    result = build_default_aggregator().scan_all()
    if grouped:
        render_scan(ScanResponse.from_result(result).model_dump(mode="json"))
        return

    if not result.readings:
        typer.secho("No sensors found.", fg=typer.colors.YELLOW, err=True)
    typer.echo(result.render(), nl=False)
    if intervals:
        typer.echo(result.render_intervals(), nl=False)


@app.command("fetch")
def fetch_command(
    ctx: typer.Context,
    latest: bool = typer.Option(
        False,
        "--latest",
        help="Return the last published scan instead of triggering a new one.",
    ),
) -> None:
    """Fetch a scan from a running sensor service."""
    state = _get_state(ctx)
    payload = state.client.get_scan(latest=latest)
    render_scan(payload)
