from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import httpx
import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_cycle, render_summary, render_weather
from logging_config import configure_logging
from services.scheduler import build_default_scheduler


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the weather sampler service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Sampler API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("current")
def current_command(ctx: typer.Context) -> None:
    """Show the latest observation for every city."""
    state = _get_state(ctx)
    render_weather(state.client.list_weather())


@app.command("summary")
def summary_command(
    ctx: typer.Context,
    city: str = typer.Argument(..., help="City to summarize."),
    day: Optional[str] = typer.Option(
        None,
        "--day",
        help="UTC day as YYYY-MM-DD (defaults to today).",
    ),
) -> None:
    """Show the daily summary for a city."""
    state = _get_state(ctx)
    render_summary(state.client.get_summary(city, day))


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    count: int = typer.Option(0, "--count", "-n", min=0, help="Stop after N polls (0 polls forever)."),
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between polls (defaults to CLI_WATCH_INTERVAL or 30).",
    ),
) -> None:
    """Poll the current weather; failed polls are reported and retried next interval."""
    state = _get_state(ctx)
    wait = interval if interval is not None else state.config.watch_interval
    polls = 0
    while True:
        try:
            render_weather(state.client.fetch_weather())
        except httpx.HTTPError as exc:
            typer.secho(f"Poll failed: {exc}", fg=typer.colors.YELLOW, err=True)
        polls += 1
        if count and polls >= count:
            return
        time.sleep(wait)


@app.command("sample")
def sample_command(
    cycles: int = typer.Option(1, "--cycles", min=1, help="Number of sampling cycles to run."),
) -> None:
    """Run sampling cycles locally against the configured stores."""
    configure_logging()
    scheduler = build_default_scheduler()
    try:
        reports = scheduler.run_cycles(cycles)
    finally:
        scheduler.shutdown()
        build_default_scheduler.cache_clear()
    for index, report in enumerate(reports, start=1):
        render_cycle(index, report.sampled, report.rolled_up, report.failures)
    if reports and all(outcome.errors and not outcome.sampled for outcome in reports[-1].outcomes):
        raise typer.Exit(code=1)


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", "-p", min=1, max=65535, help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes (development only)."),
) -> None:
    """Serve the query API and web page; the sampler runs inside the server."""
    uvicorn.run("app.main:app", host=host, port=port, reload=reload)
