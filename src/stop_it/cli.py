"""Command-line interface for the activity daemon."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from .config import DaemonSettings, IngestionMode
from .paths import get_log_path

app = typer.Typer(help="Browser activity monitor and Pomodoro timer.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


@app.command()
def run(
    log_path: Optional[Path] = typer.Option(
        None,
        "--log",
        "-l",
        path_type=Path,
        help="Location of the activity log file.",
    ),
    mode: IngestionMode = typer.Option(
        IngestionMode.POLLER,
        "--mode",
        case_sensitive=False,
        help="Event sources: compositor poller, browser relay, both, or a single native message.",
    ),
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the relay."),
    port: int = typer.Option(8765, "--port", min=1, max=65535, help="TCP port for the relay."),
    poll_seconds: float = typer.Option(
        1.0,
        "--interval",
        min=0.2,
        help="Window polling interval in seconds.",
    ),
    work_minutes: float = typer.Option(25.0, "--work-minutes", min=0.1, help="Work phase length."),
    break_minutes: float = typer.Option(5.0, "--break-minutes", min=0.1, help="Break phase length."),
    notify_switches: bool = typer.Option(
        False,
        "--notify-switches/--no-notify-switches",
        help="Also send a desktop notification on every domain switch.",
    ),
) -> None:
    """Track focused domains until interrupted, then print the session summary."""
    from .daemon import Daemon, StartupError, run_native_once

    log_path = log_path or get_log_path()

    if mode is IngestionMode.NATIVE:
        try:
            run_native_once(sys.stdin.buffer, sys.stdout.buffer, log_path=log_path)
        except StartupError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        return

    settings = DaemonSettings.from_intervals(
        poll_seconds=poll_seconds,
        work_minutes=work_minutes,
        break_minutes=break_minutes,
        relay_host=host,
        relay_port=port,
        notify_domain_switches=notify_switches,
    )
    typer.echo("\U0001f345 Stop It - Browser Activity Monitor & Pomodoro Timer")
    typer.echo("=" * 54)
    typer.echo(f"Pomodoro settings: {work_minutes:g}min work / {break_minutes:g}min break")
    typer.echo(f"Event sources: {mode.value}")
    typer.echo(f"Logging to: {log_path}")
    typer.echo("Monitoring active window... Press Ctrl+C to stop and see stats\n")

    daemon = Daemon(settings, mode=mode, log_path=log_path, echo=typer.echo)
    try:
        daemon.run()
    except StartupError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
