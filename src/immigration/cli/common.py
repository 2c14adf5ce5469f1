"""Shared utilities for immigration CLI commands."""
import asyncio
import re
import sys
from pathlib import Path
from typing import Any, Coroutine, Optional

import click

from ..errors import ImmigrationError
from ..migrate import Migrate

# Verbosity levels
VERBOSITY_QUIET = 0
VERBOSITY_NORMAL = 1
VERBOSITY_VERBOSE = 2

SUCCESS_ICON = "✔"
FAIL_ICON = "⨯"
NEXT_ICON = "➜"

_DURATION_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}
_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$")


def parse_duration(value: str) -> float:
    """Parse a duration like '500ms', '10s', '5m' or '1h' into seconds.

    A bare number is read as milliseconds.

    Raises:
        click.BadParameter: If the value is not a duration.
    """
    match = _DURATION_RE.match(value)
    if not match:
        raise click.BadParameter(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return float(amount) * _DURATION_UNITS[unit or "ms"]


def format_duration(seconds: float) -> str:
    """Render seconds the short way ('350ms', '2.5s', '10m')."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s".replace(".0s", "s")
    if seconds < 3600:
        return f"{seconds / 60:.1f}m".replace(".0m", "m")
    return f"{seconds / 3600:.1f}h".replace(".0h", "h")


def should_print(verbosity: int, message_level: int) -> bool:
    """Determine if a message should be printed based on verbosity settings."""
    return verbosity >= message_level


def echo_verbose(message: str, verbosity: int) -> None:
    """Print a message only in verbose mode."""
    if should_print(verbosity, VERBOSITY_VERBOSE):
        click.echo(message, err=False)


def echo_normal(message: str, verbosity: int) -> None:
    """Print a message in normal and verbose modes."""
    if should_print(verbosity, VERBOSITY_NORMAL):
        click.echo(message, err=False)


def echo_quiet(message: str, verbosity: int) -> None:
    """Print a critical message that should always be shown (even in quiet mode)."""
    click.echo(message, err=False)


def run_async(coro: Coroutine) -> Any:
    """Run a coroutine to completion from a synchronous click command."""
    return asyncio.run(coro)


def echo_error(error: ImmigrationError) -> None:
    """Print an error with the migration file and cause, if known."""
    click.echo(click.style(f"{FAIL_ICON} {error}", fg="red"), err=True)
    if error.path:
        try:
            path = Path(error.path).relative_to(Path.cwd())
        except ValueError:
            path = Path(error.path)
        click.echo(f"File: {path}", err=True)
    if error.cause is not None:
        click.echo(click.style(f"{NEXT_ICON} Caused by: {error.cause!r}", dim=True), err=True)


def fail(error: ImmigrationError) -> None:
    """Print an error and exit with status 1."""
    echo_error(error)
    sys.exit(1)


def get_migrate(ctx: click.Context) -> Migrate:
    """Build the Migrate instance for this invocation and attach printers."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    try:
        migrate = Migrate.from_config(ctx.obj['config'])
    except ImmigrationError as e:
        fail(e)

    def on_skip(event):
        echo_normal(click.style(f"- Skipped: {event.name}", dim=True), verbosity)

    def on_plan(event):
        echo_normal(f"{click.style('-', fg='cyan')} Planned: {event.name}", verbosity)

    def on_start(event):
        echo_normal(f"{click.style('○', fg='yellow')} Applying: {event.name}", verbosity)

    def on_end(event):
        icon = click.style(SUCCESS_ICON, fg="green") if event.success else click.style(FAIL_ICON, fg="red")
        status = "success" if event.success else "failed"
        duration = click.style(format_duration(event.duration_ms / 1000), fg="magenta")
        echo_normal(f"{icon} Done: {event.name} ({status}) {duration}", verbosity)

    def on_wait(event):
        waited = format_duration(event.elapsed_ms / 1000)
        limit = format_duration(event.max_wait_ms / 1000)
        echo_normal(f"{click.style('…', fg='yellow')} Waiting: {waited} / {limit}", verbosity)

    migrate.on("migration.skipped", on_skip)
    migrate.on("migration.planned", on_plan)
    migrate.on("migration.started", on_start)
    migrate.on("migration.ended", on_end)
    migrate.on("lock.wait", on_wait)
    return migrate
