"""Lock commands (locked, unlock) for immigration CLI."""
import sys

import click

from ..errors import ImmigrationError
from .common import VERBOSITY_NORMAL, echo_quiet, fail, get_migrate, run_async


def print_lock_state(is_locked: bool, verbosity: int) -> None:
    """Print the lock state and exit 1 when locked, 0 when unlocked."""
    icon = "🔒" if is_locked else "🔓"
    state = click.style("LOCKED" if is_locked else "UNLOCKED", bold=True)
    echo_quiet(f"{icon} Migration state: {state}", verbosity)
    sys.exit(1 if is_locked else 0)


@click.command('locked')
@click.pass_context
def locked(ctx) -> None:
    """Print whether the migration state is locked and exit 0 when unlocked."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    migrate = get_migrate(ctx)
    try:
        is_locked = run_async(migrate.is_locked())
    except ImmigrationError as e:
        fail(e)
    print_lock_state(is_locked, verbosity)


@click.command('unlock')
@click.pass_context
def unlock(ctx) -> None:
    """Force the migration state to be unlocked."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    migrate = get_migrate(ctx)
    try:
        run_async(migrate.unlock())
    except ImmigrationError as e:
        fail(e)
    print_lock_state(False, verbosity)
