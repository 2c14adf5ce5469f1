"""immigration CLI - run ordered, locked migrations from the command line

Command modules:
- migrate.py: up, down
- state.py: list, history, create, force, remove
- lock.py: locked, unlock
- common.py: shared utilities
"""
import logging
from pathlib import Path
from typing import Optional

import click

from ..config import load_config
from ..errors import ImmigrationError
from .common import VERBOSITY_NORMAL, VERBOSITY_QUIET, VERBOSITY_VERBOSE, fail
from .lock import locked, unlock
from .migrate import down, up
from .state import create, force, history, list_migrations, remove

# CLI version - matches project version
__version__ = "0.1.0"


@click.group()
@click.version_option(version=__version__, prog_name="immigration")
@click.option('--directory', '-d', default=None, help='Directory to read migrations from (default: migrations)')
@click.option('--extension', '-e', default=None, help='File extension of migrations (default: .py)')
@click.option('--store', '-s', default=None,
              help='State store: fs, memory, an installed plugin or module:Class (default: fs)')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='YAML config file (default: .immigration.yaml if present)')
@click.option('--verbose', '-v', is_flag=True, default=False, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, default=False, help='Suppress non-essential output')
@click.pass_context
def cli(ctx, directory: Optional[str], extension: Optional[str], store: Optional[str],
        config_path: Optional[str], verbose: bool, quiet: bool):
    """immigration - ordered, locked migrations

    \b
    Commands:
        up        Run up migration scripts
        down      Run down migration scripts
        create    Create a new migration file
        list      List available migrations
        history   List the run migrations
        force     Force a migration to be valid
        remove    Remove a migration
        locked    Exit 0 when unlocked, 1 when locked
        unlock    Force the migration state to be unlocked

    \b
    Examples:
        immigration create add users
        immigration up --all
        immigration down --to 20240101120000_add_users
    """
    ctx.ensure_object(dict)

    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    if quiet:
        ctx.obj['verbosity'] = VERBOSITY_QUIET
    elif verbose:
        ctx.obj['verbosity'] = VERBOSITY_VERBOSE
        logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
        logging.getLogger("immigration").setLevel(logging.DEBUG)
    else:
        ctx.obj['verbosity'] = VERBOSITY_NORMAL

    try:
        ctx.obj['config'] = load_config(
            Path(config_path) if config_path else None,
            directory=directory,
            extension=extension,
            store=store,
        )
    except ImmigrationError as e:
        fail(e)


cli.add_command(up)
cli.add_command(down)
cli.add_command(list_migrations)
cli.add_command(history)
cli.add_command(create)
cli.add_command(force)
cli.add_command(remove)
cli.add_command(locked)
cli.add_command(unlock)


def main():
    """Entry point for the CLI."""
    cli()


__all__ = [
    '__version__',
    'cli',
    'main',
]
