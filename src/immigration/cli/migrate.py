"""Migration commands (up, down) for immigration CLI."""
from typing import Optional

import click

from ..errors import ImmigrationError
from .common import (
    SUCCESS_ICON,
    VERBOSITY_NORMAL,
    echo_normal,
    fail,
    get_migrate,
    parse_duration,
    run_async,
)


def _run(ctx: click.Context, direction: str, to: Optional[str], run_all: bool,
         dry_run: bool, check: Optional[int], wait: Optional[str]) -> None:
    config = ctx.obj['config']
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    max_wait = parse_duration(wait) if wait else config.max_wait

    migrate = get_migrate(ctx)
    try:
        migrations = run_async(migrate.migrate(
            direction,
            to=to,
            all=run_all,
            check=check if check is not None else config.check,
            dry_run=dry_run,
            max_wait=max_wait,
            retry_wait=config.retry_wait,
        ))
    except ImmigrationError as e:
        fail(e)

    if dry_run:
        echo_normal(click.style(f"{len(migrations)} migrations planned", fg="cyan"), verbosity)
    elif migrations:
        echo_normal(click.style(f"{SUCCESS_ICON} Migrations finished", fg="green"), verbosity)
    else:
        echo_normal(click.style("… No migrations required", fg="yellow"), verbosity)


def migration_options(fn):
    """Options shared by up and down."""
    fn = click.option('--wait', default=None, help='Maximum time to wait for the lock (e.g. 30s, 10m)')(fn)
    fn = click.option('--check', type=click.IntRange(min=1), default=None,
                      help='Number of past migrations to validate before running')(fn)
    fn = click.option('--dry-run', '-d', is_flag=True, default=False,
                      help='Only preview the migrations, do not run them')(fn)
    fn = click.option('--all', 'run_all', is_flag=True, default=False,
                      help='Run all the migrations without specifying --to')(fn)
    return fn


@click.command('up')
@click.option('--to', default=None, help='The migration to end on (inclusive)')
@migration_options
@click.pass_context
def up(ctx, to: Optional[str], run_all: bool, dry_run: bool, check: Optional[int], wait: Optional[str]) -> None:
    """Run up migration scripts.

    Examples:
        immigration up --all
        immigration up --to 20240101120000_add_users
        immigration up --all --dry-run
    """
    _run(ctx, "up", to, run_all, dry_run, check, wait)


@click.command('down')
@click.option('--to', default=None, help='The migration to end on (exclusive)')
@migration_options
@click.pass_context
def down(ctx, to: Optional[str], run_all: bool, dry_run: bool, check: Optional[int], wait: Optional[str]) -> None:
    """Run down migration scripts.

    Examples:
        immigration down --to 20240101120000_add_users
        immigration down --all --wait 30s
    """
    _run(ctx, "down", to, run_all, dry_run, check, wait)
