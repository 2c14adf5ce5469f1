"""State commands (list, history, create, force, remove) for immigration CLI."""
from pathlib import Path
from typing import Optional

import click

from ..errors import ImmigrationError, UsageError
from ..models import ListOptions
from .common import (
    FAIL_ICON,
    SUCCESS_ICON,
    VERBOSITY_NORMAL,
    echo_normal,
    echo_quiet,
    fail,
    get_migrate,
    run_async,
)


def list_options(fn):
    """Window options shared by list and history."""
    fn = click.option('--reverse', is_flag=True, default=False, help='Reverse the order of the migrations')(fn)
    fn = click.option('--lte', default=None, help='The final migration to end on')(fn)
    fn = click.option('--gte', default=None, help='The first migration to start from')(fn)
    fn = click.option('--count', '-c', type=click.IntRange(min=1), default=None,
                      help='The number of migrations to list')(fn)
    return fn


@click.command('list')
@list_options
@click.pass_context
def list_migrations(ctx, count: Optional[int], gte: Optional[str], lte: Optional[str], reverse: bool) -> None:
    """List migration files available locally."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    migrate = get_migrate(ctx)

    async def collect():
        return [name async for name in migrate.list(ListOptions(count, gte, lte, reverse))]

    try:
        names = run_async(collect())
    except ImmigrationError as e:
        fail(e)

    for name in names:
        echo_quiet(name, verbosity)


@click.command('history')
@list_options
@click.pass_context
def history(ctx, count: Optional[int], gte: Optional[str], lte: Optional[str], reverse: bool) -> None:
    """List historically executed migrations and their timestamps."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    migrate = get_migrate(ctx)

    async def collect():
        return [record async for record in migrate.history(ListOptions(count, gte, lte, reverse))]

    try:
        records = run_async(collect())
    except ImmigrationError as e:
        fail(e)

    for record in records:
        state = click.style("VALID" if record.valid else "INVALID", bold=True)
        date = click.style(record.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"), fg="magenta")
        echo_quiet(f"{record.name} {state} {date}", verbosity)


@click.command('create')
@click.argument('title', nargs=-1)
@click.pass_context
def create(ctx, title) -> None:
    """Create a new migration file prefixed with UTC timestamp.

    Examples:
        immigration create add users table
    """
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    migrate = get_migrate(ctx)

    try:
        path = run_async(migrate.create(" ".join(title)))
    except ImmigrationError as e:
        fail(e)

    try:
        display = path.relative_to(Path.cwd())
    except ValueError:
        display = path
    echo_normal(click.style(f"{SUCCESS_ICON} File created: {display}", fg="green"), verbosity)


@click.command('force')
@click.argument('name', required=False)
@click.pass_context
def force(ctx, name: Optional[str]) -> None:
    """Force the migration to be marked as valid in state."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    if not name:
        fail(UsageError("No migration name to update"))

    migrate = get_migrate(ctx)
    try:
        run_async(migrate.update(name, True))
    except ImmigrationError as e:
        fail(e)

    echo_normal(click.style(f"{SUCCESS_ICON} Migration forced to be valid", fg="green"), verbosity)


@click.command('remove')
@click.argument('name', required=False)
@click.pass_context
def remove(ctx, name: Optional[str]) -> None:
    """Remove a migration from state."""
    verbosity = ctx.obj.get('verbosity', VERBOSITY_NORMAL)
    if not name:
        fail(UsageError("No migration name to remove"))

    migrate = get_migrate(ctx)
    try:
        removed = run_async(migrate.remove(name))
    except ImmigrationError as e:
        fail(e)

    if removed:
        echo_normal(click.style(f"{SUCCESS_ICON} Migration removed", fg="green"), verbosity)
    else:
        echo_quiet(click.style(f"{FAIL_ICON} Migration not found", fg="red"), verbosity)
