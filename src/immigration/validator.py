"""
Consistency Validator

Before anything runs, the most recent history is walked side by side with
the migration files, both newest first. Every recorded name must have a
file, every file up to the latest recorded one must have a record, and no
record may be marked invalid. Only then is the batch for the requested
direction derived.
"""

import logging
from typing import AsyncIterator, List, Optional

from .errors import ConsistencyError
from .lister import MigrationLister
from .models import DOWN, UP, ExecutionRecord, ListOptions
from .stores import MigrationStore

logger = logging.getLogger(__name__)

DEFAULT_CHECK = 50

_DONE = object()


async def _next(iterator: AsyncIterator, default=_DONE):
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return default


async def check_history(
    history: AsyncIterator[ExecutionRecord],
    files: AsyncIterator[str],
) -> None:
    """
    Walk history and files together, newest first.

    Raises:
        ConsistencyError: On the first record without a file, file without a
                          record, or record marked invalid
    """
    while True:
        record = await _next(history)
        name = await _next(files)
        if record is _DONE and name is _DONE:
            return

        if record is _DONE or (name is not _DONE and name > record.name):
            raise ConsistencyError(f"The migration ({name!r}) has not been run yet")

        if name is _DONE or name < record.name:
            raise ConsistencyError(f"The migration ({record.name!r}) cannot be found")

        if not record.valid:
            raise ConsistencyError(
                f"Migration ({record.name!r}) is in an invalid state. "
                f"Fix it and use force or remove before migrating again"
            )


class ConsistencyValidator:
    """
    Derives the batch of migrations to run for a direction.

    Example:
        validator = ConsistencyValidator(lister, store)
        names = await validator.plan("down", to="001_init", check=50)
    """

    def __init__(self, lister: MigrationLister, store: MigrationStore):
        self.lister = lister
        self.store = store

    async def latest(self, direction: str, to: Optional[str] = None) -> Optional[ExecutionRecord]:
        """Most recent record, restricted to names >= to when migrating down."""
        gte = to if direction == DOWN else None
        history = self.store.history(ListOptions(count=1, gte=gte, reverse=True))
        return await _next(history, None)

    async def validate(self, direction: str, to: Optional[str] = None, check: int = DEFAULT_CHECK) -> Optional[ExecutionRecord]:
        """
        Check the last `check` records against the files on disk.

        Returns:
            The latest record considered, or None when nothing is recorded
        """
        gte = to if direction == DOWN else None
        latest = await self.latest(direction, to)
        if latest is None:
            return None

        names = await self.lister.scan()
        if latest.name not in names:
            raise ConsistencyError(f"The migration ({latest.name!r}) cannot be found")

        history = self.store.history(ListOptions(count=check, gte=gte, reverse=True))
        files = self.lister.list(ListOptions(count=check, gte=gte, lte=latest.name, reverse=True))
        await check_history(history, files)

        logger.debug(f"History is consistent up to {latest.name}")
        return latest

    async def plan(self, direction: str, to: Optional[str] = None, check: int = DEFAULT_CHECK) -> List[str]:
        """
        Validate history and return the names to run, in execution order.

        Up runs everything after the latest record through `to` (inclusive),
        ascending. Down runs everything from the latest record down to `to`
        (exclusive), descending.
        """
        if to:
            await self.lister.path(to)

        latest = await self.validate(direction, to, check)
        latest_name = latest.name if latest else None

        if direction == UP:
            options = ListOptions(gte=latest_name, lte=to)
            files = [name async for name in self.lister.list(options)]
            if files and files[0] == latest_name:
                files.pop(0)
        else:
            if latest is None:
                return []
            options = ListOptions(gte=to, lte=latest_name, reverse=True)
            files = [name async for name in self.lister.list(options)]
            if files and files[-1] == to:
                files.pop()

        logger.debug(f"Planned {direction}: {files}")
        return files
