"""
Migration Executor

Loads migration modules by name and runs their `up` or `down` action one at
a time. A migration module is a plain Python file exposing module level
functions; either may be missing, and either may be a coroutine function:

    # migrations/20240101120000_add_users.py
    async def up():
        await db.execute("CREATE TABLE users (id TEXT PRIMARY KEY)")

    async def down():
        await db.execute("DROP TABLE users")

State is written after every attempt: a successful up records the migration
as valid, a successful down deletes its record, and a failure records it as
invalid unless the migration raised SafeMigrationError.
"""

import importlib.util
import inspect
import logging
import sys
import time
from pathlib import Path
from types import ModuleType
from typing import Iterable, List

from .errors import ExecutionError, SafeMigrationError
from .event_bus import EventBus
from .events import MigrationEndedEvent, MigrationSkippedEvent, MigrationStartedEvent
from .lister import MigrationLister
from .models import UP, utc_now
from .stores import MigrationStore

logger = logging.getLogger(__name__)


def load_migration(path: Path) -> ModuleType:
    """
    Import a migration file as a fresh module.

    Raises:
        ExecutionError: If the file cannot be imported
    """
    module_name = f"_immigration_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ExecutionError(f"Unable to load migration: {path.stem}", path=path)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ExecutionError(f"Unable to load migration: {path.stem}", e, path) from e
    finally:
        sys.modules.pop(module_name, None)
    return module


class Executor:
    """
    Executor - Runs a planned batch of migrations strictly in order

    The first failure stops the batch; migrations completed before it stay
    recorded.
    """

    def __init__(self, lister: MigrationLister, store: MigrationStore, events: EventBus):
        self.lister = lister
        self.store = store
        self.events = events

    async def run(self, direction: str, names: Iterable[str]) -> List[str]:
        """
        Execute every migration in order.

        Returns:
            The names that were processed, including skipped ones

        Raises:
            ExecutionError: On the first migration that fails
        """
        done = []
        for name in names:
            await self.execute(direction, name)
            done.append(name)
        return done

    async def execute(self, direction: str, name: str) -> None:
        """
        Run one migration action and record the outcome.

        Raises:
            ExecutionError: If the action is not callable or raises
        """
        path = await self.lister.path(name)
        module = load_migration(path)
        fn = getattr(module, direction, None)

        if fn is None:
            logger.info(f"Skipped {name}: no {direction} action")
            self.events.publish(MigrationSkippedEvent(name=name, direction=direction))
            return

        if not callable(fn):
            raise ExecutionError(f"Migration {direction} is not a function: {name}", path=path)

        self.events.publish(MigrationStartedEvent(name=name, direction=direction))
        start = time.perf_counter()

        try:
            result = fn()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(f"Migration {direction} failed: {name} ({e})")
            self.events.publish(MigrationEndedEvent(
                name=name,
                direction=direction,
                success=False,
                duration_ms=duration_ms,
                error=str(e),
            ))

            if isinstance(e, SafeMigrationError):
                raise ExecutionError(e.message, e, path) from e

            await self.store.update(name, False, utc_now())
            raise ExecutionError(
                f"Migration {direction} failed: {name}. "
                f"Please fix the migration and update the state before trying again",
                e,
                path,
            ) from e

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"Migration {direction} completed: {name} in {duration_ms:.0f}ms")
        self.events.publish(MigrationEndedEvent(
            name=name,
            direction=direction,
            success=True,
            duration_ms=duration_ms,
        ))

        if direction == UP:
            await self.store.update(name, True, utc_now())
        else:
            await self.store.remove(name)
