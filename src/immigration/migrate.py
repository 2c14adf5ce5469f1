"""
Migrate - the orchestration facade

Composes the lister, a store, the lock coordinator, the consistency
validator and the executor into the two end to end operations
(migrate up, migrate down) and the auxiliary state operations.

Usage:
    migrate = Migrate(FileStore(Path(".migrate.json")), directory="migrations")
    migrate.on("migration.ended", lambda e: print(e.name, e.success))

    await migrate.migrate("up", all=True)
    await migrate.migrate("down", to="20240101120000_add_users")
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Callable, List, Optional, Union

import aiofiles
import aiofiles.os

from .config import ImmigrationConfig
from .errors import ImmigrationError, UsageError
from .event_bus import EventBus
from .events import MigrationPlannedEvent
from .executor import Executor
from .lister import MigrationLister
from .lock import NO_ATTEMPT, LockCoordinator
from .models import DIRECTIONS, ExecutionRecord, ListOptions, utc_now
from .plugins import load_store
from .stores import MigrationStore
from .validator import DEFAULT_CHECK, ConsistencyValidator

logger = logging.getLogger(__name__)

MIGRATION_TEMPLATE = '''"""{title}"""


async def up():
    pass


async def down():
    pass
'''


class Migrate:
    """
    Migrate - Runs migrations in order, one process at a time

    Pattern: plan outside the lock, re-plan and execute inside it
    Lifetime: One instance per migrations directory and store

    Events published on self.events:
    - migration.planned, migration.skipped, migration.started,
      migration.ended, lock.wait
    """

    def __init__(
        self,
        store: MigrationStore,
        directory: Union[str, Path] = "migrations",
        extension: str = ".py",
        events: Optional[EventBus] = None,
    ):
        self.store = store
        self.directory = Path(directory).resolve()
        self.extension = extension
        self.events = events or EventBus()

        self.lister = MigrationLister(self.directory, extension)
        self.coordinator = LockCoordinator(store, self.events)
        self.validator = ConsistencyValidator(self.lister, store)
        self.executor = Executor(self.lister, store, self.events)

    @classmethod
    def from_config(cls, config: ImmigrationConfig, events: Optional[EventBus] = None) -> "Migrate":
        """Build a Migrate instance with the store named in config."""
        store_cls = load_store(config.store)
        store = store_cls.create(config.cwd, **config.store_options)
        logger.debug(f"Using store {store!r} for {config.directory}")
        return cls(store, config.directory, config.extension, events)

    def on(self, event_type: str, callback: Callable[[Any], None]) -> None:
        """Subscribe to an event type ('*' for all)."""
        self.events.subscribe(event_type, callback)

    async def create(self, title: str = "") -> Path:
        """
        Create a new, empty migration file prefixed with the UTC time.

        Returns:
            Path of the created file
        """
        prefix = utc_now().strftime("%Y%m%d%H%M%S")
        label = re.sub(r"\s+", "_", title.strip()).lower()
        suffix = f"_{label}" if label else ""
        path = self.directory / f"{prefix}{suffix}{self.extension}"

        await aiofiles.os.makedirs(self.directory, exist_ok=True)
        try:
            async with aiofiles.open(path, "x") as f:
                if self.extension == ".py":
                    await f.write(MIGRATION_TEMPLATE.format(title=title.strip() or path.stem))
        except FileExistsError as e:
            raise ImmigrationError(f"Migration file already exists: {path.name}", e, path) from e

        logger.info(f"Created migration {path}")
        return path

    async def show(self, name: str) -> Optional[ExecutionRecord]:
        return await self.store.show(name)

    async def update(self, name: str, valid: bool, timestamp: Optional[datetime] = None) -> None:
        await self.store.update(name, valid, timestamp or utc_now())

    async def remove(self, name: str) -> bool:
        return await self.store.remove(name)

    async def lock(self) -> None:
        await self.store.lock()

    async def unlock(self) -> None:
        await self.store.unlock()

    async def is_locked(self) -> bool:
        return bool(await self.store.is_locked())

    async def history(self, options: Optional[ListOptions] = None) -> AsyncIterator[ExecutionRecord]:
        async for record in self.store.history(options or ListOptions()):
            yield record

    def list(self, options: Optional[ListOptions] = None) -> AsyncIterator[str]:
        return self.lister.list(options)

    async def migrate(
        self,
        direction: str,
        to: Optional[str] = None,
        all: bool = False,
        check: int = DEFAULT_CHECK,
        dry_run: bool = False,
        max_wait: Optional[float] = None,
        retry_wait: Optional[float] = None,
    ) -> List[str]:
        """
        Run migrations up or down.

        Args:
            direction: "up" or "down"
            to: Last migration to run on up (inclusive), or the migration to
                stop at on down (exclusive)
            all: Run everything instead of stopping at `to`
            check: How many recent records to validate before running
            dry_run: Publish migration.planned events instead of running
            max_wait: Seconds to wait for a busy lock
            retry_wait: Seconds between lock attempts

        Returns:
            Names of the migrations run (or planned, on a dry run), in order

        Raises:
            UsageError: If the options are inconsistent
            ConsistencyError: If history and files have diverged
            ExecutionError: If a migration fails
            LockRetryError: If the lock stayed busy past max_wait
        """
        if direction not in DIRECTIONS:
            raise UsageError(f"Direction must be one of {DIRECTIONS}, got {direction!r}")

        if all == bool(to):
            raise UsageError("Either `to` or `all` must be specified")

        if check < 1:
            raise UsageError("Migration `check` should not be less than 1")

        to = to or None
        planned: List[str] = []

        async def should_attempt():
            names = await self.validator.plan(direction, to, check)
            if not names:
                return NO_ATTEMPT

            if dry_run:
                planned[:] = names
                for name in names:
                    self.events.publish(MigrationPlannedEvent(name=name, direction=direction))
                return NO_ATTEMPT

            return names

        async def work(names: List[str]) -> List[str]:
            # Another process may have migrated between planning and locking
            current = await self.validator.plan(direction, to, check)
            if current != names:
                logger.debug(f"Plan changed while waiting for lock: {names} -> {current}")
            return await self.executor.run(direction, current)

        migrated = await self.coordinator.acquire(work, should_attempt, max_wait, retry_wait)

        if dry_run:
            return planned
        return migrated or []
