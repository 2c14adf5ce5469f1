"""
Migration Store - Abstract interface for execution history and the lock

Every backend (JSON file, database row, key-value entry) implements the same
seven coroutines. The engine only ever talks to a store through this
interface, and only the lock coordinator calls lock() and unlock().
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from ..models import ExecutionRecord, ListOptions


class MigrationStore(ABC):
    """
    Abstract base class for migration state backends

    Subclasses must implement lock, unlock, is_locked, history, show,
    update and remove. Third-party stores registered as plugins must also
    keep interface_version in sync with the engine.

    Example:
        class RedisStore(MigrationStore):
            interface_version = "1.0"

            async def lock(self) -> None:
                if not await self.client.set("migrate:lock", 1, nx=True):
                    raise LockRetryError()
            ...
    """

    interface_version = "1.0"

    @classmethod
    def create(cls, cwd: Path, **options: Any) -> "MigrationStore":
        """
        Build a store for a working directory.

        Args:
            cwd: Directory the tool was invoked from
            **options: Backend specific settings from configuration

        Returns:
            A ready to use store instance
        """
        return cls(**options)

    @abstractmethod
    async def lock(self) -> None:
        """
        Acquire the migration lock.

        Raises:
            LockRetryError: If another actor already holds the lock
            ImmigrationError: For any other failure, which is fatal
        """
        pass

    @abstractmethod
    async def unlock(self) -> None:
        """Release the migration lock. Unlocking when unlocked is not an error."""
        pass

    @abstractmethod
    async def is_locked(self) -> bool:
        """Return whether the lock is currently held by anyone."""
        pass

    @abstractmethod
    def history(self, options: ListOptions) -> AsyncIterator[ExecutionRecord]:
        """
        Iterate recorded executions ordered by name.

        Args:
            options: gte/lte are value bounds (need not be recorded names),
                     reverse flips the order, count keeps the first N after that
        """
        pass

    @abstractmethod
    async def show(self, name: str) -> Optional[ExecutionRecord]:
        """Return the record for a migration, or None if nothing is recorded."""
        pass

    @abstractmethod
    async def update(self, name: str, valid: bool, timestamp: datetime) -> None:
        """Create or overwrite the record for a migration."""
        pass

    @abstractmethod
    async def remove(self, name: str) -> bool:
        """
        Delete the record for a migration.

        Returns:
            True if a record existed and was deleted, False otherwise
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
