"""
Error taxonomy for immigration.

Every error raised by the engine derives from ImmigrationError so callers
(and the CLI) can catch a single type. The underlying exception, when there
is one, is chained with ``raise ... from`` and exposed as ``cause``.
"""

from pathlib import Path
from typing import Optional, Union


class ImmigrationError(Exception):
    """Base exception for all migration errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        """The exception this error was raised from, if any."""
        return self.__cause__

    def __str__(self) -> str:
        return self.message


class UsageError(ImmigrationError):
    """Raised for an invalid combination of options, before any I/O"""
    pass


class LockRetryError(ImmigrationError):
    """Raised by a store when the lock is held by another actor"""

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("Failed to acquire migration lock", cause)


class ConsistencyError(ImmigrationError):
    """Raised when recorded history and migration files have diverged"""
    pass


class ExecutionError(ImmigrationError):
    """Raised when a migration action fails or cannot be invoked"""
    pass


class NotFoundError(ImmigrationError):
    """Raised when a named migration boundary does not exist"""
    pass


class SafeMigrationError(Exception):
    """
    Raise from a migration to fail without marking its record invalid.

    The engine still halts the batch, but the stored state for the migration
    is left exactly as it was before the attempt.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class PluginError(ImmigrationError):
    """Base exception for store plugin errors"""
    pass


class PluginLoadError(PluginError):
    """Raised when a store plugin fails to load"""
    pass


class PluginValidationError(PluginError):
    """Raised when a store plugin fails validation checks"""
    pass
