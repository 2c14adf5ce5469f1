"""
immigration - ordered, locked, consistency-checked migrations

Runs user-authored migration files (each exposing optional `up` and `down`
actions) against any target, one process at a time, refusing to proceed
when the recorded history and the files on disk disagree.

Key Features:
- Deterministic order from file names
- Cross-process lock with bounded retry
- History/file consistency check before every run
- Pluggable state stores (JSON file by default)
- Dry-run support
"""

from .errors import (
    ImmigrationError,
    UsageError,
    LockRetryError,
    ConsistencyError,
    ExecutionError,
    NotFoundError,
    PluginError,
    PluginLoadError,
    PluginValidationError,
    SafeMigrationError,
)
from .models import ExecutionRecord, ListOptions, UP, DOWN
from .config import ImmigrationConfig, load_config
from .stores import MigrationStore, FileStore, MemoryStore
from .migrate import Migrate

__version__ = "0.1.0"

__all__ = [
    "Migrate",
    "MigrationStore",
    "FileStore",
    "MemoryStore",
    "ExecutionRecord",
    "ListOptions",
    "ImmigrationConfig",
    "load_config",
    "ImmigrationError",
    "UsageError",
    "LockRetryError",
    "ConsistencyError",
    "ExecutionError",
    "NotFoundError",
    "PluginError",
    "PluginLoadError",
    "PluginValidationError",
    "SafeMigrationError",
    "UP",
    "DOWN",
    "__version__",
]
