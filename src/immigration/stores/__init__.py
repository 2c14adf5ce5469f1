"""
Built-in migration stores.

- fs: JSON document plus lock file in the working directory (default)
- memory: in-process dictionary, for tests and embedding
"""

from .base import MigrationStore
from .fs import FileStore
from .memory import MemoryStore

BUILTIN_STORES = {
    "fs": FileStore,
    "memory": MemoryStore,
}

__all__ = ["MigrationStore", "FileStore", "MemoryStore", "BUILTIN_STORES"]
