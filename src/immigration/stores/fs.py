"""
File Store - JSON history document with a sidecar lock file

Layout:
- <cwd>/.migrate.json: {"<name>": {"valid": true, "date": "<ISO-8601>"}, ...}
- <cwd>/.migrate.json.lock: exists while a process holds the lock

The lock file is created with exclusive-create semantics, so creation fails
when another process already holds it. Writes go to a temporary file that
replaces the document, so a reader never sees a half written document.
"""

import asyncio
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Optional

import aiofiles
import aiofiles.os

from ..errors import ImmigrationError, LockRetryError
from ..models import ExecutionRecord, ListOptions, window
from .base import MigrationStore

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = ".migrate.json"


class FileStore(MigrationStore):
    """
    File Store - Execution history in a JSON document

    Pattern: read-modify-write of one document, serialized per instance
    Lifetime: Persistent across runs; the lock file only while migrating

    Example:
        store = FileStore(Path(".migrate.json"))
        await store.update("001_init", True, utc_now())
        record = await store.show("001_init")
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._pending = asyncio.Lock()

    @classmethod
    def create(cls, cwd: Path, path: str = DEFAULT_FILENAME, **options: Any) -> "FileStore":
        if options:
            raise ImmigrationError(f"Unknown options for fs store: {sorted(options)}")
        return cls(Path(cwd) / path)

    async def _read(self) -> Dict[str, Dict[str, Any]]:
        try:
            async with aiofiles.open(self.path, "r") as f:
                text = await f.read()
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise ImmigrationError(f"Unable to read migration state: {e}", e, self.path) from e

        if not text.strip():
            return {}

        try:
            contents = json.loads(text)
        except json.JSONDecodeError as e:
            raise ImmigrationError(f"Migration state is not valid JSON: {e}", e, self.path) from e

        if not isinstance(contents, dict):
            raise ImmigrationError(
                f"Migration state must be a JSON object, got {type(contents).__name__}",
                path=self.path,
            )
        return contents

    def _record(self, name: str, data: Any) -> ExecutionRecord:
        try:
            return ExecutionRecord.from_dict(name, data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ImmigrationError(f"Migration state for {name!r} is malformed: {e!r}", e, self.path) from e

    async def _write(self, contents: Dict[str, Dict[str, Any]]) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w") as f:
                await f.write(json.dumps(contents, indent=2, sort_keys=True))
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            raise ImmigrationError(f"Unable to write migration state: {e}", e, self.path) from e

    async def _modify(self, fn: Callable[[Dict[str, Dict[str, Any]]], Any]) -> Any:
        """Apply fn to the document and write it back, one change at a time."""
        async with self._pending:
            contents = await self._read()
            result = fn(contents)
            await self._write(contents)
            return result

    async def lock(self) -> None:
        try:
            async with aiofiles.open(self.lock_path, "x") as f:
                await f.write(f"{os.getpid()}\n")
        except FileExistsError as e:
            raise LockRetryError(e) from e
        except OSError as e:
            raise ImmigrationError(f"Unable to create lock file: {e}", e, self.lock_path) from e
        logger.debug(f"Created lock file {self.lock_path}")

    async def unlock(self) -> None:
        try:
            await aiofiles.os.remove(self.lock_path)
            logger.debug(f"Removed lock file {self.lock_path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ImmigrationError(f"Unable to remove lock file: {e}", e, self.lock_path) from e

    async def is_locked(self) -> bool:
        try:
            await aiofiles.os.stat(self.lock_path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ImmigrationError(f"Unable to check lock file: {e}", e, self.lock_path) from e

    async def history(self, options: ListOptions) -> AsyncIterator[ExecutionRecord]:
        contents = await self._read()
        for name in window(sorted(contents), options):
            yield self._record(name, contents[name])

    async def show(self, name: str) -> Optional[ExecutionRecord]:
        contents = await self._read()
        if name not in contents:
            return None
        return self._record(name, contents[name])

    async def update(self, name: str, valid: bool, timestamp: datetime) -> None:
        def apply(contents):
            contents[name] = ExecutionRecord(name, valid, timestamp).to_dict()

        await self._modify(apply)
        logger.debug(f"Recorded {name} as {'valid' if valid else 'invalid'} in {self.path}")

    async def remove(self, name: str) -> bool:
        def apply(contents):
            return contents.pop(name, None) is not None

        return await self._modify(apply)

    def __repr__(self) -> str:
        return f"<FileStore: {self.path}>"
