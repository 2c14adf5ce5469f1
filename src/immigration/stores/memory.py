"""
In-process store. State lives as long as the instance does.
"""

from dataclasses import replace
from datetime import datetime
from typing import AsyncIterator, Dict, Optional

from ..errors import LockRetryError
from ..models import ExecutionRecord, ListOptions, window
from .base import MigrationStore


class MemoryStore(MigrationStore):
    """Dictionary backed store with a boolean lock."""

    def __init__(self):
        self._records: Dict[str, ExecutionRecord] = {}
        self._locked = False

    async def lock(self) -> None:
        if self._locked:
            raise LockRetryError()
        self._locked = True

    async def unlock(self) -> None:
        self._locked = False

    async def is_locked(self) -> bool:
        return self._locked

    async def history(self, options: ListOptions) -> AsyncIterator[ExecutionRecord]:
        for name in window(sorted(self._records), options):
            yield replace(self._records[name])

    async def show(self, name: str) -> Optional[ExecutionRecord]:
        record = self._records.get(name)
        return replace(record) if record is not None else None

    async def update(self, name: str, valid: bool, timestamp: datetime) -> None:
        self._records[name] = ExecutionRecord(name=name, valid=valid, timestamp=timestamp)

    async def remove(self, name: str) -> bool:
        return self._records.pop(name, None) is not None
