"""
Event type definitions for migration progress reporting.

This module defines typed events emitted while migrating:
- MigrationPlannedEvent: A migration would run (dry run)
- MigrationSkippedEvent: A migration has no action for the direction
- MigrationStartedEvent: A migration action is about to run
- MigrationEndedEvent: A migration action finished, successfully or not
- LockWaitEvent: The lock is busy and another attempt is scheduled

Events are purely observational; nothing a subscriber does changes the
outcome of a migration.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class MigrationPlannedEvent:
    """Event emitted for each migration a dry run would execute."""
    name: str
    direction: str
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "migration.planned"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "name": self.name,
            "direction": self.direction,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class MigrationSkippedEvent:
    """Event emitted when a migration defines no action for the direction."""
    name: str
    direction: str
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "migration.skipped"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "name": self.name,
            "direction": self.direction,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class MigrationStartedEvent:
    """Event emitted right before a migration action runs."""
    name: str
    direction: str
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "migration.started"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "name": self.name,
            "direction": self.direction,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class MigrationEndedEvent:
    """Event emitted when a migration action completes or fails."""
    name: str
    direction: str
    success: bool
    duration_ms: float
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "migration.ended"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "name": self.name,
            "direction": self.direction,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class LockWaitEvent:
    """Event emitted each time a busy lock forces another attempt."""
    attempt: int
    elapsed_ms: float
    max_wait_ms: float
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "lock.wait"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "attempt": self.attempt,
            "elapsed_ms": self.elapsed_ms,
            "max_wait_ms": self.max_wait_ms,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


__all__ = [
    "MigrationPlannedEvent",
    "MigrationSkippedEvent",
    "MigrationStartedEvent",
    "MigrationEndedEvent",
    "LockWaitEvent",
]
