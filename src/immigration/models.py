"""
Data types shared by the lister, the stores and the engine.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

UP = "up"
DOWN = "down"
DIRECTIONS = (UP, DOWN)


@dataclass
class ListOptions:
    """Window selection over an ordered sequence of migration names."""
    count: Optional[int] = None  # Keep at most this many from the front
    gte: Optional[str] = None  # First name to include
    lte: Optional[str] = None  # Last name to include
    reverse: bool = False  # Newest first


@dataclass
class ExecutionRecord:
    """Outcome of the last attempt to run a migration up."""
    name: str
    valid: bool
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored JSON shape (name is the key, not a field)."""
        return {
            "valid": self.valid,
            "date": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "ExecutionRecord":
        """Create an ExecutionRecord from its stored JSON shape."""
        timestamp = datetime.fromisoformat(data["date"].replace("Z", "+00:00"))
        return cls(name=name, valid=bool(data["valid"]), timestamp=timestamp)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def window(names, options: ListOptions):
    """
    Apply value bounds, direction and count to an already sorted list.

    Bounds are plain comparisons here; callers that need the bounds to exist
    (the lister) check that before calling.
    """
    selected = [
        name for name in names
        if (options.gte is None or name >= options.gte)
        and (options.lte is None or name <= options.lte)
    ]
    if options.reverse:
        selected.reverse()
    if options.count:
        selected = selected[:options.count]
    return selected
