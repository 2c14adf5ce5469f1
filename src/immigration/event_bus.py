"""
EventBus for migration progress notifications.

Each Migrate instance owns one bus. The CLI subscribes printers to it;
library users can subscribe their own callbacks for logging or metrics.

Usage:
    bus = EventBus()
    bus.subscribe('migration.ended', lambda event: print(event.name, event.success))
    bus.subscribe('*', log_event)
    bus.publish(MigrationStartedEvent(name="001_init", direction="up"))
"""

import logging
from collections import defaultdict
from threading import Lock
from typing import Any, Callable, DefaultDict, List, Optional

logger = logging.getLogger(__name__)

WILDCARD = '*'

Callback = Callable[[Any], None]


class EventBus:
    """
    In-process pub/sub keyed by ``event_type``.

    Callbacks registered under WILDCARD receive every event after the
    callbacks registered for its specific type. A callback that raises is
    logged and skipped, so progress reporting can never fail a migration.
    """

    def __init__(self):
        self._callbacks: DefaultDict[str, List[Callback]] = defaultdict(list)
        self._lock = Lock()

    def subscribe(self, event_type: str, callback: Callback) -> None:
        """
        Register a callback.

        Args:
            event_type: e.g. 'migration.started', 'lock.wait', or '*'
            callback: Called with the event object
        """
        with self._lock:
            self._callbacks[event_type].append(callback)
        logger.debug(f"Subscribed {getattr(callback, '__name__', repr(callback))} to {event_type}")

    def unsubscribe(self, event_type: str, callback: Callback) -> bool:
        """Remove a callback; returns False when it was not registered."""
        with self._lock:
            callbacks = self._callbacks.get(event_type)
            if not callbacks or callback not in callbacks:
                return False
            callbacks.remove(callback)
            if not callbacks:
                del self._callbacks[event_type]
        return True

    def _targets(self, event_type: str) -> List[Callback]:
        with self._lock:
            targets = list(self._callbacks.get(event_type, ()))
            if event_type != WILDCARD:
                targets.extend(self._callbacks.get(WILDCARD, ()))
        return targets

    def publish(self, event: Any) -> None:
        """Deliver an event to its subscribers, then to wildcard subscribers."""
        event_type = getattr(event, 'event_type', None)
        if event_type is None:
            logger.warning(f"Dropping event without event_type: {type(event).__name__}")
            return

        for callback in self._targets(event_type):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Subscriber for {event_type} raised: {e}", exc_info=True)

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def subscriber_count(self, event_type: Optional[str] = None) -> int:
        """Number of callbacks for one event type, or in total."""
        with self._lock:
            if event_type:
                return len(self._callbacks.get(event_type, ()))
            return sum(len(callbacks) for callbacks in self._callbacks.values())
