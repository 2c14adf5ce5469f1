"""
Lock Coordinator

Runs a unit of work while holding the store lock. The plan for the work is
derived before every lock attempt, so an attempt that waited on another
process re-checks whether anything is still left to do and skips the lock
entirely when it is not.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar, Union

from .errors import ImmigrationError, LockRetryError
from .event_bus import EventBus
from .events import LockWaitEvent
from .stores import MigrationStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P")

# Default waits for 10 minutes and retries every 500ms
DEFAULT_MAX_WAIT = 600.0
DEFAULT_RETRY_WAIT = 0.5


class _NoAttempt:
    def __repr__(self) -> str:
        return "NO_ATTEMPT"


NO_ATTEMPT = _NoAttempt()


class LockCoordinator:
    """
    Acquires the store lock with bounded wait and a fixed retry interval.

    Only LockRetryError is retried. Anything else raised by lock() is fatal,
    as is LockRetryError once max_wait has elapsed.
    """

    def __init__(self, store: MigrationStore, events: Optional[EventBus] = None):
        self.store = store
        self.events = events or EventBus()

    async def acquire(
        self,
        work: Callable[[P], Awaitable[T]],
        should_attempt: Callable[[], Awaitable[Union[P, _NoAttempt]]],
        max_wait: Optional[float] = None,
        retry_wait: Optional[float] = None,
    ) -> Optional[T]:
        """
        Run work(plan) under the lock.

        Args:
            work: Coroutine function receiving the plan
            should_attempt: Coroutine function returning the plan, or
                            NO_ATTEMPT when there is nothing to do
            max_wait: Seconds to keep retrying a busy lock (default: 600)
            retry_wait: Seconds between attempts (default: 0.5)

        Returns:
            The result of work, or None when no attempt was needed

        Raises:
            LockRetryError: If the lock stayed busy for longer than max_wait
        """
        max_wait = DEFAULT_MAX_WAIT if max_wait is None else max_wait
        retry_wait = DEFAULT_RETRY_WAIT if retry_wait is None else retry_wait
        start = time.monotonic()
        attempt = 0

        while True:
            plan = await should_attempt()
            if plan is NO_ATTEMPT:
                return None

            try:
                await self.store.lock()
            except LockRetryError:
                elapsed = time.monotonic() - start
                if elapsed >= max_wait:
                    logger.error(f"Gave up waiting for migration lock after {elapsed:.1f}s")
                    raise

                attempt += 1
                logger.warning(f"Migration lock is busy, attempt {attempt} waiting {retry_wait}s")
                self.events.publish(LockWaitEvent(
                    attempt=attempt,
                    elapsed_ms=elapsed * 1000,
                    max_wait_ms=max_wait * 1000,
                ))
                await asyncio.sleep(retry_wait)
                continue

            logger.info("Acquired migration lock")
            try:
                result = await work(plan)
            except BaseException:
                # The work error wins over a failed release
                try:
                    await self.store.unlock()
                except ImmigrationError as e:
                    logger.error(f"Unable to release migration lock: {e}")
                raise

            await self.store.unlock()
            logger.info("Released migration lock")
            return result
