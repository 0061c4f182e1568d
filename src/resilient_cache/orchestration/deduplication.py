"""
Single-flight deduplication of in-flight requests.

Implements thundering herd protection by ensuring only one execution happens
per key at a time, with other concurrent callers awaiting the same outcome.
"""

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..constants import DEFAULT_DEDUP_TIMEOUT_SECONDS
from ..exceptions import DeduplicationTimeoutError

T = TypeVar("T")


class RequestDeduplicator:
    """Collapses concurrent identical operations into one execution.

    Features:
    - One live registration per key; joiners await the same shared future
    - Success, failure and timeout are delivered identically to every waiter
    - Registration evicted as soon as the operation settles or times out
    - A cancelled waiter never cancels the shared operation

    Timeout semantics:
    The timeout detaches waiters, it does not cancel the operation. A
    detached operation runs to completion in the background and its outcome
    is discarded here.

    Thread Safety:
    - Designed for a single event loop; the pending table is only mutated
      between suspension points, so no lock is required
    """

    def __init__(
        self,
        default_timeout_seconds: float | None = DEFAULT_DEDUP_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the deduplicator.

        Args:
            default_timeout_seconds: Timeout applied when a call passes none
                (None disables timeouts)
            logger: Logger to use (module logger if None)

        Raises:
            ValueError: If default_timeout_seconds is not positive
        """
        if default_timeout_seconds is not None and default_timeout_seconds <= 0:
            raise ValueError(f"default_timeout_seconds must be > 0 or None, got {default_timeout_seconds}")

        self._default_timeout = default_timeout_seconds
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._logger = logger or logging.getLogger(__name__)

    async def deduplicate(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        timeout_seconds: float | None = None,
    ) -> T:
        """Execute operation with deduplication for the given key.

        If another execution is already registered for the same key, waits
        for that one instead of starting a new one.

        Args:
            key: Deduplication key (normally the cache key)
            operation: Zero-argument async callable doing the real work
            timeout_seconds: Maximum wait (instance default if None)

        Returns:
            Result of the shared execution

        Raises:
            ValueError: If timeout_seconds is not positive
            DeduplicationTimeoutError: If the execution does not settle in time
            Any exception raised by operation, propagated to all waiters
        """
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")

        shared = self._pending.get(key)
        if shared is not None:
            self._logger.debug(f"Deduplication: using existing request for '{key}'")
        else:
            timeout = timeout_seconds if timeout_seconds is not None else self._default_timeout
            shared = self._register(key, operation, timeout)

        return await asyncio.shield(shared)

    def _register(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        timeout: float | None,
    ) -> "asyncio.Future[T]":
        """Start operation and register its shared future under key."""
        loop = asyncio.get_running_loop()

        self._logger.debug(f"Deduplication: starting new request for '{key}'")
        task = asyncio.ensure_future(operation())
        shared: asyncio.Future[T] = loop.create_future()
        self._pending[key] = shared

        timer = None
        if timeout is not None:
            timer = loop.call_later(timeout, self._expire, key, shared, timeout)

        task.add_done_callback(functools.partial(self._settle, key, shared, timer))
        return shared

    def _settle(
        self,
        key: str,
        shared: "asyncio.Future[Any]",
        timer: asyncio.TimerHandle | None,
        task: "asyncio.Future[Any]",
    ) -> None:
        """Propagate the operation outcome and evict its registration."""
        if timer is not None:
            timer.cancel()

        if self._pending.get(key) is shared:
            del self._pending[key]

        if shared.done():
            # Waiters were already detached by the timeout
            if not task.cancelled() and task.exception() is not None:
                self._logger.debug(f"Deduplication: discarding late failure for '{key}': {task.exception()}")
            else:
                self._logger.debug(f"Deduplication: discarding late result for '{key}'")
            return

        if task.cancelled():
            shared.cancel()
        elif task.exception() is not None:
            shared.set_exception(task.exception())
        else:
            shared.set_result(task.result())

    def _expire(self, key: str, shared: "asyncio.Future[Any]", timeout: float) -> None:
        """Fail the waiters of a registration that outlived its timeout."""
        if self._pending.get(key) is shared:
            del self._pending[key]

        if not shared.done():
            self._logger.debug(f"Deduplication: request for '{key}' timed out after {timeout}s")
            shared.set_exception(DeduplicationTimeoutError(key, timeout))

    def is_pending(self, key: str) -> bool:
        """Check whether key has a live registration."""
        return key in self._pending

    def get_pending_count(self) -> int:
        """Number of live registrations. Observability only."""
        return len(self._pending)


class DeduplicationStats:
    """Statistics for deduplication operations.

    Tracks how many calls joined an existing execution versus starting a
    new one, and how many waits ended in a timeout.
    """

    def __init__(self) -> None:
        self.total_requests = 0
        self.deduplicated_requests = 0
        self.unique_executions = 0
        self.timeouts = 0

    def record_request(self, was_deduplicated: bool) -> None:
        """Record a deduplication request.

        Args:
            was_deduplicated: True if the call joined an existing execution
        """
        self.total_requests += 1
        if was_deduplicated:
            self.deduplicated_requests += 1
        else:
            self.unique_executions += 1

    def record_timeout(self) -> None:
        self.timeouts += 1

    def get_stats(self) -> dict[str, Any]:
        """Get current deduplication statistics."""
        ratio = self.deduplicated_requests / self.total_requests if self.total_requests > 0 else 0.0
        return {
            "total_requests": self.total_requests,
            "deduplicated_requests": self.deduplicated_requests,
            "unique_executions": self.unique_executions,
            "timeouts": self.timeouts,
            "deduplication_ratio": ratio,
        }

    def reset(self) -> None:
        """Reset all statistics to zero."""
        self.total_requests = 0
        self.deduplicated_requests = 0
        self.unique_executions = 0
        self.timeouts = 0


class InstrumentedRequestDeduplicator(RequestDeduplicator):
    """RequestDeduplicator with built-in statistics collection."""

    def __init__(
        self,
        default_timeout_seconds: float | None = DEFAULT_DEDUP_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(default_timeout_seconds, logger)
        self._stats = DeduplicationStats()

    async def deduplicate(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        timeout_seconds: float | None = None,
    ) -> T:
        self._stats.record_request(was_deduplicated=self.is_pending(key))
        try:
            return await super().deduplicate(key, operation, timeout_seconds)
        except DeduplicationTimeoutError:
            self._stats.record_timeout()
            raise

    @property
    def stats(self) -> DeduplicationStats:
        """Access to deduplication statistics."""
        return self._stats

    def get_stats(self) -> dict[str, Any]:
        return self._stats.get_stats()
