"""
In-memory cache with per-instance TTL and background cleanup.

Entries expire lazily on read; a background asyncio task sweeps entries
nobody reads again so memory stays bounded.
"""

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..constants import MAX_CLEANUP_INTERVAL_SECONDS
from ..protocols import CacheCapability

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Stored value and the monotonic time it was written."""

    data: V
    timestamp: float


class TTLCache(Generic[V]):
    """Expiring key/value store owned by a single event loop.

    Core Features:
        - **Lazy expiry**: ``get`` drops entries older than the TTL
        - **Background sweep**: cleanup every ``min(ttl, 1 hour)``
        - **Owned lifecycle**: ``destroy`` cancels the sweep and empties the store

    The store is mutated only between suspension points, so no lock is
    needed inside one event loop.

    Example:
        ```python
        cache = TTLCache(ttl_seconds=300)

        await cache.set("remedy:acon", payload)
        if await cache.has("remedy:acon"):
            payload = await cache.get("remedy:acon")

        await cache.destroy()
        ```
    """

    capabilities = CacheCapability.STATS | CacheCapability.LIFECYCLE

    def __init__(self, ttl_seconds: float, logger: logging.Logger | None = None) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: Time-to-live for every entry, in seconds
            logger: Logger to use (module logger if None)

        Raises:
            ValueError: If ttl_seconds is not positive
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")

        self._ttl = ttl_seconds
        self._store: dict[str, CacheEntry[V]] = {}
        self._logger = logger or logging.getLogger(__name__)
        self._cleanup_interval = min(ttl_seconds, MAX_CLEANUP_INTERVAL_SECONDS)
        self._cleanup_task: asyncio.Task[None] | None = None
        self._destroyed = False

        # A task needs a running loop; when constructed outside one the
        # sweep starts on the first coroutine call instead.
        self._ensure_cleanup_task()

    @property
    def ttl_seconds(self) -> float:
        """Configured time-to-live."""
        return self._ttl

    @property
    def cleanup_interval(self) -> float:
        """Seconds between background sweeps."""
        return self._cleanup_interval

    def _ensure_cleanup_task(self) -> None:
        """Start the background sweep if it is not running in the current loop."""
        if self._destroyed:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        task = self._cleanup_task
        if task is not None and not task.done() and task.get_loop() is loop:
            return

        self._cleanup_task = loop.create_task(self._cleanup_loop(), name="ttl-cache-cleanup")
        self._logger.debug(f"Started cache cleanup task (interval: {self._cleanup_interval}s)")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.cleanup()

    async def get(self, key: str) -> V | None:
        """Get value from cache.

        Returns:
            Stored value, or None if not found or expired
        """
        self._ensure_cleanup_task()

        entry = self._store.get(key)
        if entry is None:
            self._logger.debug(f"Cache miss: {key}")
            return None

        age = time.monotonic() - entry.timestamp
        if age >= self._ttl:
            self._logger.debug(f"Cache expired: {key} (age: {age:.3f}s, ttl: {self._ttl}s)")
            del self._store[key]
            return None

        self._logger.debug(f"Cache hit: {key}")
        return entry.data

    async def set(self, key: str, value: V) -> None:
        """Store value, overwriting any previous entry."""
        self._ensure_cleanup_task()
        self._store[key] = CacheEntry(data=value, timestamp=time.monotonic())
        self._logger.debug(f"Cache set: {key}")

    async def has(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        return await self.get(key) is not None

    async def delete(self, key: str) -> None:
        """Delete specific key."""
        self._store.pop(key, None)
        self._logger.debug(f"Cache deleted: {key}")

    async def clear(self) -> None:
        """Clear all cache entries."""
        size = len(self._store)
        self._store.clear()
        self._logger.debug(f"Cache cleared: {size} entries removed")

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return {"size": len(self._store), "ttl": self._ttl}

    def cleanup(self) -> int:
        """Remove every entry older than the TTL.

        Returns:
            Number of entries removed
        """
        now = time.monotonic()
        expired = [key for key, entry in self._store.items() if now - entry.timestamp > self._ttl]
        for key in expired:
            del self._store[key]

        if expired:
            self._logger.debug(f"Cache cleanup: {len(expired)} expired entries removed")

        return len(expired)

    async def destroy(self) -> None:
        """Stop the background sweep and empty the store. Idempotent."""
        self._destroyed = True
        task, self._cleanup_task = self._cleanup_task, None

        if task is not None and not task.done():
            task.cancel()
            if task.get_loop() is asyncio.get_running_loop():
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        await self.clear()
        self._logger.debug("Cache destroyed")
