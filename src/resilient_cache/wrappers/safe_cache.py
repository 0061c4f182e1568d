"""
Failure-isolating cache wrapper with permanent fallback.

Protects the application from a misbehaving primary cache by delegating
to a fallback cache whenever the primary raises.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar, cast

from ..constants import EMPTY_STATS, MAX_PRIMARY_FAILURES
from ..metrics import resolve_metrics
from ..protocols import Cache, CacheCapability, CacheMetrics, LifecycleCache, StatsCache

V = TypeVar("V")
R = TypeVar("R")


class SafeCacheWrapper(Generic[V]):
    """Cache facade that degrades gracefully when the primary cache fails.

    Error Handling Strategy:
        - Every primary exception is logged, counted and answered by the
          fallback instead of being raised
        - The failure counter is cumulative across all operations and is
          never reset by successful primary calls
        - At ``max_failures`` the wrapper switches to the fallback
          permanently; the primary is never invoked again
        - Exceptions raised by the fallback itself propagate

    Capabilities:
        ``get_stats`` and ``destroy`` are forwarded only to delegates that
        declare ``CacheCapability.STATS`` / ``CacheCapability.LIFECYCLE``.

    Example:
        ```python
        cache = SafeCacheWrapper(RedisCache(...), NoOpCache())

        value = await cache.get("remedy:acon")  # never raises on Redis outage
        ```
    """

    capabilities = CacheCapability.STATS | CacheCapability.LIFECYCLE

    def __init__(
        self,
        primary: Cache[V],
        fallback: Cache[V],
        logger: logging.Logger | None = None,
        metrics: CacheMetrics | None = None,
        max_failures: int = MAX_PRIMARY_FAILURES,
    ) -> None:
        """Initialize the wrapper.

        Args:
            primary: Preferred cache
            fallback: Cache used after primary failures
            logger: Logger to use (module logger if None)
            metrics: Metrics collector for primary errors
            max_failures: Failures before switching to fallback permanently

        Raises:
            ValueError: If max_failures is not positive
        """
        if max_failures < 1:
            raise ValueError(f"max_failures must be >= 1, got {max_failures}")

        self._primary = primary
        self._fallback = fallback
        self._logger = logger or logging.getLogger(__name__)
        self._metrics = resolve_metrics(metrics)
        self._max_failures = max_failures
        self._failure_count = 0
        self._failed = False

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def is_using_fallback(self) -> bool:
        """True once the wrapper has switched to the fallback permanently."""
        return self._failed

    async def _call(
        self,
        operation: str,
        on_primary: Callable[[], Awaitable[R]],
        on_fallback: Callable[[], Awaitable[R]],
        key: str | None = None,
    ) -> R:
        if self._failed:
            return await on_fallback()

        try:
            return await on_primary()
        except Exception as e:
            self._handle_error(operation, e, key)
            return await on_fallback()

    def _handle_error(self, operation: str, error: Exception, key: str | None = None) -> None:
        """Count a primary failure and open the circuit at the threshold.

        Errors are recorded under the cache key, or under the operation
        name for keyless operations.
        """
        self._failure_count += 1
        self._logger.warning(
            f"Cache {operation} failed ({self._failure_count}/{self._max_failures}): {error}"
        )
        self._metrics.record_error(key if key is not None else operation, error)

        if self._failure_count >= self._max_failures and not self._failed:
            self._failed = True
            self._logger.warning(
                f"Cache has failed {self._max_failures} times, switching to fallback permanently"
            )

    async def get(self, key: str) -> V | None:
        return await self._call("get", lambda: self._primary.get(key), lambda: self._fallback.get(key), key)

    async def set(self, key: str, value: V) -> None:
        await self._call(
            "set",
            lambda: self._primary.set(key, value),
            lambda: self._fallback.set(key, value),
            key,
        )

    async def has(self, key: str) -> bool:
        return await self._call("has", lambda: self._primary.has(key), lambda: self._fallback.has(key), key)

    async def delete(self, key: str) -> None:
        await self._call("delete", lambda: self._primary.delete(key), lambda: self._fallback.delete(key), key)

    async def clear(self) -> None:
        await self._call("clear", self._primary.clear, self._fallback.clear)

    async def get_stats(self) -> dict[str, Any]:
        """Stats of the active delegate, or ``{"size": 0}`` if it has none."""
        return await self._call(
            "get_stats",
            lambda: self._stats_of(self._primary),
            lambda: self._stats_of(self._fallback),
        )

    async def _stats_of(self, cache: Cache[V]) -> dict[str, Any]:
        if CacheCapability.STATS not in cache.capabilities:
            return dict(EMPTY_STATS)
        return await cast(StatsCache[V], cache).get_stats()

    async def destroy(self) -> None:
        """Destroy both delegates; failures are logged, never raised."""
        for name, cache in (("Primary", self._primary), ("Fallback", self._fallback)):
            if CacheCapability.LIFECYCLE not in cache.capabilities:
                continue
            try:
                await cast(LifecycleCache[V], cache).destroy()
            except Exception as e:
                self._logger.warning(f"{name} cache destroy failed: {e}")
