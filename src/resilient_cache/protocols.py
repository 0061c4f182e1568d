"""Protocols for extensibility of the cache and session layer.

Defines the interfaces that allow custom implementations of:
- Cache: key/value storage (in-memory, Redis, ...)
- HttpClient: transport used by the session manager and fetcher
- SessionManager: authentication strategy attached to upstream requests
- CacheMetrics: metrics collection

Optional cache capabilities are declared statically through the
``capabilities`` attribute instead of being detected at runtime.
"""

from enum import Flag, auto
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

if TYPE_CHECKING:
    from .transport import HttpResponse

V = TypeVar("V")


class CacheCapability(Flag):
    """Optional capabilities a cache implementation may declare."""

    NONE = 0
    STATS = auto()
    LIFECYCLE = auto()


class Cache(Protocol[V]):
    """Base cache capability.

    All methods are coroutines so that remote caches fit the same contract
    as in-memory ones. A miss is signaled by ``None``, never by an exception.

    Example:
        ```python
        class DictCache:
            capabilities = CacheCapability.NONE

            def __init__(self):
                self._data = {}

            async def get(self, key):
                return self._data.get(key)
            ...
        ```
    """

    capabilities: CacheCapability

    async def get(self, key: str) -> V | None:
        """Get value for key, or None if absent or expired."""
        ...

    async def set(self, key: str, value: V) -> None:
        """Store value under key, overwriting any previous entry."""
        ...

    async def has(self, key: str) -> bool:
        """Check whether key holds a live value."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key if present."""
        ...

    async def clear(self) -> None:
        """Remove every entry."""
        ...


class StatsCache(Cache[V], Protocol[V]):
    """Cache that declares ``CacheCapability.STATS``."""

    async def get_stats(self) -> dict[str, Any]:
        """Return statistics; always contains ``size``."""
        ...


class LifecycleCache(Cache[V], Protocol[V]):
    """Cache that declares ``CacheCapability.LIFECYCLE``."""

    async def destroy(self) -> None:
        """Release resources (timers, connections). Idempotent."""
        ...


class HttpClient(Protocol):
    """HTTP capability consumed by the session manager and fetcher.

    Implementations raise ``HttpError`` for non-2xx responses and
    ``TransportError`` subclasses for connection problems.
    """

    async def get(self, url: str, headers: dict[str, str] | None = None) -> "HttpResponse":
        """Issue a GET request.

        Args:
            url: Absolute URL
            headers: Extra request headers

        Returns:
            Parsed response
        """
        ...


class SessionManager(Protocol):
    """Authentication strategy for upstream requests.

    The default implementation uses cookies; token or API-key schemes can
    implement the same four operations.
    """

    async def ensure_session(self, force_refresh: bool = False) -> None:
        """Make sure a usable session exists."""
        ...

    def get_auth_headers(self) -> dict[str, str]:
        """Headers to attach to authenticated requests."""
        ...

    def handle_response(self, response: "HttpResponse") -> None:
        """Update session state from any upstream response."""
        ...

    def clear_session(self) -> None:
        """Drop the current session."""
        ...


class CacheMetrics(Protocol):
    """Protocol for cache metrics collection.

    Example:
        ```python
        class PrometheusMetrics:
            def record_hit(self, key: str, latency: float) -> None:
                cache_hits_total.labels(key=key).inc()
        ```
    """

    def record_hit(self, key: str, latency: float) -> None:
        """Record a cache hit.

        Args:
            key: Cache key
            latency: Lookup latency in seconds
        """
        ...

    def record_miss(self, key: str, latency: float) -> None:
        """Record a cache miss.

        Args:
            key: Cache key
            latency: Time to produce the value in seconds
        """
        ...

    def record_write(self, key: str) -> None:
        """Record a cache write.

        Args:
            key: Cache key
        """
        ...

    def record_error(self, key: str, error: Exception) -> None:
        """Record a cache error.

        Args:
            key: Cache key (or operation name when no key applies)
            error: Exception raised by the cache
        """
        ...
