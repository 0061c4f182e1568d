"""
Cache that honours HTTP caching headers.

Per-entry TTL is derived from the ``Cache-Control`` and ``Expires`` headers of
the response that produced the value, similar to a browser cache.
"""

import logging
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Generic, TypeVar

from ..protocols import CacheCapability

V = TypeVar("V")

_MAX_AGE_PATTERN = re.compile(r"max-age=(-?\d+)")


@dataclass
class HttpCacheMetadata:
    """HTTP context of a cached value.

    Attributes:
        headers: Response headers (looked up case-insensitively)
        fetched_at: Wall-clock time (epoch seconds) the response was received
    """

    headers: Mapping[str, str] = field(default_factory=dict)
    fetched_at: float | None = None

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass
class _HttpCacheEntry(Generic[V]):
    data: V
    expires_at: float
    metadata: HttpCacheMetadata | None = None


class HttpCacheControlCache(Generic[V]):
    """In-memory cache with header-driven expiry.

    TTL resolution order:
        1. ``Cache-Control: no-cache``/``no-store`` or ``max-age<=0``: not stored
        2. ``Cache-Control: max-age=N``: N seconds
        3. ``Expires``: remaining time relative to ``fetched_at``
        4. Default TTL

    Expired entries are dropped on read. There is no background sweep;
    owners that keep the cache for long call ``cleanup()`` periodically.
    TTLs are only header-driven when ``set`` receives the response
    metadata, so ``CachedFetcher``, which calls the plain ``set``, gets
    the default TTL for every entry.

    Example:
        ```python
        cache = HttpCacheControlCache(default_ttl_seconds=300)
        await cache.set(
            "repertories",
            payload,
            HttpCacheMetadata(headers=dict(response.headers), fetched_at=time.time()),
        )
        ```
    """

    capabilities = CacheCapability.STATS | CacheCapability.LIFECYCLE

    def __init__(self, default_ttl_seconds: float, logger: logging.Logger | None = None) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError(f"default_ttl_seconds must be > 0, got {default_ttl_seconds}")

        self._default_ttl = default_ttl_seconds
        self._store: dict[str, _HttpCacheEntry[V]] = {}
        self._logger = logger or logging.getLogger(__name__)

    def _parse_cache_control(self, cache_control: str | None) -> float | None:
        """Return TTL from Cache-Control, 0 for "do not cache", None if absent."""
        if not cache_control:
            return None

        if "no-cache" in cache_control or "no-store" in cache_control:
            self._logger.debug("Cache-Control directive: no-cache/no-store")
            return 0.0

        match = _MAX_AGE_PATTERN.search(cache_control)
        if match:
            seconds = int(match.group(1))
            if seconds <= 0:
                self._logger.debug(f"Cache-Control max-age={seconds}: treating as no-cache")
                return 0.0
            self._logger.debug(f"Cache-Control max-age: {seconds}s")
            return float(seconds)

        return None

    def _parse_expires(self, expires: str | None, fetched_at: float | None) -> float | None:
        """Return TTL from an Expires date relative to fetched_at."""
        if not expires or fetched_at is None:
            return None

        try:
            expires_at: datetime = parsedate_to_datetime(expires)
        except (TypeError, ValueError):
            self._logger.debug("Invalid Expires header")
            return None

        ttl = expires_at.timestamp() - fetched_at
        self._logger.debug(f"Expires header TTL: {ttl:.3f}s")
        return ttl if ttl > 0 else 0.0

    def resolve_ttl(self, metadata: HttpCacheMetadata | None) -> float:
        """Determine the TTL for a value given its HTTP metadata."""
        if metadata is None or not metadata.headers:
            return self._default_ttl

        max_age = self._parse_cache_control(metadata.header("cache-control"))
        if max_age is not None:
            return max_age

        expires_ttl = self._parse_expires(metadata.header("expires"), metadata.fetched_at)
        if expires_ttl is not None:
            return expires_ttl

        return self._default_ttl

    async def get(self, key: str) -> V | None:
        entry = self._store.get(key)
        if entry is None:
            self._logger.debug(f"Cache miss: {key}")
            return None

        if time.monotonic() >= entry.expires_at:
            self._logger.debug(f"Cache expired: {key}")
            del self._store[key]
            return None

        self._logger.debug(f"Cache hit: {key}")
        return entry.data

    async def set(self, key: str, value: V, metadata: HttpCacheMetadata | None = None) -> None:
        """Store value; skipped entirely when the headers forbid caching."""
        ttl = self.resolve_ttl(metadata)
        if ttl <= 0:
            self._logger.debug(f"Cache disabled by headers: {key}")
            return

        self._store[key] = _HttpCacheEntry(data=value, expires_at=time.monotonic() + ttl, metadata=metadata)
        self._logger.debug(f"Cache set: {key} (TTL: {ttl:.3f}s)")

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)
        self._logger.debug(f"Cache deleted: {key}")

    async def clear(self) -> None:
        size = len(self._store)
        self._store.clear()
        self._logger.debug(f"Cache cleared: {size} entries removed")

    async def get_stats(self) -> dict[str, Any]:
        return {"size": len(self._store), "ttl": self._default_ttl}

    def cleanup(self) -> int:
        """Remove expired entries and return how many were dropped."""
        now = time.monotonic()
        expired = [key for key, entry in self._store.items() if now >= entry.expires_at]
        for key in expired:
            del self._store[key]

        if expired:
            self._logger.debug(f"HTTP cache cleanup: {len(expired)} expired entries removed")

        return len(expired)

    async def destroy(self) -> None:
        await self.clear()
        self._logger.debug("HTTP Cache-Control cache destroyed")
