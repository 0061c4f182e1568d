"""
Cached fetcher coordinating the complete request flow.

Orchestrates cache lookup, request deduplication, session handling and the
upstream HTTP call so N concurrent identical requests become one.
"""

import logging
import time
from typing import Any, cast

from ..backend.ttl_cache import TTLCache
from ..config import LayerConfig
from ..constants import AUTH_FAILURE_STATUSES
from ..exceptions import HttpError
from ..metrics import resolve_metrics
from ..protocols import Cache, CacheCapability, CacheMetrics, HttpClient, LifecycleCache, SessionManager, StatsCache
from ..session.manager import CookieSessionManager
from ..transport import HttpResponse
from .deduplication import RequestDeduplicator


class CachedFetcher:
    """Fetches upstream resources through cache, deduplication and session.

    Flow for ``fetch(key, path)``:

    1. Cache lookup; a hit returns immediately
    2. On miss, the request is deduplicated by key
    3. The shared execution ensures a session, attaches its auth headers,
       issues the GET and lets the session manager see the response
    4. A 401/403 answer forces one session refresh and one retry
    5. The value is written to the cache inside the shared execution

    Because the write happens inside the shared execution, a request
    detached by the deduplication timeout still fills the cache when it
    eventually succeeds.

    Example:
        ```python
        config = LayerConfig.resolve()
        async with HttpxHttpClient(timeout=config.http_timeout_seconds) as http:
            async with CachedFetcher(http, config) as fetcher:
                remedies = await fetcher.fetch("remedies", "/api/available_remedies")
        ```
    """

    def __init__(
        self,
        http_client: HttpClient,
        config: LayerConfig | None = None,
        cache: Cache[Any] | None = None,
        session_manager: SessionManager | None = None,
        deduplicator: RequestDeduplicator | None = None,
        metrics: CacheMetrics | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            http_client: HTTP capability for upstream requests
            config: Layer configuration (resolved from env/defaults if None)
            cache: Cache to use (creates an owned TTLCache if None)
            session_manager: Session strategy (creates a CookieSessionManager if None)
            deduplicator: Request deduplicator (creates default if None)
            metrics: Metrics collector (no-op if None)
            logger: Logger to use (module logger if None)
        """
        self._config = config or LayerConfig.resolve()
        self._http = http_client
        self._logger = logger or logging.getLogger(__name__)
        self._owns_cache = cache is None
        self._cache: Cache[Any] = cache if cache is not None else TTLCache(self._config.ttl_seconds, logger)
        self._sessions: SessionManager = session_manager or CookieSessionManager(
            http_client, self._config.base_url, logger=logger
        )
        self._deduplicator = deduplicator or RequestDeduplicator(self._config.dedup_timeout_seconds, logger)
        self._metrics = resolve_metrics(metrics)

        self._logger.debug(f"Initialized CachedFetcher for {self._config.base_url}")

    @property
    def cache(self) -> Cache[Any]:
        return self._cache

    @property
    def session_manager(self) -> SessionManager:
        return self._sessions

    @property
    def deduplicator(self) -> RequestDeduplicator:
        return self._deduplicator

    def build_url(self, path: str) -> str:
        """Resolve a path against the base URL; absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._config.base_url}/{path.lstrip('/')}"

    async def fetch(self, key: str, path: str, timeout_seconds: float | None = None) -> Any:
        """Return the upstream payload for path, cached under key.

        Args:
            key: Cache and deduplication key
            path: Path relative to the base URL, or an absolute URL
            timeout_seconds: Deduplication wait limit (configured default if None)

        Returns:
            Decoded response body

        Raises:
            DeduplicationTimeoutError: If the shared request does not settle in time
            TransportError: If the upstream request fails
        """
        started = time.perf_counter()

        cached = await self._cache.get(key)
        if cached is not None:
            self._metrics.record_hit(key, time.perf_counter() - started)
            return cached

        url = self.build_url(path)

        async def fetch_and_store() -> Any:
            response = await self._request(url)
            if response.data is not None:
                await self._cache.set(key, response.data)
                self._metrics.record_write(key)
            return response.data

        value = await self._deduplicator.deduplicate(key, fetch_and_store, timeout_seconds)
        self._metrics.record_miss(key, time.perf_counter() - started)
        return value

    async def _request(self, url: str) -> HttpResponse:
        await self._sessions.ensure_session()

        try:
            return await self._get_with_session(url)
        except HttpError as e:
            if e.response is not None:
                self._sessions.handle_response(e.response)
            if e.status not in AUTH_FAILURE_STATUSES:
                raise
            self._logger.info(f"Upstream rejected session (HTTP {e.status}), refreshing")

        await self._sessions.ensure_session(force_refresh=True)
        return await self._get_with_session(url)

    async def _get_with_session(self, url: str) -> HttpResponse:
        response = await self._http.get(url, headers=self._sessions.get_auth_headers())
        self._sessions.handle_response(response)
        return response

    async def invalidate(self, key: str) -> None:
        """Drop a cached value so the next fetch goes upstream."""
        await self._cache.delete(key)

    async def get_stats(self) -> dict[str, Any]:
        """Cache statistics plus in-flight request count."""
        cache_stats: dict[str, Any] = {"size": 0}
        if CacheCapability.STATS in self._cache.capabilities:
            cache_stats = await cast(StatsCache[Any], self._cache).get_stats()

        return {
            "cache": cache_stats,
            "pending_requests": self._deduplicator.get_pending_count(),
        }

    async def aclose(self) -> None:
        """Destroy the cache if this fetcher created it."""
        if self._owns_cache and CacheCapability.LIFECYCLE in self._cache.capabilities:
            await cast(LifecycleCache[Any], self._cache).destroy()

    async def __aenter__(self) -> "CachedFetcher":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
