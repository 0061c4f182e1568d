"""resilient-cache: Caching and session layer for an upstream content API.

Concurrency-safe building blocks for a client of an external API with
cookie-based sessions: TTL caching, single-flight request deduplication,
shared session bootstrap and a failure-isolating cache wrapper.

Basic usage:
    ```python
    from resilient_cache import CachedFetcher, HttpxHttpClient, LayerConfig

    config = LayerConfig.resolve()
    async with HttpxHttpClient(timeout=config.http_timeout_seconds) as http:
        async with CachedFetcher(http, config) as fetcher:
            remedies = await fetcher.fetch("remedies", "/api/available_remedies")
    ```

With a resilient cache and OpenTelemetry metrics:
    ```python
    from resilient_cache import NoOpCache, OpenTelemetryMetrics, SafeCacheWrapper, TTLCache

    metrics = OpenTelemetryMetrics()
    cache = SafeCacheWrapper(TTLCache(300), NoOpCache(), metrics=metrics)
    fetcher = CachedFetcher(http, config, cache=cache, metrics=metrics)
    ```
"""

import logging

__version__ = "0.1.0"

# Cache backends
from .backend import CacheEntry, HttpCacheControlCache, HttpCacheMetadata, NoOpCache, TTLCache

# Configuration
from .config import LayerConfig

# Exceptions
from .exceptions import (
    ConfigurationError,
    DeduplicationTimeoutError,
    HttpError,
    NetworkError,
    RequestTimeoutError,
    ResilientCacheError,
    TransportError,
)

# Metrics
from .metrics import CacheStats, InMemoryMetrics, KeyStats, NoOpMetrics, OpenTelemetryMetrics

# Orchestration
from .orchestration import (
    CachedFetcher,
    DeduplicationStats,
    InstrumentedRequestDeduplicator,
    RequestDeduplicator,
)

# Protocols (for extensibility)
from .protocols import Cache, CacheCapability, CacheMetrics, HttpClient, LifecycleCache, SessionManager, StatsCache

# Session
from .session import CookieJar, CookieSessionManager, extract_set_cookie_headers

# Transport
from .transport import HttpResponse, HttpxHttpClient

# Wrappers
from .wrappers import SafeCacheWrapper

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Cache backends
    "CacheEntry",
    "HttpCacheControlCache",
    "HttpCacheMetadata",
    "NoOpCache",
    "TTLCache",
    # Wrappers
    "SafeCacheWrapper",
    # Orchestration
    "CachedFetcher",
    "DeduplicationStats",
    "InstrumentedRequestDeduplicator",
    "RequestDeduplicator",
    # Session
    "CookieJar",
    "CookieSessionManager",
    "extract_set_cookie_headers",
    # Transport
    "HttpResponse",
    "HttpxHttpClient",
    # Configuration
    "LayerConfig",
    # Metrics
    "CacheStats",
    "InMemoryMetrics",
    "KeyStats",
    "NoOpMetrics",
    "OpenTelemetryMetrics",
    # Exceptions
    "ConfigurationError",
    "DeduplicationTimeoutError",
    "HttpError",
    "NetworkError",
    "RequestTimeoutError",
    "ResilientCacheError",
    "TransportError",
    # Protocols
    "Cache",
    "CacheCapability",
    "CacheMetrics",
    "HttpClient",
    "LifecycleCache",
    "SessionManager",
    "StatsCache",
]
