"""
Cache storage implementations.

This module provides in-memory cache backends that satisfy the Cache
capability: a TTL cache with background cleanup, a header-driven HTTP
cache and a no-op cache for disabled caching or fallback use.
"""

from .http_cache_control import HttpCacheControlCache, HttpCacheMetadata
from .noop import NoOpCache
from .ttl_cache import CacheEntry, TTLCache

__all__ = [
    "CacheEntry",
    "HttpCacheControlCache",
    "HttpCacheMetadata",
    "NoOpCache",
    "TTLCache",
]
