"""
Request orchestration and deduplication utilities.

This module provides the single-flight request deduplicator and the cached
fetcher that composes cache, deduplication and session handling.
"""

from .deduplication import (
    DeduplicationStats,
    InstrumentedRequestDeduplicator,
    RequestDeduplicator,
)
from .fetcher import CachedFetcher

__all__ = [
    # Deduplication
    "DeduplicationStats",
    "InstrumentedRequestDeduplicator",
    "RequestDeduplicator",
    # Orchestration
    "CachedFetcher",
]
