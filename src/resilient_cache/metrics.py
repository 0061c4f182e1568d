"""Cache metrics using OpenTelemetry."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock

from opentelemetry import metrics as otel_metrics

from .protocols import CacheMetrics

logger = logging.getLogger(__name__)


class NoOpMetrics:
    """Metrics collector that does nothing (default)."""

    def record_hit(self, key: str, latency: float) -> None:
        pass

    def record_miss(self, key: str, latency: float) -> None:
        pass

    def record_write(self, key: str) -> None:
        pass

    def record_error(self, key: str, error: Exception) -> None:
        pass


@dataclass
class KeyStats:
    """Statistics for a single key."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0
    total_latency_hits: float = 0.0
    total_latency_misses: float = 0.0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


@dataclass
class CacheStats:
    """Aggregated cache statistics."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0
    hit_latencies: list[float] = field(default_factory=list)
    miss_latencies: list[float] = field(default_factory=list)

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @property
    def avg_hit_latency_ms(self) -> float:
        if not self.hit_latencies:
            return 0.0
        return sum(self.hit_latencies) / len(self.hit_latencies) * 1000

    @property
    def avg_miss_latency_ms(self) -> float:
        if not self.miss_latencies:
            return 0.0
        return sum(self.miss_latencies) / len(self.miss_latencies) * 1000


class OpenTelemetryMetrics:
    """Metrics collector backed by OpenTelemetry.

    Exported metrics:
    - cache.hits (counter)
    - cache.misses (counter)
    - cache.writes (counter)
    - cache.errors (counter)
    - cache.latency (histogram, seconds)

    Example:
        ```python
        from opentelemetry import metrics
        from opentelemetry.sdk.metrics import MeterProvider

        metrics.set_meter_provider(MeterProvider())

        fetcher = CachedFetcher(http_client, config, metrics=OpenTelemetryMetrics())
        ```
    """

    def __init__(self, meter_name: str = "resilient_cache") -> None:
        meter = otel_metrics.get_meter(meter_name)

        self._hits_counter = meter.create_counter("cache.hits", description="Number of cache hits", unit="1")
        self._misses_counter = meter.create_counter("cache.misses", description="Number of cache misses", unit="1")
        self._writes_counter = meter.create_counter("cache.writes", description="Number of cache writes", unit="1")
        self._errors_counter = meter.create_counter("cache.errors", description="Number of cache errors", unit="1")
        self._latency_histogram = meter.create_histogram(
            "cache.latency",
            description="Latency of cache lookups and upstream fetches",
            unit="s",
        )

    def record_hit(self, key: str, latency: float) -> None:
        self._hits_counter.add(1, {"key": key})
        self._latency_histogram.record(latency, {"operation": "hit", "key": key})

    def record_miss(self, key: str, latency: float) -> None:
        self._misses_counter.add(1, {"key": key})
        self._latency_histogram.record(latency, {"operation": "miss", "key": key})

    def record_write(self, key: str) -> None:
        self._writes_counter.add(1, {"key": key})

    def record_error(self, key: str, error: Exception) -> None:
        self._errors_counter.add(1, {"key": key, "error_type": type(error).__name__})


class InMemoryMetrics:
    """In-memory metrics collector with per-key statistics.

    Useful for development, tests and detailed analysis. Keeps aggregated
    and per-key statistics; latency samples are bounded.

    Attributes:
        max_samples: Maximum latency samples kept per list
    """

    def __init__(self, max_samples: int = 1000) -> None:
        self._max_samples = max_samples
        self._lock = Lock()
        self._overall = CacheStats()
        self._by_key: dict[str, KeyStats] = defaultdict(KeyStats)

    def record_hit(self, key: str, latency: float) -> None:
        with self._lock:
            self._overall.hits += 1
            self._overall.hit_latencies.append(latency)
            self._trim_samples(self._overall.hit_latencies)

            self._by_key[key].hits += 1
            self._by_key[key].total_latency_hits += latency

    def record_miss(self, key: str, latency: float) -> None:
        with self._lock:
            self._overall.misses += 1
            self._overall.miss_latencies.append(latency)
            self._trim_samples(self._overall.miss_latencies)

            self._by_key[key].misses += 1
            self._by_key[key].total_latency_misses += latency

    def record_write(self, key: str) -> None:
        with self._lock:
            self._overall.writes += 1
            self._by_key[key].writes += 1

    def record_error(self, key: str, error: Exception) -> None:
        with self._lock:
            self._overall.errors += 1
            self._by_key[key].errors += 1
        logger.debug(f"Recorded cache error for '{key}': {type(error).__name__}")

    def _trim_samples(self, samples: list[float]) -> None:
        if len(samples) > self._max_samples:
            del samples[: len(samples) - self._max_samples]

    def get_stats(self) -> CacheStats:
        """Return a snapshot of the aggregated statistics."""
        with self._lock:
            return CacheStats(
                hits=self._overall.hits,
                misses=self._overall.misses,
                writes=self._overall.writes,
                errors=self._overall.errors,
                hit_latencies=self._overall.hit_latencies.copy(),
                miss_latencies=self._overall.miss_latencies.copy(),
            )

    def get_key_stats(self, key: str) -> KeyStats | None:
        """Return a snapshot of one key's statistics."""
        with self._lock:
            if key not in self._by_key:
                return None
            stats = self._by_key[key]
            return KeyStats(
                hits=stats.hits,
                misses=stats.misses,
                writes=stats.writes,
                errors=stats.errors,
                total_latency_hits=stats.total_latency_hits,
                total_latency_misses=stats.total_latency_misses,
            )

    def reset(self) -> None:
        with self._lock:
            self._overall = CacheStats()
            self._by_key.clear()


def resolve_metrics(metrics: CacheMetrics | None) -> CacheMetrics:
    """Return the given collector, or a NoOpMetrics when None."""
    return metrics if metrics is not None else NoOpMetrics()
