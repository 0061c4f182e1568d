"""Tests for the failure-isolating cache wrapper."""

import logging
from unittest.mock import MagicMock

import pytest

from resilient_cache.backend import NoOpCache, TTLCache
from resilient_cache.protocols import CacheCapability
from resilient_cache.wrappers import SafeCacheWrapper


def make_failing(cache: MagicMock, error: Exception) -> MagicMock:
    for name in ("get", "set", "has", "delete", "clear", "get_stats", "destroy"):
        getattr(cache, name).side_effect = error
    return cache


class TestSafeCacheWrapperDelegation:
    """Tests for normal operation."""

    @pytest.mark.asyncio
    async def test_healthy_primary_used(self, mock_cache_factory) -> None:
        primary = mock_cache_factory()
        fallback = mock_cache_factory()
        primary.get.return_value = "from-primary"
        wrapper = SafeCacheWrapper(primary, fallback)

        assert await wrapper.get("key") == "from-primary"
        await wrapper.set("key", "value")

        primary.set.assert_awaited_once_with("key", "value")
        fallback.get.assert_not_awaited()
        fallback.set.assert_not_awaited()
        assert wrapper.failure_count == 0

    @pytest.mark.asyncio
    async def test_real_caches(self) -> None:
        primary: TTLCache[str] = TTLCache(ttl_seconds=60)
        wrapper = SafeCacheWrapper(primary, NoOpCache())

        await wrapper.set("key", "value")

        assert await wrapper.has("key") is True
        assert await wrapper.get_stats() == {"size": 1, "ttl": 60}

        await wrapper.delete("key")
        assert await wrapper.get("key") is None

        await wrapper.set("other", "value")
        await wrapper.clear()
        assert (await wrapper.get_stats())["size"] == 0

        await wrapper.destroy()

    def test_invalid_max_failures_rejected(self, mock_cache_factory) -> None:
        with pytest.raises(ValueError):
            SafeCacheWrapper(mock_cache_factory(), mock_cache_factory(), max_failures=0)


class TestSafeCacheWrapperFailures:
    """Tests for the failure counter and permanent fallback."""

    @pytest.mark.asyncio
    async def test_primary_error_answered_by_fallback(self, mock_cache_factory) -> None:
        primary = make_failing(mock_cache_factory(), RuntimeError("redis down"))
        fallback = mock_cache_factory()
        fallback.get.return_value = "from-fallback"
        wrapper = SafeCacheWrapper(primary, fallback)

        assert await wrapper.get("key") == "from-fallback"
        assert wrapper.failure_count == 1
        assert wrapper.is_using_fallback is False

    @pytest.mark.asyncio
    async def test_mixed_failures_open_circuit_at_threshold(self, mock_cache_factory) -> None:
        """Failures of different operations share one counter."""
        primary = make_failing(mock_cache_factory(), RuntimeError("redis down"))
        fallback = mock_cache_factory()
        wrapper = SafeCacheWrapper(primary, fallback)

        await wrapper.get("a")
        await wrapper.set("a", 1)
        await wrapper.has("a")
        await wrapper.delete("a")
        assert wrapper.is_using_fallback is False

        await wrapper.clear()
        assert wrapper.failure_count == 5
        assert wrapper.is_using_fallback is True

        await wrapper.get("b")

        assert primary.get.await_count == 1
        assert fallback.get.await_count == 2
        assert wrapper.failure_count == 5

    @pytest.mark.asyncio
    async def test_successes_do_not_reset_counter(self, mock_cache_factory) -> None:
        primary = mock_cache_factory()
        primary.get.side_effect = [RuntimeError("x"), RuntimeError("y"), "ok", RuntimeError("z")]
        wrapper = SafeCacheWrapper(primary, mock_cache_factory())

        for _ in range(4):
            await wrapper.get("key")

        assert wrapper.failure_count == 3

    @pytest.mark.asyncio
    async def test_custom_threshold(self, mock_cache_factory) -> None:
        primary = make_failing(mock_cache_factory(), RuntimeError("down"))
        wrapper = SafeCacheWrapper(primary, mock_cache_factory(), max_failures=2)

        await wrapper.get("a")
        await wrapper.get("a")

        assert wrapper.is_using_fallback is True

    @pytest.mark.asyncio
    async def test_fallback_errors_propagate(self, mock_cache_factory) -> None:
        primary = make_failing(mock_cache_factory(), RuntimeError("primary down"))
        fallback = make_failing(mock_cache_factory(), OSError("fallback down"))
        wrapper = SafeCacheWrapper(primary, fallback)

        with pytest.raises(OSError, match="fallback down"):
            await wrapper.get("key")

    @pytest.mark.asyncio
    async def test_failures_logged_and_recorded(self, mock_cache_factory, caplog) -> None:
        error = RuntimeError("redis down")
        primary = make_failing(mock_cache_factory(), error)
        metrics = MagicMock()
        wrapper = SafeCacheWrapper(primary, mock_cache_factory(), metrics=metrics, max_failures=2)

        with caplog.at_level(logging.WARNING, logger="resilient_cache.wrappers.safe_cache"):
            await wrapper.get("key")
            await wrapper.set("key", "value")

        assert "Cache get failed (1/2): redis down" in caplog.text
        assert "Cache set failed (2/2): redis down" in caplog.text
        assert "Cache has failed 2 times, switching to fallback permanently" in caplog.text
        metrics.record_error.assert_any_call("key", error)
        assert metrics.record_error.call_count == 2

    @pytest.mark.asyncio
    async def test_errors_recorded_under_cache_key(self, mock_cache_factory) -> None:
        """Keyed operations report the key; clear reports its operation name."""
        error = RuntimeError("redis down")
        primary = make_failing(mock_cache_factory(), error)
        metrics = MagicMock()
        wrapper = SafeCacheWrapper(primary, mock_cache_factory(), metrics=metrics)

        await wrapper.get("remedy:acon")
        await wrapper.delete("remedy:bell")
        await wrapper.clear()

        recorded = [c.args for c in metrics.record_error.call_args_list]
        assert recorded == [("remedy:acon", error), ("remedy:bell", error), ("clear", error)]


class TestSafeCacheWrapperCapabilities:
    """Tests for stats and lifecycle forwarding."""

    @pytest.mark.asyncio
    async def test_stats_default_when_delegate_has_none(self, mock_cache_factory) -> None:
        primary = mock_cache_factory(capabilities=CacheCapability.NONE)
        wrapper = SafeCacheWrapper(primary, mock_cache_factory())

        assert await wrapper.get_stats() == {"size": 0}
        primary.get_stats.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stats_forwarded(self, mock_cache_factory) -> None:
        primary = mock_cache_factory()
        primary.get_stats.return_value = {"size": 3, "ttl": 10}
        wrapper = SafeCacheWrapper(primary, mock_cache_factory())

        assert await wrapper.get_stats() == {"size": 3, "ttl": 10}

    @pytest.mark.asyncio
    async def test_stats_from_fallback_after_failure(self, mock_cache_factory) -> None:
        primary = make_failing(mock_cache_factory(), RuntimeError("down"))
        fallback = mock_cache_factory(capabilities=CacheCapability.NONE)
        wrapper = SafeCacheWrapper(primary, fallback)

        assert await wrapper.get_stats() == {"size": 0}
        assert wrapper.failure_count == 1

    @pytest.mark.asyncio
    async def test_destroy_never_raises(self, mock_cache_factory, caplog) -> None:
        """Both delegates are destroyed once even if the primary fails."""
        primary = mock_cache_factory()
        primary.destroy.side_effect = RuntimeError("cannot close")
        fallback = mock_cache_factory()
        wrapper = SafeCacheWrapper(primary, fallback)

        with caplog.at_level(logging.WARNING, logger="resilient_cache.wrappers.safe_cache"):
            await wrapper.destroy()

        primary.destroy.assert_awaited_once()
        fallback.destroy.assert_awaited_once()
        assert "Primary cache destroy failed: cannot close" in caplog.text

    @pytest.mark.asyncio
    async def test_destroy_skips_delegates_without_lifecycle(self, mock_cache_factory) -> None:
        primary = mock_cache_factory(capabilities=CacheCapability.STATS)
        fallback = mock_cache_factory()
        wrapper = SafeCacheWrapper(primary, fallback)

        await wrapper.destroy()

        primary.destroy.assert_not_awaited()
        fallback.destroy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_destroy_does_not_count_failures(self, mock_cache_factory) -> None:
        primary = mock_cache_factory()
        primary.destroy.side_effect = RuntimeError("cannot close")
        wrapper = SafeCacheWrapper(primary, mock_cache_factory())

        await wrapper.destroy()

        assert wrapper.failure_count == 0

    @pytest.mark.asyncio
    async def test_destroy_with_both_delegates_failing(self, mock_cache_factory, caplog) -> None:
        primary = mock_cache_factory()
        primary.destroy.side_effect = RuntimeError("primary close failed")
        fallback = mock_cache_factory()
        fallback.destroy.side_effect = RuntimeError("fallback close failed")
        wrapper = SafeCacheWrapper(primary, fallback)

        with caplog.at_level(logging.WARNING, logger="resilient_cache.wrappers.safe_cache"):
            await wrapper.destroy()

        primary.destroy.assert_awaited_once()
        fallback.destroy.assert_awaited_once()
        assert "Fallback cache destroy failed: fallback close failed" in caplog.text
