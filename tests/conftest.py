"""Shared fixtures for the test suite."""

import asyncio
from collections.abc import Callable, Iterable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from resilient_cache.protocols import CacheCapability
from resilient_cache.transport import HttpResponse


def build_response(status: int = 200, data: Any = None, cookies: Iterable[str] = ()) -> HttpResponse:
    """HttpResponse with the given Set-Cookie values."""
    headers = httpx.Headers([("set-cookie", cookie) for cookie in cookies])
    return HttpResponse(status=status, headers=headers, data=data, reason="OK")


class RecordingHttpClient:
    """HttpClient double that records every request.

    The handler receives ``(url, headers)`` and returns an HttpResponse or
    an exception instance to raise.
    """

    def __init__(
        self,
        handler: Callable[[str, dict[str, str] | None], Any] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.calls: list[tuple[str, dict[str, str] | None]] = []
        self._handler = handler or (lambda url, headers: build_response())
        self._delay = delay

    async def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        self.calls.append((url, headers))
        if self._delay:
            await asyncio.sleep(self._delay)
        result = self._handler(url, headers)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def response_factory() -> Callable[..., HttpResponse]:
    """Factory for HttpResponse objects."""
    return build_response


@pytest.fixture
def http_client_factory() -> Callable[..., RecordingHttpClient]:
    """Factory for recording HTTP clients."""
    return RecordingHttpClient


@pytest.fixture
def mock_cache_factory() -> Callable[..., MagicMock]:
    """Factory for cache mocks with every cache coroutine mocked."""

    def factory(capabilities: CacheCapability = CacheCapability.STATS | CacheCapability.LIFECYCLE) -> MagicMock:
        cache = MagicMock()
        cache.capabilities = capabilities
        for name in ("get", "set", "has", "delete", "clear", "get_stats", "destroy"):
            setattr(cache, name, AsyncMock())
        return cache

    return factory
