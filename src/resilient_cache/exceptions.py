"""
Exception hierarchy for the resilient cache layer.

Cache misses are never exceptions. Everything raised by this package derives
from ResilientCacheError so callers can catch the whole family at once.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transport import HttpResponse


class ResilientCacheError(Exception):
    """Base error for cache, deduplication and session operations."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class DeduplicationTimeoutError(ResilientCacheError):
    """A deduplicated operation did not settle before its timeout.

    Delivered to every waiter sharing the registration. The underlying
    operation keeps running; its eventual outcome is discarded.
    """

    def __init__(self, key: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Request timeout after {timeout_seconds}s", key=key)


class TransportError(ResilientCacheError):
    """Base error for the HTTP collaborator."""

    pass


class HttpError(TransportError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, message: str, status: int, response: "HttpResponse | None" = None) -> None:
        self.status = status
        self.response = response
        super().__init__(message)


class RequestTimeoutError(TransportError):
    """The HTTP request exceeded the transport timeout."""

    pass


class NetworkError(TransportError):
    """Connection-level failure talking to the upstream API."""

    pass


class ConfigurationError(ResilientCacheError, ValueError):
    """Invalid configuration value (explicit argument or environment)."""

    pass
