"""HTTP transport for the upstream content API, built on httpx."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .constants import DEFAULT_HTTP_TIMEOUT_SECONDS, DEFAULT_USER_AGENT
from .exceptions import HttpError, NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """Standardized HTTP response.

    Attributes:
        status: HTTP status code
        headers: Response headers (case-insensitive, multi-valued)
        data: JSON-decoded body, raw text if not JSON, None if empty
        reason: HTTP reason phrase
    """

    status: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    data: Any = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        """True if status is in the 2xx range."""
        return 200 <= self.status < 300


class HttpxHttpClient:
    """Async HTTP client implementing the HttpClient capability.

    Uses a lazily created ``httpx.AsyncClient``; the transport timeout is
    the only bound applied here. Retries are left to the caller.

    Example:
        ```python
        async with HttpxHttpClient(timeout=10.0) as client:
            response = await client.get("https://www.oorep.com/api/available_remedies")
            print(response.status, response.data)
        ```
    """

    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            timeout: Request timeout in seconds
            headers: Default headers sent with every request
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
        """
        self._timeout = timeout
        self._headers = {"Accept": "application/json", "User-Agent": DEFAULT_USER_AGENT, **(headers or {})}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        # asyncio.Lock is created lazily so the client can be built before a loop exists
        self._client_lock: asyncio.Lock | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    def _get_lock(self) -> asyncio.Lock:
        if self._client_lock is None:
            self._client_lock = asyncio.Lock()
        return self._client_lock

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            async with self._get_lock():
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=self._timeout,
                        headers=self._headers,
                        transport=self._transport,
                    )
        return self._client

    def _parse_body(self, response: httpx.Response) -> Any:
        """Decode JSON bodies, fall back to text."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        """Issue a GET request.

        Args:
            url: Absolute URL
            headers: Extra request headers

        Returns:
            Parsed response

        Raises:
            HttpError: On non-2xx status
            RequestTimeoutError: If the request times out
            NetworkError: On any other transport failure
        """
        logger.debug(f"HTTP GET {url}")

        try:
            client = await self._get_client()
            raw = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"Request timeout after {self._timeout}s: {url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch {url}: {e}") from e

        response = HttpResponse(
            status=raw.status_code,
            headers=raw.headers,
            data=self._parse_body(raw),
            reason=raw.reason_phrase,
        )

        if not response.ok:
            raise HttpError(f"HTTP {response.status}: {response.reason}", status=response.status, response=response)

        return response

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpxHttpClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
