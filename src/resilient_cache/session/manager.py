"""
Cookie-based session management with single-flight bootstrap.

A lightweight request to a stable endpoint captures the session cookies;
every later request reuses them. Concurrent callers share one bootstrap.
"""

import asyncio
import logging

from ..constants import COOKIE_HEADER, DEFAULT_BOOTSTRAP_PATH, SET_COOKIE_HEADER
from ..protocols import HttpClient
from ..transport import HttpResponse
from .cookie_jar import CookieJar


def extract_set_cookie_headers(response: HttpResponse) -> list[str]:
    """Return every ``Set-Cookie`` value of a response, case-insensitively."""
    return response.headers.get_list(SET_COOKIE_HEADER)


class CookieSessionManager:
    """Maintains one shared cookie session for all callers.

    Core Features:
        - **Single-flight bootstrap**: N concurrent ``ensure_session`` calls
          without a session produce exactly one HTTP request, even when
          the response sets no cookie
        - **Forced refresh dedup**: concurrent ``ensure_session(True)`` calls
          share one extra bootstrap
        - **Opportunistic refresh**: cookies from any response are merged

    Failure Semantics:
        A failed bootstrap propagates the same exception to every caller
        sharing it. The bootstrap writes cookies only from a successful
        response, so a failure never leaves the jar partially updated.

    Example:
        ```python
        sessions = CookieSessionManager(HttpxHttpClient(), "https://www.oorep.com")

        await sessions.ensure_session()
        response = await http.get(url, headers=sessions.get_auth_headers())
        sessions.handle_response(response)
        ```
    """

    def __init__(
        self,
        http_client: HttpClient,
        base_url: str,
        bootstrap_path: str = DEFAULT_BOOTSTRAP_PATH,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            http_client: HTTP capability used for the bootstrap request
            base_url: Upstream base URL (trailing slash ignored)
            bootstrap_path: Cheap endpoint that sets the session cookies
            logger: Logger to use (module logger if None)
        """
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")
        self._bootstrap_path = bootstrap_path
        self._logger = logger or logging.getLogger(__name__)
        self._jar = CookieJar()
        self._bootstrap_task: asyncio.Task[None] | None = None

    @property
    def bootstrap_url(self) -> str:
        return f"{self._base_url}{self._bootstrap_path}"

    @property
    def has_session(self) -> bool:
        return self._jar.has_cookies()

    @property
    def is_bootstrapping(self) -> bool:
        return self._bootstrap_task is not None

    async def ensure_session(self, force_refresh: bool = False) -> None:
        """Make sure a usable session exists.

        Args:
            force_refresh: Replace the current session even if one exists

        Raises:
            TransportError: If the bootstrap request fails
        """
        if self._bootstrap_task is not None:
            # A bootstrap that just finished satisfies every caller that
            # joined it, even when the upstream set no cookie
            await asyncio.shield(self._bootstrap_task)
            return

        if not force_refresh and self._jar.has_cookies():
            return

        if force_refresh:
            self._jar.clear()

        self._bootstrap_task = asyncio.ensure_future(self._bootstrap_session())
        self._bootstrap_task.add_done_callback(self._on_bootstrap_done)

        await asyncio.shield(self._bootstrap_task)

    async def _bootstrap_session(self) -> None:
        """Issue the bootstrap request and capture its cookies."""
        url = self.bootstrap_url
        self._logger.debug(f"Initializing session via {url}")

        # HttpClient.get raises HttpError on non-2xx responses
        response = await self._http_client.get(url)
        self._store_cookies(response)

        self._logger.debug(f"Session initialized ({len(self._jar)} cookies)")

    def _on_bootstrap_done(self, task: "asyncio.Task[None]") -> None:
        # Runs before any waiter resumes, so the next call can re-bootstrap
        if self._bootstrap_task is task:
            self._bootstrap_task = None
        if not task.cancelled() and task.exception() is not None:
            self._logger.debug(f"Session bootstrap failed: {task.exception()}")

    def _store_cookies(self, response: HttpResponse) -> None:
        cookies = extract_set_cookie_headers(response)
        if cookies:
            self._jar.set_from_headers(cookies)

    def get_auth_headers(self) -> dict[str, str]:
        """Headers for authenticated requests, empty when there is no session."""
        cookie_header = self._jar.header_value()
        if cookie_header is None:
            return {}
        return {COOKIE_HEADER: cookie_header}

    def handle_response(self, response: HttpResponse) -> None:
        """Merge cookies from any upstream response into the jar."""
        self._store_cookies(response)

    def clear_session(self) -> None:
        """Drop all cookies; the next ``ensure_session`` bootstraps again."""
        self._jar.clear()
        self._logger.debug("Session cleared")
