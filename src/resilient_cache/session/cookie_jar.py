"""In-memory cookie jar used to rebuild the ``Cookie`` request header."""

from collections.abc import Iterable


class CookieJar:
    """Mapping of cookie name to value, kept in insertion order.

    Only the ``name=value`` pair of each ``Set-Cookie`` header is kept;
    attributes such as ``Path`` or ``HttpOnly`` are ignored.
    """

    def __init__(self) -> None:
        self._cookies: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: object) -> bool:
        return name in self._cookies

    def has_cookies(self) -> bool:
        return bool(self._cookies)

    def get(self, name: str) -> str | None:
        return self._cookies.get(name)

    def clear(self) -> None:
        self._cookies.clear()

    def set_from_headers(self, headers: Iterable[str]) -> int:
        """Merge ``Set-Cookie`` header values into the jar.

        Pairs without a name, without ``=`` or with an empty value are
        skipped. A cookie that is set again keeps its original position.

        Args:
            headers: Raw ``Set-Cookie`` header values

        Returns:
            Number of cookies stored
        """
        stored = 0
        for header in headers:
            pair = header.split(";", 1)[0]
            name, sep, value = pair.partition("=")
            name = name.strip()
            value = value.strip()
            if not name or not sep or not value:
                continue
            self._cookies[name] = value
            stored += 1
        return stored

    def header_value(self) -> str | None:
        """Build the ``Cookie`` header value, or None when the jar is empty."""
        if not self._cookies:
            return None
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())
