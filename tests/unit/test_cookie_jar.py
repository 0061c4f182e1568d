"""Tests for the cookie jar."""

from resilient_cache.session import CookieJar


class TestCookieJar:
    """Tests for CookieJar."""

    def test_empty_jar(self) -> None:
        jar = CookieJar()

        assert len(jar) == 0
        assert jar.has_cookies() is False
        assert jar.header_value() is None

    def test_keeps_only_name_value_pair(self) -> None:
        jar = CookieJar()

        stored = jar.set_from_headers(["PLAY_SESSION=abc123; Path=/; HttpOnly", "lang=en; Max-Age=3600"])

        assert stored == 2
        assert jar.get("PLAY_SESSION") == "abc123"
        assert jar.header_value() == "PLAY_SESSION=abc123; lang=en"

    def test_value_may_contain_equals(self) -> None:
        jar = CookieJar()

        jar.set_from_headers(["token=a=b=c; Secure"])

        assert jar.get("token") == "a=b=c"

    def test_malformed_pairs_skipped(self) -> None:
        jar = CookieJar()

        stored = jar.set_from_headers(["=value", "novalue", "empty=", " ; Path=/", "ok=1"])

        assert stored == 1
        assert "ok" in jar
        assert len(jar) == 1

    def test_whitespace_trimmed(self) -> None:
        jar = CookieJar()

        jar.set_from_headers(["  sid =  xyz  ; Path=/"])

        assert jar.get("sid") == "xyz"

    def test_overwrite_keeps_position(self) -> None:
        jar = CookieJar()
        jar.set_from_headers(["a=1", "b=2"])

        jar.set_from_headers(["a=9"])

        assert jar.header_value() == "a=9; b=2"

    def test_clear(self) -> None:
        jar = CookieJar()
        jar.set_from_headers(["a=1"])

        jar.clear()

        assert jar.has_cookies() is False
        assert jar.get("a") is None
