"""
Session management for authenticated upstream requests.

Provides a cookie-based session manager whose bootstrap request is shared
by every concurrent caller.
"""

from .cookie_jar import CookieJar
from .manager import CookieSessionManager, extract_set_cookie_headers

__all__ = [
    "CookieJar",
    "CookieSessionManager",
    "extract_set_cookie_headers",
]
