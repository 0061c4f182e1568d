"""
Constants for the resilient cache layer.

Defines default values and limits used across the package to eliminate
magic numbers and keep tuning in one place.
"""

# TTL cache
DEFAULT_TTL_SECONDS = 300.0  # 5 minutes
MAX_CLEANUP_INTERVAL_SECONDS = 3600.0  # sweep at least hourly

# Deduplication
DEFAULT_DEDUP_TIMEOUT_SECONDS = 60.0

# Safe cache wrapper
MAX_PRIMARY_FAILURES = 5

# HTTP transport
DEFAULT_BASE_URL = "https://www.oorep.com"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
MIN_HTTP_TIMEOUT_SECONDS = 1.0
MAX_HTTP_TIMEOUT_SECONDS = 300.0
DEFAULT_USER_AGENT = "resilient-cache/0.1.0"

# Session
DEFAULT_BOOTSTRAP_PATH = "/api/available_remedies?limit=1"
SET_COOKIE_HEADER = "set-cookie"
COOKIE_HEADER = "Cookie"
AUTH_FAILURE_STATUSES = frozenset({401, 403})

# Stats returned when no delegate can report any
EMPTY_STATS = {"size": 0}
