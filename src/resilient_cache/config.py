"""
Configuration management for the cache and session layer.

Handles environment variables, default values and validation. Every
setting follows the same precedence:

1. Explicit argument (highest precedence)
2. Environment variable
3. Default value (lowest precedence)
"""

import os
from dataclasses import dataclass

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_DEDUP_TIMEOUT_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_TTL_SECONDS,
    MAX_HTTP_TIMEOUT_SECONDS,
    MIN_HTTP_TIMEOUT_SECONDS,
)
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class LayerConfig:
    """Resolved, validated settings for the caching and session layer."""

    # Environment variable names
    ENV_BASE_URL = "RESILIENT_CACHE_BASE_URL"
    ENV_TTL_SECONDS = "RESILIENT_CACHE_TTL_SECONDS"
    ENV_HTTP_TIMEOUT_SECONDS = "RESILIENT_CACHE_HTTP_TIMEOUT_SECONDS"
    ENV_DEDUP_TIMEOUT_SECONDS = "RESILIENT_CACHE_DEDUP_TIMEOUT_SECONDS"

    base_url: str = DEFAULT_BASE_URL
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    dedup_timeout_seconds: float = DEFAULT_DEDUP_TIMEOUT_SECONDS

    @classmethod
    def resolve(
        cls,
        base_url: str | None = None,
        ttl_seconds: float | None = None,
        http_timeout_seconds: float | None = None,
        dedup_timeout_seconds: float | None = None,
    ) -> "LayerConfig":
        """Build a configuration from explicit values, env vars and defaults.

        Raises:
            ConfigurationError: If any resolved value is invalid
        """
        config = cls(
            base_url=cls.resolve_base_url(base_url),
            ttl_seconds=cls._resolve_float(ttl_seconds, cls.ENV_TTL_SECONDS, DEFAULT_TTL_SECONDS),
            http_timeout_seconds=cls._resolve_float(
                http_timeout_seconds, cls.ENV_HTTP_TIMEOUT_SECONDS, DEFAULT_HTTP_TIMEOUT_SECONDS
            ),
            dedup_timeout_seconds=cls._resolve_float(
                dedup_timeout_seconds, cls.ENV_DEDUP_TIMEOUT_SECONDS, DEFAULT_DEDUP_TIMEOUT_SECONDS
            ),
        )
        config.validate()
        return config

    @classmethod
    def resolve_base_url(cls, explicit_value: str | None = None) -> str:
        """Resolve the upstream base URL, without trailing slash."""
        if explicit_value is not None:
            return explicit_value.rstrip("/")

        env_value = os.getenv(cls.ENV_BASE_URL)
        if env_value:
            return env_value.rstrip("/")

        return DEFAULT_BASE_URL

    @classmethod
    def _resolve_float(cls, explicit_value: float | None, env_name: str, default: float) -> float:
        if explicit_value is not None:
            return float(explicit_value)

        env_value = os.getenv(env_name)
        if env_value:
            try:
                return float(env_value)
            except ValueError as e:
                raise ConfigurationError(f"{env_name} must be a number, got {env_value!r}") from e

        return default

    def validate(self) -> None:
        """Validate all settings.

        Raises:
            ConfigurationError: If any setting is invalid
        """
        if not self.base_url or not self.base_url.strip():
            raise ConfigurationError("base_url cannot be empty")

        if self.ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be > 0, got {self.ttl_seconds}")

        if not MIN_HTTP_TIMEOUT_SECONDS <= self.http_timeout_seconds <= MAX_HTTP_TIMEOUT_SECONDS:
            raise ConfigurationError(
                f"http_timeout_seconds must be between {MIN_HTTP_TIMEOUT_SECONDS} and "
                f"{MAX_HTTP_TIMEOUT_SECONDS}, got {self.http_timeout_seconds}"
            )

        if self.dedup_timeout_seconds <= 0:
            raise ConfigurationError(f"dedup_timeout_seconds must be > 0, got {self.dedup_timeout_seconds}")
