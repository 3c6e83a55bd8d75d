"""Configuration management for feedrelay."""

import os
from dataclasses import dataclass

import requests

from .errors import ConfigurationError


@dataclass
class HttpConfig:
    """Configuration for outbound HTTP requests."""

    timeout: float = 5.0
    user_agent: str = "feedrelay/1.0 (RSS to Nostr bridge)"


@dataclass
class CacheConfig:
    """Configuration for the parsed feed cache."""

    max_size: int = 512
    ttl_seconds: float = 19 * 60


def new_session(config: HttpConfig) -> requests.Session:
    """Create a requests session carrying the configured User-Agent."""
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    return session


class Config:
    """Main configuration manager."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.secret = os.getenv("FEEDRELAY_SECRET", "")
        self.http_timeout = _env_number("FEEDRELAY_HTTP_TIMEOUT", 5.0, float)
        self.cache_size = _env_number("FEEDRELAY_CACHE_SIZE", 512, int)
        self.cache_ttl = _env_number("FEEDRELAY_CACHE_TTL", 19 * 60, float)
        self.user_agent = os.getenv(
            "FEEDRELAY_USER_AGENT", HttpConfig.user_agent
        )

    def get_secret(self) -> str:
        """Get the process-wide secret used to derive feed identities."""
        if not self.secret or not self.secret.strip():
            raise ConfigurationError("FEEDRELAY_SECRET must be set")
        return self.secret

    def get_http_config(self) -> HttpConfig:
        """Get HTTP client configuration."""
        return HttpConfig(timeout=self.http_timeout, user_agent=self.user_agent)

    def get_cache_config(self) -> CacheConfig:
        """Get feed cache configuration."""
        return CacheConfig(max_size=self.cache_size, ttl_seconds=self.cache_ttl)


def _env_number(name: str, default, cast: type):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value
