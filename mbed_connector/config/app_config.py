"""Centralised client settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from typing import Any, FrozenSet, Optional

from dotenv import find_dotenv, load_dotenv

from mbed_connector.core.exceptions import ConfigurationError

load_dotenv(find_dotenv(usecwd=True), override=False)

class settings:                            # pylint: disable=too-few-public-methods
    MBED_HOST                   = os.getenv("MBED_HOST", "https://api.connector.mbed.com")
    MBED_ACCESS_KEY             = os.getenv("MBED_ACCESS_KEY", "")
    MBED_API_VERSION            = os.getenv("MBED_API_VERSION", "v2")
    MBED_POLL_TIMEOUT           = float(os.getenv("MBED_POLL_TIMEOUT", 60))
    MBED_REQUEST_TIMEOUT        = float(os.getenv("MBED_REQUEST_TIMEOUT", 30))
    MBED_RETRY_BACKOFF          = float(os.getenv("MBED_RETRY_BACKOFF", 1))
    MBED_MAX_RETRY_BACKOFF      = float(os.getenv("MBED_MAX_RETRY_BACKOFF", 30))
    MBED_MAX_RETRIES            = int(os.getenv("MBED_MAX_RETRIES", 5))
    MBED_ASYNC_RESPONSE_TIMEOUT = float(os.getenv("MBED_ASYNC_RESPONSE_TIMEOUT", 30))
    LOG_LEVEL                   = os.getenv("LOG_LEVEL", "INFO").upper()


# Content types whose payloads the service delivers base64-encoded
BASE64_CONTENT_TYPES: FrozenSet[Any] = frozenset({42})


@dataclass(frozen=True)
class ConnectorConfig:
    """
    Client configuration.

    Precedence: per-call overrides passed to ``merged()`` beat the values of
    this instance, which beat the system defaults from ``from_settings()``.
    """
    host: str = "https://api.connector.mbed.com"
    credential: str = ""
    api_version: str = "v2"
    poll_timeout: float = 60.0             # seconds
    request_timeout: float = 30.0
    retry_backoff: float = 1.0
    max_retry_backoff: float = 30.0
    max_retries: int = 5
    async_response_timeout: float = 30.0
    base64_content_types: FrozenSet[Any] = BASE64_CONTENT_TYPES

    def __post_init__(self):
        if not self.host:
            raise ConfigurationError("host is required")
        for name in ("poll_timeout", "request_timeout", "async_response_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.retry_backoff < 0 or self.max_retry_backoff < 0:
            raise ConfigurationError("backoff delays must not be negative")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must not be negative")
        if not isinstance(self.base64_content_types, frozenset):
            object.__setattr__(self, "base64_content_types", frozenset(self.base64_content_types))

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ConnectorConfig":
        """System defaults from the environment, optionally overridden."""
        base = cls(
            host                   = settings.MBED_HOST,
            credential             = settings.MBED_ACCESS_KEY,
            api_version            = settings.MBED_API_VERSION,
            poll_timeout           = settings.MBED_POLL_TIMEOUT,
            request_timeout        = settings.MBED_REQUEST_TIMEOUT,
            retry_backoff          = settings.MBED_RETRY_BACKOFF,
            max_retry_backoff      = settings.MBED_MAX_RETRY_BACKOFF,
            max_retries            = settings.MBED_MAX_RETRIES,
            async_response_timeout = settings.MBED_ASYNC_RESPONSE_TIMEOUT,
        )
        return base.merged(**overrides)

    def merged(self, **overrides: Optional[Any]) -> "ConnectorConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"unknown configuration option(s): {sorted(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    @property
    def api_root(self) -> str:
        return f"{self.host.rstrip('/')}/{self.api_version.strip('/')}"
