"""
Centralised exception definitions for the mbed Device Connector client.
All custom exceptions should inherit from MbedConnectorError.
"""
from typing import Optional


class MbedConnectorError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(MbedConnectorError):
    """Raised when configuration values or environment variables are invalid."""

class NetworkError(MbedConnectorError):
    """Transient transport failure (connection refused, reset, timed out)."""

class HttpStatusError(MbedConnectorError):
    """The service answered with an HTTP error status."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.message = message or ""
        super().__init__(f"HTTP {status}: {self.message}" if self.message else f"HTTP {status}")

class ParseError(MbedConnectorError):
    """A notification payload is not well-formed."""

class AsyncResponseTimeout(MbedConnectorError, TimeoutError):
    """No async response arrived for a correlation token in time."""

    def __init__(self, token: str, timeout: float):
        self.token = token
        self.timeout = timeout
        super().__init__(f"no async response for {token!r} within {timeout}s")

class FatalChannelError(MbedConnectorError):
    """The notification channel gave up; it is in the ERROR state."""
