# mbed_connector/core/__init__.py
"""Core infrastructure components for the device connector client."""

# Import order: most fundamental to most specific

from .exceptions import (
    MbedConnectorError,
    ConfigurationError,
    NetworkError,
    HttpStatusError,
    ParseError,
    AsyncResponseTimeout,
    FatalChannelError,
)

from .patterns.state_machine import StateMachine, ChannelState
from .patterns.backoff import BackoffConfig, RetryBudget
from .patterns.observer import ListenerHandle, ListenerRegistry, NotificationType


__all__ = [
    "MbedConnectorError",
    "ConfigurationError",
    "NetworkError",
    "HttpStatusError",
    "ParseError",
    "AsyncResponseTimeout",
    "FatalChannelError",
    "StateMachine",
    "ChannelState",
    "BackoffConfig",
    "RetryBudget",
    "ListenerHandle",
    "ListenerRegistry",
    "NotificationType",
]
