"""mbed Device Connector client - long-poll notification channel and REST services"""

__version__ = '1.0.0'
__description__ = 'Async client for the mbed Device Connector REST API'

# Core - exceptions and channel state
from .core import (
    MbedConnectorError,
    ConfigurationError,
    NetworkError,
    HttpStatusError,
    ParseError,
    AsyncResponseTimeout,
    FatalChannelError,
    ChannelState,
    NotificationType,
)

# Configuration
from .config import ConnectorConfig, settings

# Models - domain objects
from .models import (
    Subscription,
    ResourceNotification,
    AsyncResponse,
    EndpointRegistration,
    NotificationBatch,
    RequestConfig,
    RequestResult,
)

# Notification channel
from .channel import NotificationChannel, PendingRequestCorrelator, decode_batch

# Services
from .services import ConnectorService, EndpointService, SubscriptionService

from .connector import DeviceConnector

__all__ = [
    # Core
    'MbedConnectorError',
    'ConfigurationError',
    'NetworkError',
    'HttpStatusError',
    'ParseError',
    'AsyncResponseTimeout',
    'FatalChannelError',
    'ChannelState',
    'NotificationType',

    # Configuration
    'ConnectorConfig',
    'settings',

    # Models
    'Subscription',
    'ResourceNotification',
    'AsyncResponse',
    'EndpointRegistration',
    'NotificationBatch',
    'RequestConfig',
    'RequestResult',

    # Channel
    'NotificationChannel',
    'PendingRequestCorrelator',
    'decode_batch',

    # Services
    'ConnectorService',
    'EndpointService',
    'SubscriptionService',
    'DeviceConnector',
]
