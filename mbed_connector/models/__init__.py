"""Data models and domain objects."""

from .notification_models import (
    Subscription,
    ResourceNotification,
    AsyncResponse,
    EndpointResource,
    EndpointRegistration,
    NotificationBatch,
)

from .request_models import (
    RequestConfig,
    Response,
    RequestResult,
)

__all__ = [
    # Channel models
    'Subscription',
    'ResourceNotification',
    'AsyncResponse',
    'EndpointResource',
    'EndpointRegistration',
    'NotificationBatch',

    # Request models
    'RequestConfig',
    'Response',
    'RequestResult',
]
