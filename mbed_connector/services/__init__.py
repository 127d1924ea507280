"""REST services built on the connector transport."""

from .connector_service import ConnectorService, join_path
from .subscription_service import SubscriptionService
from .endpoint_service import EndpointService, async_response_id

__all__ = [
    'ConnectorService',
    'join_path',
    'SubscriptionService',
    'EndpointService',
    'async_response_id',
]
