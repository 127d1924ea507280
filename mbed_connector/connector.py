"""Entry point tying transport, notification channel and REST services together."""
from __future__ import annotations
import logging
from typing import Any, Callable, Optional

from mbed_connector.channel.controller import NotificationChannel
from mbed_connector.config.app_config import ConnectorConfig
from mbed_connector.core.patterns.observer import ListenerHandle, NotificationType
from mbed_connector.services.connector_service import ConnectorService
from mbed_connector.services.endpoint_service import EndpointService
from mbed_connector.services.subscription_service import SubscriptionService


class DeviceConnector:
    """
    Client for one Device Connector account.

    ``endpoints`` and ``subscriptions`` expose the REST calls; ``channel``
    is the long-poll notification channel that delivers resource
    notifications and async responses.
    """

    def __init__(self, config: Optional[ConnectorConfig] = None, *,
                 service: Optional[ConnectorService] = None):
        self.service = service or ConnectorService(config)
        self.config = self.service.config
        self.channel = NotificationChannel(self.service, self.config)
        self.endpoints = EndpointService(self.service, self.channel.correlator)
        self.subscriptions = SubscriptionService(self.service)
        self.log = logging.getLogger(self.__class__.__name__)

    # --------------------------------------------------------------------- #
    #  Public API
    # --------------------------------------------------------------------- #
    async def start_long_polling(self, **overrides: Any) -> None:
        await self.channel.start(**overrides)

    async def stop_long_polling(self) -> None:
        await self.channel.stop()

    async def subscribe(self, endpoint: str, resource: str,
                        listener: Callable[..., Any], **options: Any) -> ListenerHandle:
        """Listen for a resource and create its subscription on the service."""
        handle = self.channel.add_resource_listener(endpoint, resource, listener)
        try:
            await self.subscriptions.put_resource_subscription(endpoint, resource, **options)
        except Exception:
            handle.remove()
            raise
        return handle

    async def unsubscribe(self, endpoint: str, resource: str, **options: Any) -> None:
        """Delete the subscription and drop every listener of the resource."""
        await self.subscriptions.delete_resource_subscription(endpoint, resource, **options)
        removed = self.channel.registry.remove_resource_listeners(endpoint, resource)
        self.log.debug("removed %d listeners for %s%s", removed, endpoint, resource)

    def on(self, event_type: NotificationType, listener: Callable[..., Any]) -> ListenerHandle:
        """Listen for registrations, de-registrations, errors, ..."""
        return self.channel.add_listener(event_type, listener)

    async def close(self) -> None:
        """Graceful shutdown"""
        await self.channel.stop()
        self.channel.correlator.cancel_all()
        self.channel.registry.clear()
        await self.service.aclose()
        self.log.info("Device connector closed")

    # Context manager protocol
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False
