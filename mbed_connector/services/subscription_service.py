"""
Subscription management.

Each call keeps the 404 meaning the service gives that particular endpoint:
sometimes "not found" is a normal answer, sometimes it is an error.
"""
from __future__ import annotations
import logging
from typing import Any, List

from mbed_connector.core.exceptions import HttpStatusError
from mbed_connector.models.notification_models import Subscription
from mbed_connector.models.request_models import RequestConfig

from .connector_service import ConnectorService, join_path

logger = logging.getLogger(__name__)

JSON = {"accept": "application/json"}


def _not_found(error: Exception) -> bool:
    return isinstance(error, HttpStatusError) and error.status == 404


class SubscriptionService:
    def __init__(self, connector: ConnectorService):
        self.connector = connector

    async def get_resource_subscription(self, endpoint: str, resource: str, **options: Any) -> bool:
        """True when subscribed; a 404 means not subscribed."""
        result = await self.connector.make_request(
            RequestConfig("GET", join_path("subscriptions", endpoint, resource)), **options
        )
        if result.error is not None:
            if _not_found(result.error):
                return False
            raise result.error
        return True

    async def put_resource_subscription(self, endpoint: str, resource: str, **options: Any) -> None:
        result = await self.connector.make_request(
            RequestConfig("PUT", join_path("subscriptions", endpoint, resource), headers=dict(JSON)),
            **options,
        )
        result.unwrap()
        logger.info("subscribed to %s/%s", endpoint, resource.lstrip("/"))

    async def delete_resource_subscription(self, endpoint: str, resource: str, **options: Any) -> None:
        """Remove a subscription; a missing subscription counts as removed."""
        result = await self.connector.make_request(
            RequestConfig("DELETE", join_path("subscriptions", endpoint, resource), headers=dict(JSON)),
            **options,
        )
        if result.error is not None and not _not_found(result.error):
            raise result.error
        logger.info("unsubscribed from %s/%s", endpoint, resource.lstrip("/"))

    async def get_endpoint_subscriptions(self, endpoint: str, **options: Any) -> List[Subscription]:
        """Subscriptions of one endpoint; 404 means it has none."""
        result = await self.connector.make_request(
            RequestConfig("GET", join_path("subscriptions", endpoint),
                          headers={"accept": "text/uri-list"}),
            **options,
        )
        if result.error is not None:
            if _not_found(result.error):
                return []
            raise result.error
        lines = result.response.payload.rstrip("\n").split("\n")
        return [Subscription.from_uri(endpoint, line) for line in lines if line.strip()]

    async def delete_endpoint_subscriptions(self, endpoint: str, **options: Any) -> bool:
        """Remove all subscriptions of an endpoint; False when it had none."""
        result = await self.connector.make_request(
            RequestConfig("DELETE", join_path("subscriptions", endpoint), headers=dict(JSON)),
            **options,
        )
        if result.error is not None:
            if _not_found(result.error):
                return False
            raise result.error
        return True

    async def delete_all_subscriptions(self, **options: Any) -> None:
        result = await self.connector.make_request(
            RequestConfig("DELETE", "subscriptions", headers=dict(JSON)), **options
        )
        result.unwrap()

    async def get_pre_subscription(self, **options: Any) -> Any:
        result = await self.connector.make_request(
            RequestConfig("GET", "subscriptions", headers=dict(JSON)), **options
        )
        response = result.unwrap()
        return response.json() if not response.is_empty else []

    async def put_pre_subscription(self, data: List[dict], **options: Any) -> None:
        result = await self.connector.make_request(
            RequestConfig("PUT", "subscriptions", json=data), **options
        )
        result.unwrap()
