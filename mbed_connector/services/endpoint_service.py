"""Endpoint discovery and resource read/write."""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from mbed_connector.channel.correlator import PendingRequestCorrelator
from mbed_connector.core.exceptions import HttpStatusError
from mbed_connector.models.notification_models import AsyncResponse, Payload
from mbed_connector.models.request_models import RequestConfig, Response

from .connector_service import ConnectorService, join_path

logger = logging.getLogger(__name__)

ASYNC_RESPONSE_ID = "async-response-id"


class EndpointService:
    """
    Requests against ``/endpoints``.

    When the service answers a resource request with an async-response-id,
    the device result arrives later over the notification channel; the call
    registers the id with the correlator and waits for it.
    """

    def __init__(self, connector: ConnectorService, correlator: PendingRequestCorrelator):
        self.connector = connector
        self.correlator = correlator

    async def get_endpoints(self, endpoint_type: Optional[str] = None, **options: Any) -> List[Dict[str, Any]]:
        """Currently registered endpoints, optionally filtered by endpoint type."""
        params = {"type": endpoint_type} if endpoint_type else {}
        response = await self._request(RequestConfig(
            "GET", "endpoints", headers={"accept": "application/json"}, params=params
        ), options)
        return response.json()

    async def get_resources(self, endpoint: str, **options: Any) -> List[Dict[str, Any]]:
        response = await self._request(RequestConfig(
            "GET", join_path("endpoints", endpoint), headers={"accept": "application/json"}
        ), options)
        return response.json()

    async def get_resource_value(self, endpoint: str, resource: str, *,
                                 cache_only: bool = False, no_resp: bool = False,
                                 timeout: Optional[float] = None, **options: Any) -> Payload:
        """
        Read a resource value.

        Args:
            cache_only: answer from the service cache only
            no_resp: send a non-confirmable request to the device
            timeout: seconds to wait for an async response
        """
        response = await self._request(RequestConfig(
            "GET", join_path("endpoints", endpoint, resource),
            headers={"accept": "*/*"},
            params=_flags(cache_only=cache_only, no_resp=no_resp),
        ), options)
        return await self._value_or_async(response, timeout)

    async def put_resource_value(self, endpoint: str, resource: str, value: Any, *,
                                 no_resp: bool = False, timeout: Optional[float] = None,
                                 **options: Any) -> None:
        response = await self._request(RequestConfig(
            "PUT", join_path("endpoints", endpoint, resource),
            headers={"accept": "application/json"},
            params=_flags(no_resp=no_resp),
            body=str(value),
        ), options)
        await self._value_or_async(response, timeout)

    async def post_resource(self, endpoint: str, resource: str, value: Any = None, *,
                            no_resp: bool = False, timeout: Optional[float] = None,
                            **options: Any) -> None:
        """Execute a resource, optionally with an argument."""
        response = await self._request(RequestConfig(
            "POST", join_path("endpoints", endpoint, resource),
            headers={"accept": "application/json"},
            params=_flags(no_resp=no_resp),
            body=str(value) if value is not None else None,
        ), options)
        await self._value_or_async(response, timeout)

    async def delete_endpoint(self, endpoint: str, **options: Any) -> None:
        await self._request(RequestConfig(
            "DELETE", join_path("endpoints", endpoint), headers={"accept": "application/json"}
        ), options)

    # ---- helpers ----
    async def _request(self, request: RequestConfig, options: Dict[str, Any]) -> Response:
        result = await self.connector.make_request(request, **options)
        return result.unwrap()

    async def _value_or_async(self, response: Response, timeout: Optional[float]) -> Payload:
        """
        Return the payload, or wait for the async response the answer points to.

        The token is registered only once the HTTP answer has been read. An
        async response that reaches the channel before that is an unknown
        token to the correlator and is dropped; the call then waits out
        its timeout and raises AsyncResponseTimeout.
        """
        token = async_response_id(response)
        if token is None:
            return response.payload
        logger.debug("waiting for async response %s", token)
        result: AsyncResponse = await self.correlator.register(token, timeout=timeout)
        if not result.ok:
            raise HttpStatusError(result.status, result.error)
        return result.payload


def async_response_id(response: Response) -> Optional[str]:
    """The correlation token of a deferred answer, if the response is one."""
    if response.is_empty:
        return None
    try:
        body = json.loads(response.payload)
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get(ASYNC_RESPONSE_ID), str):
        return body[ASYNC_RESPONSE_ID]
    return None


def _flags(**flags: bool) -> Dict[str, str]:
    names = {"cache_only": "cacheOnly", "no_resp": "noResp"}
    return {names[k]: "true" for k, v in flags.items() if v}
