"""
Tests for EndpointService, including async (non-confirmable) responses.
"""

import asyncio

import httpx
import pytest

from conftest import wait_until
from mbed_connector.channel.correlator import PendingRequestCorrelator
from mbed_connector.core.exceptions import AsyncResponseTimeout, HttpStatusError
from mbed_connector.models.notification_models import AsyncResponse
from mbed_connector.models.request_models import Response
from mbed_connector.services.endpoint_service import EndpointService, async_response_id


@pytest.fixture
def correlator():
    return PendingRequestCorrelator(timeout=1.0)


@pytest.fixture
def endpoints(service, correlator):
    return EndpointService(service, correlator)


async def test_get_endpoints_filters_by_type(endpoints, router):
    router.add("GET", "/endpoints", httpx.Response(200, json=[{"name": "dev1", "type": "sensor"}]))

    result = await endpoints.get_endpoints("sensor")

    assert result == [{"name": "dev1", "type": "sensor"}]
    assert router.calls[0].url.params["type"] == "sensor"


async def test_get_resources(endpoints, router):
    router.add("GET", "/endpoints/dev1", httpx.Response(200, json=[{"uri": "/3/0/1"}]))
    assert await endpoints.get_resources("dev1") == [{"uri": "/3/0/1"}]


async def test_get_resource_value_direct(endpoints, router):
    router.add("GET", "/endpoints/dev1/3/0/1", httpx.Response(200, text="21.5"))

    assert await endpoints.get_resource_value("dev1", "/3/0/1", cache_only=True) == "21.5"
    assert router.calls[0].url.params["cacheOnly"] == "true"
    assert "noResp" not in router.calls[0].url.params


async def test_get_resource_value_async(endpoints, router, correlator):
    router.add("GET", "/endpoints/dev1/3/0/1",
               httpx.Response(202, json={"async-response-id": "tok-1"}))

    task = asyncio.create_task(endpoints.get_resource_value("dev1", "/3/0/1", no_resp=True))
    await wait_until(lambda: correlator.is_pending("tok-1"))
    correlator.resolve("tok-1", AsyncResponse(id="tok-1", status=200, payload="1"))

    assert await task == "1"
    assert router.calls[0].url.params["noResp"] == "true"


async def test_async_error_status_raises(endpoints, router, correlator):
    router.add("PUT", "/endpoints/dev1/3/0/1",
               httpx.Response(202, json={"async-response-id": "tok-2"}))

    task = asyncio.create_task(endpoints.put_resource_value("dev1", "/3/0/1", 5))
    await wait_until(lambda: correlator.is_pending("tok-2"))
    correlator.resolve("tok-2", AsyncResponse(id="tok-2", status=405, error="Method not allowed"))

    with pytest.raises(HttpStatusError) as excinfo:
        await task
    assert excinfo.value.status == 405
    assert router.calls[0].content == b"5"


async def test_async_response_timeout(endpoints, router):
    router.add("POST", "/endpoints/dev1/3/0/5",
               httpx.Response(202, json={"async-response-id": "tok-3"}))

    with pytest.raises(AsyncResponseTimeout):
        await endpoints.post_resource("dev1", "/3/0/5", timeout=0.02)


async def test_post_without_value_sends_no_body(endpoints, router):
    router.add("POST", "/endpoints/dev1/3/0/5", httpx.Response(204))

    await endpoints.post_resource("dev1", "/3/0/5")
    assert router.calls[0].content == b""


async def test_delete_endpoint_surfaces_404(endpoints, router):
    with pytest.raises(HttpStatusError) as excinfo:
        await endpoints.delete_endpoint("ghost")
    assert excinfo.value.status == 404


@pytest.mark.parametrize("payload, expected", [
    ('{"async-response-id": "abc"}', "abc"),
    ('{"value": 1}', None),
    ("21.5", None),
    ("not json", None),
    ("", None),
])
def test_async_response_id(payload, expected):
    assert async_response_id(Response(status=200, payload=payload)) == expected


async def test_async_response_before_registration_is_dropped(endpoints, router, correlator):
    router.add("POST", "/endpoints/dev1/3/0/5",
               httpx.Response(202, json={"async-response-id": "tok-4"}))

    # answer reaches the channel before the HTTP call returned its token
    assert correlator.resolve("tok-4", AsyncResponse(id="tok-4", status=200)) is False

    with pytest.raises(AsyncResponseTimeout):
        await endpoints.post_resource("dev1", "/3/0/5", timeout=0.02)
