"""
Tests for request and notification models
"""

import pytest

from mbed_connector.core.exceptions import NetworkError, ParseError
from mbed_connector.models.notification_models import AsyncResponse, NotificationBatch
from mbed_connector.models.request_models import RequestResult, Response


def test_request_result_needs_exactly_one_side():
    with pytest.raises(ValueError):
        RequestResult()
    with pytest.raises(ValueError):
        RequestResult(error=NetworkError("x"), response=Response(status=200))


def test_unwrap():
    response = Response(status=200, payload="1")
    assert RequestResult(response=response).unwrap() is response
    with pytest.raises(NetworkError):
        RequestResult(error=NetworkError("down")).unwrap()


@pytest.mark.parametrize("status, payload, empty", [
    (204, "", True),
    (200, "  \n", True),
    (200, "{}", False),
])
def test_response_is_empty(status, payload, empty):
    assert Response(status=status, payload=payload).is_empty is empty


def test_response_json_error_is_parse_error():
    with pytest.raises(ParseError):
        Response(status=200, payload="<html>").json()


def test_async_response_ok_and_default_status():
    assert AsyncResponse.from_row({"id": "a"}, None).status == 200
    assert AsyncResponse(id="a", status=204).ok
    assert not AsyncResponse(id="a", status=404).ok


def test_batch_counts():
    batch = NotificationBatch(deregistrations=("a", "b"), registrations_expired=("c",))
    assert batch.event_count == 3
    assert not batch.is_empty
    assert NotificationBatch().is_empty
