"""Shared fixtures: a scripted fake transport and httpx mock transports."""

import asyncio
import json
from collections import deque
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from mbed_connector.config.app_config import ConnectorConfig
from mbed_connector.core.exceptions import HttpStatusError, NetworkError
from mbed_connector.models.request_models import RequestConfig, RequestResult, Response
from mbed_connector.services.connector_service import ConnectorService


TEST_HOST = "https://connector.test"


def make_config(**overrides) -> ConnectorConfig:
    base = ConnectorConfig(
        host=TEST_HOST,
        credential="test-key",
        poll_timeout=5.0,
        request_timeout=5.0,
        retry_backoff=0.01,
        max_retry_backoff=0.02,
        max_retries=2,
        async_response_timeout=0.5,
    )
    return base.merged(**overrides)


class FakeConnector:
    """
    Stand-in for ConnectorService.

    Scripted results are returned in order; once the script is empty each
    request blocks on a future the test can complete with ``respond()``.
    """

    def __init__(self, config: Optional[ConnectorConfig] = None):
        self.config = config or make_config()
        self.requests: List[Tuple[RequestConfig, Dict[str, Any]]] = []
        self.waiting: Optional[asyncio.Future] = None
        self._script = deque()

    def script(self, *results: RequestResult) -> None:
        self._script.extend(results)

    def script_json(self, body: Any, status: int = 200) -> None:
        self.script(ok(json.dumps(body), status))

    def respond(self, result: RequestResult) -> None:
        assert self.waiting is not None and not self.waiting.done()
        self.waiting.set_result(result)

    async def make_request(self, request: RequestConfig, **overrides) -> RequestResult:
        self.requests.append((request, overrides))
        if self._script:
            return self._script.popleft()
        self.waiting = asyncio.get_running_loop().create_future()
        return await self.waiting


def ok(payload: str = "", status: int = 200) -> RequestResult:
    return RequestResult(response=Response(status=status, payload=payload))


def network_error(message: str = "connection reset") -> RequestResult:
    return RequestResult(error=NetworkError(message))


def http_error(status: int, message: str = "") -> RequestResult:
    return RequestResult(error=HttpStatusError(status, message))


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


class Router:
    """Maps (method, path below the API root) to canned httpx responses."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[httpx.Request] = []

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method, path)] = response

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.split("/v2", 1)[-1]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, text="no route")
        if callable(route):
            route = route(request)
            if asyncio.iscoroutine(route):
                route = await route
        return route


@pytest.fixture
def fake_connector():
    return FakeConnector()


@pytest.fixture
def router():
    return Router()


@pytest.fixture
async def service(router):
    svc = ConnectorService(make_config(), transport=httpx.MockTransport(router))
    yield svc
    await svc.aclose()
