# connector_service.py

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import httpx

from mbed_connector.config.app_config import ConnectorConfig
from mbed_connector.core.exceptions import HttpStatusError, NetworkError, ParseError
from mbed_connector.models.request_models import RequestConfig, RequestResult, Response


logger = logging.getLogger(__name__)

USER_AGENT = "mbed-connector-python/1.0"


def join_path(*parts: Optional[str]) -> str:
    """Join URL path segments, tolerating leading/trailing slashes."""
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


class ConnectorService:
    """
    Thin adapter over ``httpx.AsyncClient``.

    ``make_request`` never raises for HTTP or transport problems; it returns
    a RequestResult carrying either the Response or the error.
    """

    def __init__(self, config: Optional[ConnectorConfig] = None, *,
                 client: Optional[httpx.AsyncClient] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or ConnectorConfig.from_settings()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    async def make_request(self, request: RequestConfig, **overrides: Any) -> RequestResult:
        """Issue one REST call; ``overrides`` take precedence over the instance config."""
        cfg = self.config.merged(**overrides)
        url = f"{cfg.api_root}/{join_path(request.path)}"
        headers: Dict[str, str] = dict(request.headers)
        if cfg.credential:
            headers["Authorization"] = f"Bearer {cfg.credential}"

        logger.debug(f"HTTP {request.method} {url} params={request.params}")
        try:
            response = await self.client.request(
                request.method,
                url,
                params=request.params or None,
                headers=headers,
                content=request.body,
                json=request.json,
                timeout=cfg.request_timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{request.method} {url} timed out after {cfg.request_timeout}s")
            return RequestResult(error=NetworkError(f"request timed out: {e!r}"))
        except httpx.TransportError as e:
            logger.warning(f"Connection error for {request.method} {url}: {e}")
            return RequestResult(error=NetworkError(f"connection error: {e!r}"))
        except httpx.DecodingError as e:
            logger.warning(f"Undecodable response body for {request.method} {url}: {e}")
            return RequestResult(error=ParseError(f"response body could not be decoded: {e!r}"))
        except httpx.HTTPError as e:
            logger.warning(f"HTTP error for {request.method} {url}: {e!r}")
            return RequestResult(error=NetworkError(f"http error: {e!r}"))

        if response.status_code >= 400:
            logger.debug(f"HTTP {response.status_code} from {request.method} {url}: {response.text[:200]}")
            return RequestResult(error=HttpStatusError(response.status_code, response.text))

        return RequestResult(response=Response(
            status=response.status_code,
            payload=response.text,
            headers=dict(response.headers),
        ))

    async def aclose(self):
        """Close the HTTP client if this service created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
