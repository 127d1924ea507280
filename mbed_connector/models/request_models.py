from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from mbed_connector.core.exceptions import MbedConnectorError, ParseError


@dataclass(frozen=True)
class RequestConfig:
    """Everything needed to issue one REST call, relative to the API root."""
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    body: Optional[str] = None
    json: Optional[Any] = None


@dataclass(frozen=True)
class Response:
    status: int
    payload: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.status == 204 or not self.payload.strip()

    def json(self) -> Any:
        try:
            return json.loads(self.payload)
        except ValueError as e:
            raise ParseError(f"response is not valid JSON: {e}") from e


@dataclass(frozen=True)
class RequestResult:
    """Outcome of a request: exactly one of ``error`` and ``response`` is set."""
    error: Optional[MbedConnectorError] = None
    response: Optional[Response] = None

    def __post_init__(self):
        if (self.error is None) == (self.response is None):
            raise ValueError("RequestResult needs exactly one of error or response")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Response:
        """Return the response or raise the error."""
        if self.error is not None:
            raise self.error
        return self.response
