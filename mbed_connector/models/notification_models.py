from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union


Payload = Union[str, bytes, None]


###############################################################################
# 1. SUBSCRIPTION -------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class Subscription:
    """A resource subscription, identified by (endpoint, path)."""
    endpoint: str
    path: str
    active: bool = True

    @classmethod
    def from_uri(cls, endpoint: str, uri: str) -> "Subscription":
        # uri-list entries are either "/3/0/1" or "/dev1/3/0/1"
        uri = uri.strip()
        prefix = f"/{endpoint}/"
        if uri.startswith(prefix):
            uri = uri[len(prefix) - 1:]
        return cls(endpoint=endpoint, path=uri if uri.startswith("/") else f"/{uri}")

###############################################################################
# 2. RESOURCE NOTIFICATION ----------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class ResourceNotification:
    """A value update of an observed resource."""
    endpoint: str
    path: str
    payload: Payload
    content_type: Optional[Any] = None
    max_age: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str]:
        return self.endpoint, self.path

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_row(cls, row: Dict[str, Any], payload: Payload) -> "ResourceNotification":
        return cls(
            endpoint     = _require_str(row, "ep"),
            path         = _require_str(row, "path"),
            payload      = payload,
            content_type = row.get("ct"),
            max_age      = _parse_int(row.get("max-age")),
        )

    def to_row(self, payload: Payload) -> Dict[str, Any]:
        return _drop_none({
            "ep": self.endpoint,
            "path": self.path,
            "payload": payload,
            "ct": self.content_type,
            "max-age": self.max_age,
        })

###############################################################################
# 3. ASYNC RESPONSE -----------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class AsyncResponse:
    """Device answer to a non-confirmable request, matched by its id."""
    id: str
    status: int
    payload: Payload = None
    content_type: Optional[Any] = None
    error: Optional[str] = None
    max_age: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status < 300

    @classmethod
    def from_row(cls, row: Dict[str, Any], payload: Payload) -> "AsyncResponse":
        return cls(
            id           = _require_str(row, "id"),
            status       = _parse_int(row.get("status")) or 200,
            payload      = payload,
            content_type = row.get("ct"),
            error        = row.get("error"),
            max_age      = _parse_int(row.get("max-age")),
        )

    def to_row(self, payload: Payload) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "status": self.status,
            "payload": payload,
            "ct": self.content_type,
            "error": self.error,
            "max-age": self.max_age,
        })

###############################################################################
# 4. REGISTRATIONS ------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class EndpointResource:
    """One resource advertised by a registering endpoint."""
    path: str
    resource_type: Optional[str] = None
    interface: Optional[str] = None
    observable: bool = False
    content_type: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "EndpointResource":
        return cls(
            path          = _require_str(row, "path"),
            resource_type = row.get("rt"),
            interface     = row.get("if"),
            observable    = bool(row.get("obs", False)),
            content_type  = row.get("type"),
        )

    def to_row(self) -> Dict[str, Any]:
        return _drop_none({
            "path": self.path,
            "rt": self.resource_type,
            "if": self.interface,
            "obs": self.observable,
            "type": self.content_type,
        })


@dataclass(frozen=True, slots=True)
class EndpointRegistration:
    """Registration (or registration update) of a device endpoint."""
    endpoint: str
    endpoint_type: Optional[str] = None
    queue_mode: bool = False
    resources: Tuple[EndpointResource, ...] = ()

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "EndpointRegistration":
        resources = row.get("resources") or []
        if not isinstance(resources, list):
            raise TypeError("'resources' must be a list")
        return cls(
            endpoint      = _require_str(row, "ep"),
            endpoint_type = row.get("ept"),
            queue_mode    = bool(row.get("q", False)),
            resources     = tuple(EndpointResource.from_row(r) for r in resources),
        )

    def to_row(self) -> Dict[str, Any]:
        return _drop_none({
            "ep": self.endpoint,
            "ept": self.endpoint_type,
            "q": self.queue_mode,
            "resources": [r.to_row() for r in self.resources],
        })

###############################################################################
# 5. BATCH --------------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class NotificationBatch:
    """Everything one long-poll response carried."""
    registrations: Tuple[EndpointRegistration, ...] = ()
    reg_updates: Tuple[EndpointRegistration, ...] = ()
    notifications: Tuple[ResourceNotification, ...] = ()
    async_responses: Tuple[AsyncResponse, ...] = ()
    deregistrations: Tuple[str, ...] = ()
    registrations_expired: Tuple[str, ...] = field(default=())

    @property
    def event_count(self) -> int:
        return (len(self.registrations) + len(self.reg_updates) + len(self.notifications)
                + len(self.async_responses) + len(self.deregistrations)
                + len(self.registrations_expired))

    @property
    def is_empty(self) -> bool:
        return self.event_count == 0

###############################################################################
# 6. HELPER PARSERS -----------------------------------------------------------
###############################################################################

def _require_str(row: Dict[str, Any], key: str) -> str:
    value = row[key]
    if not isinstance(value, str) or not value:
        raise ValueError(f"'{key}' must be a non-empty string")
    return value

def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)

def _drop_none(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in row.items() if v is not None}
