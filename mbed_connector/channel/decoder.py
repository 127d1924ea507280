"""
Long-poll response decoding.

Turns the JSON body of a ``notification/pull`` response into a
NotificationBatch, and back again for fakes and tests.
"""
from __future__ import annotations
import base64
import binascii
import json
import logging
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Union

from mbed_connector.config.app_config import BASE64_CONTENT_TYPES
from mbed_connector.core.exceptions import ParseError
from mbed_connector.models.notification_models import (
    AsyncResponse,
    EndpointRegistration,
    NotificationBatch,
    Payload,
    ResourceNotification,
)

logger = logging.getLogger(__name__)

RawPayload = Union[str, bytes, Dict[str, Any], None]

NOTIFICATIONS         = "notifications"
ASYNC_RESPONSES       = "async-responses"
REGISTRATIONS         = "registrations"
REG_UPDATES           = "reg-updates"
DEREGISTRATIONS       = "de-registrations"
REGISTRATIONS_EXPIRED = "registrations-expired"


def decode_batch(raw: RawPayload,
                 base64_content_types: Iterable[Any] = BASE64_CONTENT_TYPES) -> NotificationBatch:
    """
    Decode one long-poll response body.

    Absent or null categories mean zero events of that kind. Anything that
    is not well-formed raises ParseError.
    """
    b64_types = _normalise_types(base64_content_types)
    body = _load(raw)
    if not body:
        return NotificationBatch()

    def decode_item(factory: Callable[..., Any]) -> Callable[[Dict[str, Any]], Any]:
        return lambda row: factory(row, decode_payload(row.get("payload"), row.get("ct"), b64_types))

    batch = NotificationBatch(
        registrations         = _items(body, REGISTRATIONS, EndpointRegistration.from_row),
        reg_updates           = _items(body, REG_UPDATES, EndpointRegistration.from_row),
        notifications         = _items(body, NOTIFICATIONS, decode_item(ResourceNotification.from_row)),
        async_responses       = _items(body, ASYNC_RESPONSES, decode_item(AsyncResponse.from_row)),
        deregistrations       = _names(body, DEREGISTRATIONS),
        registrations_expired = _names(body, REGISTRATIONS_EXPIRED),
    )
    logger.debug("decoded batch with %d events", batch.event_count)
    return batch


def encode_batch(batch: NotificationBatch,
                 base64_content_types: Iterable[Any] = BASE64_CONTENT_TYPES) -> Dict[str, Any]:
    """Build the wire object the service would send for ``batch``."""
    b64_types = _normalise_types(base64_content_types)
    body: Dict[str, Any] = {}
    if batch.registrations:
        body[REGISTRATIONS] = [r.to_row() for r in batch.registrations]
    if batch.reg_updates:
        body[REG_UPDATES] = [r.to_row() for r in batch.reg_updates]
    if batch.notifications:
        body[NOTIFICATIONS] = [
            n.to_row(encode_payload(n.payload, n.content_type, b64_types)) for n in batch.notifications
        ]
    if batch.async_responses:
        body[ASYNC_RESPONSES] = [
            r.to_row(encode_payload(r.payload, r.content_type, b64_types)) for r in batch.async_responses
        ]
    if batch.deregistrations:
        body[DEREGISTRATIONS] = list(batch.deregistrations)
    if batch.registrations_expired:
        body[REGISTRATIONS_EXPIRED] = list(batch.registrations_expired)
    return body


def decode_payload(payload: Any, content_type: Any,
                   base64_content_types: Iterable[Any] = BASE64_CONTENT_TYPES) -> Payload:
    """
    Base64-decode ``payload`` when its content type says so.

    Decoded bytes come back as text when they are valid UTF-8. Payloads of
    other content types pass through untouched.
    """
    if payload is None:
        return None
    if not isinstance(payload, str):
        raise ParseError(f"payload must be a string, got {type(payload).__name__}")
    if _normalise_ct(content_type) not in _normalise_types(base64_content_types):
        return payload
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"invalid base64 payload: {e}") from e
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


def encode_payload(payload: Payload, content_type: Any,
                   base64_content_types: Iterable[Any] = BASE64_CONTENT_TYPES) -> Optional[str]:
    if payload is None:
        return None
    if _normalise_ct(content_type) not in _normalise_types(base64_content_types):
        return payload if isinstance(payload, str) else payload.decode("utf-8")
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    return base64.b64encode(data).decode("ascii")


# ---- helpers ----
def _load(raw: RawPayload) -> Dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"payload is not UTF-8: {e}") from e
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ParseError(f"payload is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ParseError(f"payload must be a JSON object, got {type(raw).__name__}")
    return raw


def _category(body: Dict[str, Any], key: str) -> List[Any]:
    value = body.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def _items(body: Dict[str, Any], key: str, factory: Callable[[Dict[str, Any]], Any]) -> tuple:
    items = []
    for index, row in enumerate(_category(body, key)):
        if not isinstance(row, dict):
            raise ParseError(f"'{key}'[{index}] must be an object")
        try:
            items.append(factory(row))
        except ParseError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"malformed '{key}'[{index}]: {e!r}") from e
    return tuple(items)


def _names(body: Dict[str, Any], key: str) -> tuple:
    names = _category(body, key)
    for index, name in enumerate(names):
        if not isinstance(name, str) or not name:
            raise ParseError(f"'{key}'[{index}] must be an endpoint name")
    return tuple(names)


def _normalise_ct(content_type: Any) -> Any:
    if isinstance(content_type, str) and content_type.strip().isdigit():
        return int(content_type)
    return content_type


def _normalise_types(types: Iterable[Any]) -> FrozenSet[Any]:
    return frozenset(_normalise_ct(t) for t in types)
