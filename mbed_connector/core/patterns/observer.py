"""
Observer Pattern Implementation for Channel Events

This module keeps the listeners of a single notification channel: resource
listeners keyed by (endpoint, path) and lifecycle listeners keyed by event
type. The registry is owned by one channel instance, never shared globally.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Tuple


Listener = Callable[..., Any]

_handle_ids = count(1)


class NotificationType(Enum):
    """Types of events delivered by the notification channel."""
    REGISTRATION = "registrations"
    REGISTRATION_UPDATE = "reg-updates"
    NOTIFICATION = "notifications"
    ASYNC_RESPONSE = "async-responses"
    DEREGISTRATION = "de-registrations"
    REGISTRATION_EXPIRED = "registrations-expired"
    ERROR = "error"


@dataclass(frozen=True)
class ListenerHandle:
    """Returned when a listener is added; pass it back to remove the listener."""
    registry: "ListenerRegistry" = field(repr=False, compare=False)
    key: Tuple[Any, ...]
    listener: Listener = field(compare=False)
    handle_id: int = field(default_factory=lambda: next(_handle_ids))

    def remove(self) -> bool:
        return self.registry.remove(self)


class ListenerRegistry:
    """Per-channel mapping of listeners."""

    def __init__(self):
        self._listeners: Dict[Tuple[Any, ...], List[ListenerHandle]] = {}
        self._logger = logging.getLogger(self.__class__.__name__)

    # ---- resource listeners ----
    def add_resource_listener(self, endpoint: str, path: str, listener: Listener) -> ListenerHandle:
        """Listen for value notifications of one resource."""
        return self._add((NotificationType.NOTIFICATION, endpoint, _normalise_path(path)), listener)

    def resource_listeners(self, endpoint: str, path: str) -> List[Listener]:
        key = (NotificationType.NOTIFICATION, endpoint, _normalise_path(path))
        return [h.listener for h in self._listeners.get(key, [])]

    def remove_resource_listeners(self, endpoint: str, path: str) -> int:
        key = (NotificationType.NOTIFICATION, endpoint, _normalise_path(path))
        removed = self._listeners.pop(key, [])
        return len(removed)

    # ---- lifecycle listeners ----
    def add_listener(self, event_type: NotificationType, listener: Listener) -> ListenerHandle:
        """
        Listen for every event of one type.

        For NOTIFICATION this is a catch-all listener receiving every
        resource notification regardless of endpoint and path.
        """
        return self._add((event_type,), listener)

    def listeners(self, event_type: NotificationType) -> List[Listener]:
        return [h.listener for h in self._listeners.get((event_type,), [])]

    # ---- common ----
    def remove(self, handle: ListenerHandle) -> bool:
        """Remove a listener; returns False when it was not registered."""
        handles = self._listeners.get(handle.key, [])
        if handle not in handles:
            self._logger.warning(f"Listener not found for removal: {handle.key}")
            return False
        handles.remove(handle)
        if not handles:
            del self._listeners[handle.key]
        self._logger.debug(f"Removed listener: {handle.key}")
        return True

    def clear(self) -> None:
        self._listeners.clear()

    def get_listener_count(self) -> int:
        """Get the number of registered listeners."""
        return sum(len(handles) for handles in self._listeners.values())

    def _add(self, key: Tuple[Any, ...], listener: Listener) -> ListenerHandle:
        if not callable(listener):
            raise TypeError(f"listener must be callable, got {type(listener).__name__}")
        handle = ListenerHandle(self, key, listener)
        self._listeners.setdefault(key, []).append(handle)
        self._logger.debug(f"Added listener: {key}")
        return handle


def _normalise_path(path: Optional[str]) -> str:
    path = path or "/"
    return path if path.startswith("/") else f"/{path}"
