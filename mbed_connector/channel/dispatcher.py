"""Routes decoded channel events to listeners and to the correlator."""
from __future__ import annotations
import asyncio
import inspect
import logging
from typing import Any, Callable, List, Set

from mbed_connector.core.patterns.observer import ListenerRegistry, NotificationType
from mbed_connector.models.notification_models import NotificationBatch, ResourceNotification

from .correlator import PendingRequestCorrelator


class EventDispatcher:
    """
    Fans a NotificationBatch out to listeners.

    Order within a batch is fixed: registrations, registration updates,
    notifications, async responses, de-registrations, expired registrations.
    Listeners run synchronously; a listener returning an awaitable has it
    scheduled as a task so the poll loop never waits on it.
    """

    def __init__(self, registry: ListenerRegistry, correlator: PendingRequestCorrelator):
        self.registry = registry
        self.correlator = correlator
        self._logger = logging.getLogger(self.__class__.__name__)
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(self, batch: NotificationBatch) -> int:
        """Deliver every event of ``batch``; returns the number of listener calls."""
        delivered = 0
        for registration in batch.registrations:
            delivered += self._notify_all(NotificationType.REGISTRATION, registration)
        for registration in batch.reg_updates:
            delivered += self._notify_all(NotificationType.REGISTRATION_UPDATE, registration)
        for notification in batch.notifications:
            delivered += self._notify_resource(notification)
        for response in batch.async_responses:
            if self.correlator.resolve(response.id, response):
                delivered += 1
            delivered += self._notify_all(NotificationType.ASYNC_RESPONSE, response)
        for endpoint in batch.deregistrations:
            delivered += self._notify_all(NotificationType.DEREGISTRATION, endpoint)
        for endpoint in batch.registrations_expired:
            delivered += self._notify_all(NotificationType.REGISTRATION_EXPIRED, endpoint)
        return delivered

    def report_error(self, error: BaseException) -> int:
        """Hand an error to the ERROR listeners; never raises."""
        listeners = self.registry.listeners(NotificationType.ERROR)
        if not listeners:
            self._logger.debug(f"No error listeners for: {error!r}")
        for listener in listeners:
            self._safe_notify(listener, error, report=False)
        return len(listeners)

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    # ---- internals ----
    def _notify_resource(self, notification: ResourceNotification) -> int:
        listeners: List[Callable[..., Any]] = self.registry.resource_listeners(
            notification.endpoint, notification.path
        )
        listeners += self.registry.listeners(NotificationType.NOTIFICATION)
        if not listeners:
            # Notifications can race with unsubscription
            self._logger.debug(f"No listener for {notification.endpoint}{notification.path}, dropped")
            return 0
        for listener in listeners:
            self._safe_notify(listener, notification)
        return len(listeners)

    def _notify_all(self, event_type: NotificationType, event: Any) -> int:
        listeners = self.registry.listeners(event_type)
        for listener in listeners:
            self._safe_notify(listener, event)
        return len(listeners)

    def _safe_notify(self, listener: Callable[..., Any], event: Any, report: bool = True) -> None:
        """Call one listener, catching and reporting anything it raises."""
        try:
            result = listener(event)
        except Exception as e:
            self._logger.error(f"Error in listener {_name(listener)}: {e}", exc_info=True)
            if report:
                self.report_error(e)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(lambda t: self._task_done(t, listener, report))

    def _task_done(self, task: asyncio.Task, listener: Callable[..., Any], report: bool) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error(f"Error in listener {_name(listener)}: {error}", exc_info=error)
            if report:
                self.report_error(error)


def _name(listener: Callable[..., Any]) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)
