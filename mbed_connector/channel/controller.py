"""
Long-poll notification channel.

One asyncio task issues ``GET notification/pull``, decodes the answer,
dispatches it, and immediately polls again. At most one poll is in flight.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Optional

from mbed_connector.config.app_config import ConnectorConfig
from mbed_connector.core.exceptions import (
    FatalChannelError,
    HttpStatusError,
    MbedConnectorError,
    NetworkError,
    ParseError,
)
from mbed_connector.core.patterns.backoff import BackoffConfig, RetryBudget
from mbed_connector.core.patterns.observer import ListenerHandle, ListenerRegistry, NotificationType
from mbed_connector.core.patterns.state_machine import ChannelState, StateMachine
from mbed_connector.models.request_models import RequestConfig, RequestResult, Response

from .correlator import PendingRequestCorrelator
from .decoder import decode_batch
from .dispatcher import EventDispatcher

PULL_PATH = "notification/pull"

TRANSIENT_STATUSES = frozenset({408, 429})


def is_transient(error: BaseException) -> bool:
    """Network errors, timeouts and 5xx answers are worth another poll."""
    if isinstance(error, NetworkError):
        return True
    if isinstance(error, HttpStatusError):
        return error.status in TRANSIENT_STATUSES or error.status >= 500
    return False


class NotificationChannel:
    """Controller of one long-poll channel."""

    def __init__(self, connector, config: Optional[ConnectorConfig] = None,
                 registry: Optional[ListenerRegistry] = None,
                 correlator: Optional[PendingRequestCorrelator] = None):
        self.connector = connector
        self.config = config or connector.config
        self.registry = registry or ListenerRegistry()
        self.correlator = correlator or PendingRequestCorrelator(self.config.async_response_timeout)
        self.dispatcher = EventDispatcher(self.registry, self.correlator)
        self.state_machine = StateMachine(ChannelState.STOPPED)
        self.log = logging.getLogger(self.__class__.__name__)
        self.last_error: Optional[MbedConnectorError] = None
        self.poll_count = 0
        self._session = 0
        self._session_config = self.config
        self._budget = RetryBudget()
        self._task: Optional[asyncio.Task] = None

    # --------------------------------------------------------------------- #
    #  Public API
    # --------------------------------------------------------------------- #
    @property
    def state(self) -> ChannelState:
        return self.state_machine.state

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, **overrides: Any) -> None:
        """Begin polling; overrides apply to this session only."""
        if self.running:
            self.log.warning("Notification channel is already running")
            return
        cfg = self.config.merged(**overrides)
        self._session += 1
        self._session_config = cfg
        self._budget = RetryBudget(BackoffConfig(
            initial_delay=cfg.retry_backoff,
            max_delay=cfg.max_retry_backoff,
            max_retries=cfg.max_retries,
        ))
        self.last_error = None
        self.state_machine.transition(ChannelState.POLLING)
        self._task = asyncio.create_task(self._poll_loop(self._session),
                                         name=f"notification-channel-{self._session}")
        self.log.info("Notification channel started (session %d)", self._session)

    async def stop(self) -> None:
        """Stop polling and cancel the in-flight poll. Safe to call at any time."""
        task, self._task = self._task, None
        self._session += 1
        if task is not None and not task.done():
            task.cancel()
            if task is not asyncio.current_task():
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        if self.state != ChannelState.STOPPED:
            self.state_machine.transition(ChannelState.STOPPED)
            self.log.info("Notification channel stopped")

    async def join(self) -> None:
        """Wait for the poll loop to end; re-raises the fatal error if any."""
        task = self._task
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        if self.state == ChannelState.ERROR and self.last_error is not None:
            raise self.last_error

    # ---- listener registration ----
    def add_resource_listener(self, endpoint: str, path: str, listener) -> ListenerHandle:
        return self.registry.add_resource_listener(endpoint, path, listener)

    def add_listener(self, event_type: NotificationType, listener) -> ListenerHandle:
        return self.registry.add_listener(event_type, listener)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "state": self.state.name,
            "session": self._session,
            "poll_count": self.poll_count,
            "consecutive_failures": self._budget.fail,
            "pending_async_requests": len(self.correlator),
            "listeners": self.registry.get_listener_count(),
        }

    # --------------------------------------------------------------------- #
    #  Poll loop
    # --------------------------------------------------------------------- #
    async def _poll_loop(self, session: int) -> None:
        cfg = self._session_config
        request = RequestConfig("GET", PULL_PATH, headers={"accept": "application/json"})

        while session == self._session:
            self.state_machine.transition(ChannelState.AWAITING_RESPONSE)
            try:
                result = await self.connector.make_request(request, request_timeout=cfg.poll_timeout)
            except MbedConnectorError as e:
                result = RequestResult(error=e)
            except Exception as e:
                self.log.error(f"Unexpected error from transport: {e!r}", exc_info=True)
                error = MbedConnectorError(f"unexpected transport error: {e!r}")
                error.__cause__ = e
                result = RequestResult(error=error)
            if session != self._session:
                self.log.debug("Dropping poll response from stale session %d", session)
                return
            self.state_machine.transition(ChannelState.POLLING)
            self.poll_count += 1

            if isinstance(result.error, ParseError):
                # a body arrived but could not be read; drop it like a malformed batch
                self._budget.record_success()
                self.log.error(f"Dropping unreadable poll response: {result.error}")
                self.dispatcher.report_error(result.error)
                continue

            if result.error is not None:
                if not await self._handle_failure(result.error):
                    return
                continue

            self._budget.record_success()
            self._handle_response(result.response, cfg)

    async def _handle_failure(self, error: MbedConnectorError) -> bool:
        """Back off after a transient failure; False once the channel gave up."""
        if is_transient(error):
            delay = self._budget.record_failure()
            if delay is not None:
                self.log.warning(f"Poll failed: {error}. Retrying in {delay:.2f}s...")
                await asyncio.sleep(delay)
                return True
            reason = f"poll failed {self._budget.fail} times in a row: {error}"
        else:
            reason = f"unrecoverable poll failure: {error}"

        fatal = FatalChannelError(reason)
        fatal.__cause__ = error
        self.last_error = fatal
        self.state_machine.transition(ChannelState.ERROR)
        self.log.error(reason)
        self.dispatcher.report_error(fatal)
        return False

    def _handle_response(self, response: Response, cfg: ConnectorConfig) -> None:
        if response is None or response.is_empty:
            self.log.debug("Empty poll response")
            return
        try:
            batch = decode_batch(response.payload, cfg.base64_content_types)
        except ParseError as e:
            self.log.error(f"Dropping malformed poll response: {e}")
            self.dispatcher.report_error(e)
            return
        if batch.is_empty:
            return
        delivered = self.dispatcher.dispatch(batch)
        self.log.debug("Dispatched %d events to %d listeners", batch.event_count, delivered)
