"""Matches async device responses to the requests that started them."""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from mbed_connector.core.exceptions import AsyncResponseTimeout

AsyncCallback = Callable[[Optional[BaseException], Any], Any]


@dataclass
class PendingAsyncRequest:
    token: str
    future: asyncio.Future
    timer: Optional[asyncio.TimerHandle] = None
    callback: Optional[AsyncCallback] = None


class PendingRequestCorrelator:
    """
    Table of outstanding async requests keyed by correlation token.

    Every entry completes exactly once: with the device response on
    ``resolve()`` or with AsyncResponseTimeout when it ages out. The table
    is only touched from the event loop thread.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self.log = logging.getLogger(self.__class__.__name__)
        self._pending: Dict[str, PendingAsyncRequest] = {}

    def register(self, token: str, callback: Optional[AsyncCallback] = None,
                 timeout: Optional[float] = None) -> asyncio.Future:
        """
        Start waiting for the async response identified by ``token``.

        ``callback``, when given, is called as ``callback(error, result)``
        once the returned future completes; a cancelled request reports
        ``asyncio.CancelledError`` as the error.
        """
        if token in self._pending:
            raise ValueError(f"correlation token already outstanding: {token!r}")
        loop = asyncio.get_running_loop()
        timeout = self.timeout if timeout is None else timeout

        future = loop.create_future()
        entry = PendingAsyncRequest(token=token, future=future, callback=callback)
        entry.timer = loop.call_later(timeout, self._expire, token, timeout)
        future.add_done_callback(lambda fut: self._deliver(entry, fut))
        self._pending[token] = entry
        self.log.debug("registered async request %s (timeout %.1fs)", token, timeout)
        return future

    def resolve(self, token: str, result: Any) -> bool:
        """Complete the entry for ``token``; unknown tokens are ignored."""
        entry = self._pending.pop(token, None)
        if entry is None:
            self.log.info("async response for unknown token %s ignored", token)
            return False
        if entry.timer is not None:
            entry.timer.cancel()
        if not entry.future.done():
            entry.future.set_result(result)
        return True

    def cancel_all(self) -> int:
        """Drop every outstanding entry, cancelling the waiting futures."""
        entries = list(self._pending.values())
        self._pending.clear()
        for entry in entries:
            if entry.timer is not None:
                entry.timer.cancel()
            entry.future.cancel()
        if entries:
            self.log.info("cancelled %d pending async requests", len(entries))
        return len(entries)

    def is_pending(self, token: str) -> bool:
        return token in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    # ---- internals ----
    def _expire(self, token: str, timeout: float):
        entry = self._pending.pop(token, None)
        if entry is None or entry.future.done():
            return
        self.log.warning("async request %s timed out after %.1fs", token, timeout)
        entry.future.set_exception(AsyncResponseTimeout(token, timeout))

    def _deliver(self, entry: PendingAsyncRequest, future: asyncio.Future):
        # Runs once per future; also marks the exception as retrieved
        if future.cancelled():
            if self._pending.get(entry.token) is entry:
                del self._pending[entry.token]
            if entry.timer is not None:
                entry.timer.cancel()
            error, result = asyncio.CancelledError(f"async request {entry.token} cancelled"), None
        else:
            error = future.exception()
            result = None if error else future.result()
        if entry.callback is None:
            return
        try:
            entry.callback(error, result)
        except Exception as e:
            self.log.error(f"Error in async response callback for {entry.token}: {e}", exc_info=True)
