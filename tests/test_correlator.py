"""
Tests for PendingRequestCorrelator
"""

import asyncio

import pytest

from mbed_connector.channel.correlator import PendingRequestCorrelator
from mbed_connector.core.exceptions import AsyncResponseTimeout
from mbed_connector.models.notification_models import AsyncResponse


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, error, result):
        self.calls.append((error, result))


async def test_register_then_resolve_delivers_once():
    correlator = PendingRequestCorrelator(timeout=1.0)
    callback = Recorder()
    response = AsyncResponse(id="tok", status=200, payload="1")

    future = correlator.register("tok", callback)
    assert correlator.resolve("tok", response) is True
    assert await future is response
    await asyncio.sleep(0)

    assert callback.calls == [(None, response)]
    assert not correlator.is_pending("tok")
    assert len(correlator) == 0

    # second resolve is a no-op
    assert correlator.resolve("tok", response) is False
    await asyncio.sleep(0)
    assert len(callback.calls) == 1


async def test_resolve_unknown_token_is_noop():
    correlator = PendingRequestCorrelator()
    assert correlator.resolve("from-previous-session", object()) is False


async def test_duplicate_outstanding_token_rejected():
    correlator = PendingRequestCorrelator(timeout=1.0)
    correlator.register("tok")
    with pytest.raises(ValueError, match="already outstanding"):
        correlator.register("tok")
    correlator.cancel_all()


async def test_token_reusable_after_resolution():
    correlator = PendingRequestCorrelator(timeout=1.0)
    correlator.register("tok")
    correlator.resolve("tok", "first")
    second = correlator.register("tok")
    correlator.resolve("tok", "second")
    assert await second == "second"


async def test_unresolved_request_times_out_once():
    timeout = 0.05
    correlator = PendingRequestCorrelator(timeout=timeout)
    callback = Recorder()
    loop = asyncio.get_running_loop()

    started = loop.time()
    future = correlator.register("tok", callback)
    with pytest.raises(AsyncResponseTimeout) as excinfo:
        await future
    elapsed = loop.time() - started

    assert elapsed >= timeout - 0.005
    assert isinstance(excinfo.value, TimeoutError)
    assert excinfo.value.token == "tok"

    await asyncio.sleep(timeout * 2)
    assert len(callback.calls) == 1
    error, result = callback.calls[0]
    assert isinstance(error, AsyncResponseTimeout)
    assert result is None
    assert not correlator.is_pending("tok")

    # a response arriving after eviction is ignored
    assert correlator.resolve("tok", "late") is False


async def test_per_request_timeout_overrides_default():
    correlator = PendingRequestCorrelator(timeout=10.0)
    future = correlator.register("tok", timeout=0.01)
    with pytest.raises(AsyncResponseTimeout):
        await asyncio.wait_for(future, 1.0)


async def test_resolved_request_does_not_time_out_later():
    correlator = PendingRequestCorrelator(timeout=0.02)
    callback = Recorder()
    correlator.register("tok", callback)
    correlator.resolve("tok", "value")

    await asyncio.sleep(0.05)
    assert callback.calls == [(None, "value")]


async def test_callback_errors_are_contained():
    correlator = PendingRequestCorrelator(timeout=1.0)

    def broken(error, result):
        raise RuntimeError("listener bug")

    future = correlator.register("tok", broken)
    correlator.resolve("tok", "value")
    assert await future == "value"
    await asyncio.sleep(0)


async def test_cancel_all_cancels_waiters():
    correlator = PendingRequestCorrelator(timeout=1.0)
    first = correlator.register("a")
    second = correlator.register("b")

    assert correlator.cancel_all() == 2
    assert first.cancelled() and second.cancelled()
    assert len(correlator) == 0


async def test_cancel_all_notifies_callbacks_once():
    correlator = PendingRequestCorrelator(timeout=1.0)
    callback = Recorder()
    correlator.register("tok", callback=callback)

    correlator.cancel_all()
    await asyncio.sleep(0.01)

    assert len(callback.calls) == 1
    error, result = callback.calls[0]
    assert isinstance(error, asyncio.CancelledError)
    assert result is None


async def test_cancelled_waiter_notifies_callback():
    correlator = PendingRequestCorrelator(timeout=1.0)
    callback = Recorder()
    future = correlator.register("tok", callback=callback)

    future.cancel()
    await asyncio.sleep(0)

    assert [type(error) for error, _ in callback.calls] == [asyncio.CancelledError]


async def test_cancelled_waiter_releases_token():
    correlator = PendingRequestCorrelator(timeout=1.0)
    future = correlator.register("tok")
    future.cancel()
    await asyncio.sleep(0)

    assert not correlator.is_pending("tok")
    assert correlator.resolve("tok", "value") is False
