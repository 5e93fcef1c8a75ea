import asyncio
import pytest
from unittest.mock import patch
from kycflow.core.poller import StatusPoller
from kycflow.store.models import Session


class CountingTick:
    def __init__(self, results=None):
        self.calls = 0
        self._results = list(results or [])

    async def __call__(self):
        self.calls += 1
        if self._results:
            result = self._results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return True


@pytest.mark.asyncio
async def test_start_ticks_immediately():
    tick = CountingTick()
    poller = StatusPoller(tick, interval_sec=60)
    poller.start(Session(id="s1"))
    await asyncio.sleep(0.01)

    assert tick.calls == 1
    assert poller.active is True
    poller.stop()


@pytest.mark.asyncio
async def test_ticks_repeat_on_interval():
    tick = CountingTick()
    poller = StatusPoller(tick, interval_sec=0.01)
    poller.start(Session(id="s1"))
    await asyncio.sleep(0.1)
    poller.stop()

    assert tick.calls >= 3


@pytest.mark.asyncio
async def test_tick_returning_false_ends_polling():
    tick = CountingTick(results=[True, False])
    poller = StatusPoller(tick, interval_sec=0.01)
    poller.start(Session(id="s1"))
    await asyncio.sleep(0.1)

    assert tick.calls == 2
    assert poller.active is False


@pytest.mark.asyncio
async def test_restart_cancels_previous_handle():
    tick = CountingTick()
    poller = StatusPoller(tick, interval_sec=60)
    first = poller.start(Session(id="s1"))
    second = poller.start(Session(id="s2"))
    await asyncio.sleep(0.01)

    assert first.task.cancelled() or first.task.done()
    assert poller.session_id == "s2"
    # The first task was cancelled before it ever ran
    assert tick.calls == 1
    poller.stop()
    await asyncio.sleep(0.01)
    assert second.task.done()


@pytest.mark.asyncio
async def test_stop_from_inside_a_tick():
    poller = None
    calls = []

    async def tick():
        calls.append(1)
        poller.stop()
        return True

    poller = StatusPoller(tick, interval_sec=0.01)
    handle = poller.start(Session(id="s1"))
    await asyncio.sleep(0.05)

    assert len(calls) == 1
    assert poller.active is False
    assert handle.task.done()
    assert not handle.task.cancelled()


@pytest.mark.asyncio
async def test_tick_exception_is_logged_and_polling_continues():
    tick = CountingTick(results=[RuntimeError("boom"), True])
    poller = StatusPoller(tick, interval_sec=0.01)
    with patch("kycflow.core.poller.log") as mock_log:
        poller.start(Session(id="s1"))
        await asyncio.sleep(0.05)
        poller.stop()

    assert tick.calls >= 2
    events = [c.kwargs.get("event") for c in mock_log.call_args_list]
    assert "status_poll_tick_exception" in events


@pytest.mark.asyncio
async def test_stop_is_safe_when_idle():
    poller = StatusPoller(CountingTick(), interval_sec=1)
    poller.stop()
    poller.stop()
    assert poller.active is False
