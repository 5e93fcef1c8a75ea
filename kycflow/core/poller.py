import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from kycflow.settings import settings
from kycflow.store.models import Session
from kycflow.observability.logging import log

# A tick returns False when polling must end (terminal status, session gone)
Tick = Callable[[], Awaitable[bool]]


@dataclass
class PollingHandle:
    session_id: str
    task: "asyncio.Task"


class StatusPoller:
    """
    Fixed-interval status polling for one session at a time.

    Scheduled ticks never overlap each other: the next one starts after the
    previous finished, aligned to the fixed schedule. `stop()` may be called
    from anywhere, including from inside a running tick.
    """

    def __init__(self, tick: Tick, interval_sec: Optional[float] = None):
        self._tick = tick
        self.interval_sec = settings.STATUS_POLL_INTERVAL_SEC if interval_sec is None else float(interval_sec)
        self._handle: Optional[PollingHandle] = None

    @property
    def active(self) -> bool:
        return self._handle is not None and not self._handle.task.done()

    @property
    def session_id(self) -> Optional[str]:
        return self._handle.session_id if self._handle else None

    def start(self, session: Session) -> PollingHandle:
        self.stop()
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(session.id))
        self._handle = PollingHandle(session_id=session.id, task=task)
        log(event="status_poller_started", sessionId=session.id, intervalSec=self.interval_sec)
        return self._handle

    def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        # Cancelling ourselves would abort the tick that asked for the stop
        if handle.task is not asyncio.current_task() and not handle.task.done():
            handle.task.cancel()
        log(event="status_poller_stopped", sessionId=handle.session_id)

    def _owns(self, task) -> bool:
        return self._handle is not None and self._handle.task is task

    async def _run(self, session_id: str) -> None:
        me = asyncio.current_task()
        loop = asyncio.get_running_loop()
        next_due = loop.time()
        while self._owns(me):
            try:
                keep_going = await self._tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log(
                    event="status_poll_tick_exception",
                    level="error",
                    sessionId=session_id,
                    errorType=type(e).__name__,
                    error=str(e)[:300],
                )
                keep_going = True

            if not keep_going:
                if self._owns(me):
                    self._handle = None
                    log(event="status_poller_finished", sessionId=session_id)
                return

            # A slow tick delays the schedule instead of causing a burst
            next_due = max(next_due + self.interval_sec, loop.time())
            await asyncio.sleep(next_due - loop.time())
