"""
Timer schedulers for draft sessions.

AsyncioScheduler drives timers from the running event loop. ManualScheduler
keeps a virtual clock that only moves when advance() is called, so debounce
and interval behavior can be tested without sleeping.
"""
import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple

from .types import Scheduler, TimerHandle


class _AsyncioTimer(TimerHandle):
    """Timer backed by loop.call_later, optionally repeating."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        delay: float,
        callback: Callable[[], None],
        repeat: bool,
    ) -> None:
        self._loop = loop
        self._delay = delay
        self._callback = callback
        self._repeat = repeat
        self._cancelled = False
        self._handle: Optional[asyncio.TimerHandle] = loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        if self._repeat:
            self._handle = self._loop.call_later(self._delay, self._fire)
        else:
            self._handle = None
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """
    Scheduler using the asyncio event loop.

    Timers must be created while a loop is running unless a loop is passed in.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioTimer(self._get_loop(), delay, callback, repeat=False)

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioTimer(self._get_loop(), interval, callback, repeat=True)


class _ManualTimer(TimerHandle):
    def __init__(self, due: float, interval: Optional[float], callback: Callable[[], None]) -> None:
        self.due = due
        self.interval = interval
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler.

    Example:
        scheduler = ManualScheduler()
        scheduler.call_later(2.0, fire)
        scheduler.advance(1.9)   # nothing yet
        scheduler.advance(0.1)   # fire() runs
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: List[Tuple[float, int, _ManualTimer]] = []
        self._sequence = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    def _push(self, timer: _ManualTimer) -> None:
        heapq.heappush(self._queue, (timer.due, next(self._sequence), timer))

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = _ManualTimer(self._now + delay, None, callback)
        self._push(timer)
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        timer = _ManualTimer(self._now + interval, interval, callback)
        self._push(timer)
        return timer

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing due timers in order.

        Returns:
            Number of callbacks fired
        """
        return self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> int:
        """Move the clock to an absolute time, firing due timers in order."""
        if target < self._now:
            raise ValueError("ManualScheduler cannot move backwards")
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = due
            if timer.interval is not None:
                timer.due = due + timer.interval
                self._push(timer)
            timer.callback()
            fired += 1
        self._now = target
        return fired

    def pending_count(self) -> int:
        """Number of timers that have not fired or been cancelled."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)
