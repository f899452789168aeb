"""
Cancellable timers for phase auto-advance and the countdown.

Two schedulers share one interface:
- ManualScheduler keeps a virtual clock that callers advance explicitly,
  which makes every delayed transition deterministic in tests and in the
  headless CLI.
- AsyncioScheduler hands timers to a running asyncio event loop.
"""

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable


Callback = Callable[[], None]


class TimerHandle:
    """A scheduled callback that can be cancelled before it fires."""

    def __init__(self, callback: Callback, due: float, period: Optional[float] = None):
        self.callback = callback
        self.due = due
        self.period = period
        self._cancelled = False
        self._native: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def repeating(self) -> bool:
        return self.period is not None

    def cancel(self) -> None:
        self._cancelled = True
        if self._native is not None:
            self._native.cancel()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else f"due={self.due:.3f}"
        return f"<TimerHandle {state} period={self.period}>"


@runtime_checkable
class Scheduler(Protocol):
    """Source of cancellable one-shot and repeating timers."""

    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        ...

    def call_every(self, period: float, callback: Callback) -> TimerHandle:
        ...


class ManualScheduler:
    """
    Scheduler driven by a virtual clock.

    Callbacks fire only inside `advance`, in due-time order (ties in
    scheduling order). A callback may schedule or cancel other timers;
    anything that becomes due within the advanced window still fires.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle(callback, self._now + max(delay, 0.0))
        self._push(handle)
        return handle

    def call_every(self, period: float, callback: Callback) -> TimerHandle:
        if period <= 0:
            raise ValueError(f"Timer period must be positive, got {period}")
        handle = TimerHandle(callback, self._now + period, period=period)
        self._push(handle)
        return handle

    @property
    def pending(self) -> List[TimerHandle]:
        """Live (not cancelled) timers in due order."""
        return [h for _, _, h in sorted(self._queue) if not h.cancelled]

    def next_due(self) -> Optional[float]:
        """Due time of the earliest live timer, if any."""
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0][0] if self._queue else None

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and fire everything that falls due.

        Returns:
            Number of callbacks fired
        """
        target = self._now + seconds
        fired = 0

        while True:
            due = self.next_due()
            if due is None or due > target + 1e-9:
                break

            _, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if handle.repeating:
                handle.due = due + handle.period
                self._push(handle)
            handle.callback()
            fired += 1

        self._now = target
        return fired


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle(callback, self.now() + delay)
        handle._native = self._loop.call_later(delay, self._fire, handle)
        return handle

    def call_every(self, period: float, callback: Callback) -> TimerHandle:
        if period <= 0:
            raise ValueError(f"Timer period must be positive, got {period}")
        handle = TimerHandle(callback, self.now() + period, period=period)
        handle._native = self._loop.call_later(period, self._fire, handle)
        return handle

    def _fire(self, handle: TimerHandle) -> None:
        if handle.cancelled:
            return
        if handle.repeating:
            handle.due += handle.period
            handle._native = self._loop.call_later(handle.period, self._fire, handle)
        handle.callback()
