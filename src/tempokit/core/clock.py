"""Clock implementations.

AsyncioClock schedules one-shot callbacks on the running event loop;
ManualClock keeps virtual time so timing code can be driven step by step
in tests without real waits.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from typing import Callable, List, Tuple


class AsyncioClock:
    # Monotonic time + loop.call_later timers
    def now(self) -> float:
        return time.monotonic()

    def after(self, delay_seconds: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        # Raises RuntimeError outside a running loop; callers decide how to degrade.
        loop = asyncio.get_running_loop()
        return loop.call_later(max(0.0, float(delay_seconds)), callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()

    async def sleep(self, delay_seconds: float) -> None:
        await asyncio.sleep(max(0.0, float(delay_seconds)))


async def wait(seconds: float) -> None:
    """Suspend the calling coroutine for `seconds` of real time."""
    await asyncio.sleep(max(0.0, float(seconds)))


class ManualTimer:
    __slots__ = ("deadline", "callback", "_cancelled", "_fired")

    def __init__(self, deadline: float, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self.callback = callback
        self._cancelled = False
        self._fired = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._fired)


class ManualClock:
    """Virtual clock: time only moves when advance() is called."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        # (deadline, sequence, timer); sequence keeps same-deadline timers FIFO
        self._heap: List[Tuple[float, int, ManualTimer]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def after(self, delay_seconds: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self._now + max(0.0, float(delay_seconds)), callback)
        heapq.heappush(self._heap, (timer.deadline, next(self._seq), timer))
        return timer

    def cancel(self, handle: ManualTimer) -> None:
        handle.cancel()

    async def sleep(self, delay_seconds: float) -> None:
        if delay_seconds <= 0:
            return

        fut = asyncio.get_running_loop().create_future()

        def _wake() -> None:
            if not fut.done():
                fut.set_result(None)

        timer = self.after(delay_seconds, _wake)
        try:
            await fut
        finally:
            timer.cancel()

    def advance(self, seconds: float) -> None:
        """Move time forward and fire every timer that falls due, in order."""
        target = self._now + max(0.0, float(seconds))

        # Callbacks may schedule new timers; those fire too if due before target.
        while self._heap and self._heap[0][0] <= target:
            deadline, _, timer = heapq.heappop(self._heap)
            if not timer.active:
                continue
            self._now = max(self._now, deadline)
            timer._fired = True
            timer.callback()

        self._now = target

    def pending(self) -> int:
        return sum(1 for _, _, timer in self._heap if timer.active)
