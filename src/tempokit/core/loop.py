"""Recurring task loop with start/pause/resume/stop semantics.

Runs a user function, waits `delay_seconds` after it settles, and runs it
again. The next timer is armed only once the previous invocation has
finished, so invocations never overlap no matter how long the function
takes. Pausing remembers how much of the current wait was left and
resuming waits only for that remainder.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from tempokit.core.clock import AsyncioClock
from tempokit.core.events import EventEmitter, Listener
from tempokit.core.interfaces import Clock, TimerHandle
from tempokit.core.models import LoopEvent, LoopState

T = TypeVar("T")

LoopFunction = Callable[["Loop[T]"], Union[Awaitable[T], T]]

logger = logging.getLogger(__name__)


class Loop(Generic[T]):
    """Interval runner for a sync or async function.

    Purpose:
      - start() / pause() / resume() / stop() drive a small state machine.
      - on(LoopEvent.TICK, fn) etc. subscribe to lifecycle notifications.
      - execute() runs the function once without touching the schedule.

    Key behavior:
      - Failures are reported through LoopEvent.ERROR and never stop the loop.
      - stop() and pause() cancel the pending timer only; an invocation that is
        already running finishes and still emits TICK or ERROR.
    """

    def __init__(
        self,
        fn: LoopFunction[T],
        delay_seconds: float,
        *,
        immediate: bool = True,
        clock: Optional[Clock] = None,
    ) -> None:
        self._fn = fn
        self._delay = float(delay_seconds)
        self._clock: Clock = clock or AsyncioClock()
        self._events: EventEmitter[LoopEvent] = EventEmitter()

        self._state = LoopState.STOPPED
        self._timer: Optional[TimerHandle] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._in_flight = False

        # When the current wait began, and what was left of it at pause()
        self._start_time = 0.0
        self._remaining = 0.0

        if immediate:
            self.start()

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def remaining(self) -> float:
        return self._remaining

    # --- events ---

    def on(self, kind: LoopEvent, listener: Listener) -> Listener:
        return self._events.on(kind, listener)

    def once(self, kind: LoopEvent, listener: Listener) -> Listener:
        return self._events.once(kind, listener)

    def off(self, kind: LoopEvent, listener: Listener) -> None:
        self._events.off(kind, listener)

    # --- state machine ---

    def start(self) -> None:
        """Start a stopped loop and run the function right away."""
        if self._state is not LoopState.STOPPED:
            return
        # Raises RuntimeError outside a running loop; the loop stays STOPPED
        event_loop = asyncio.get_running_loop()
        self._set_state(LoopState.RUNNING)
        self._events.emit(LoopEvent.START)
        self._invoke_now(event_loop)

    def pause(self) -> None:
        if self._state is not LoopState.RUNNING:
            return
        self._set_state(LoopState.PAUSED)
        elapsed = self._clock.now() - self._start_time
        self._remaining = max(0.0, self._delay - elapsed)
        self._events.emit(LoopEvent.PAUSE, self._remaining)
        self._clear_timer()

    def resume(self) -> None:
        """Resume a paused loop, keeping the cadence it had before pause()."""
        if self._state is not LoopState.PAUSED:
            return
        self._set_state(LoopState.RUNNING)
        self._events.emit(LoopEvent.RESUME)
        if self._remaining <= 0:
            self._invoke_now()
        elif not self._in_flight:
            self._arm_timer(self._remaining)

    def stop(self) -> None:
        was_running = self._state is not LoopState.STOPPED
        self._set_state(LoopState.STOPPED)
        self._remaining = 0.0
        self._clear_timer()
        if was_running:
            self._events.emit(LoopEvent.STOP)

    def set_delay(self, seconds: float) -> None:
        # Applies to the next wait; an armed timer keeps its deadline.
        self._delay = float(seconds)

    async def execute(self) -> T:
        """Run the function once, outside the schedule and without events."""
        return await self._call()

    # --- internals ---

    def _set_state(self, state: LoopState) -> None:
        if state is not self._state:
            logger.debug("Loop %s -> %s", self._state.value, state.value)
        self._state = state

    def _invoke_now(self, event_loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        # The running invocation arms the next timer when it settles.
        if self._in_flight:
            return
        event_loop = event_loop or asyncio.get_running_loop()
        self._in_flight = True
        self._task = event_loop.create_task(self._run())

    def _on_timer(self) -> None:
        self._timer = None
        if self._state is LoopState.RUNNING:
            self._invoke_now()

    async def _run(self) -> None:
        try:
            if self._state is not LoopState.RUNNING:
                return

            try:
                result = await self._call()
                self._events.emit(LoopEvent.TICK, result)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._report_error(e)
        finally:
            self._in_flight = False

        # Re-check state: pause()/stop() may have been called while fn ran
        if self._state is LoopState.RUNNING:
            self._start_time = self._clock.now()
            self._remaining = 0.0
            self._arm_timer(self._delay)

    async def _call(self) -> T:
        result: Any = self._fn(self)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _report_error(self, err: Exception) -> None:
        if self._events.listener_count(LoopEvent.ERROR) == 0:
            logger.warning("Loop function failed with no error listener: %s", err, exc_info=err)
            return
        try:
            self._events.emit(LoopEvent.ERROR, err)
        except Exception:
            logger.exception("Loop error listener failed")

    def _arm_timer(self, delay: float) -> None:
        # Exactly one pending timer while running
        self._clear_timer()
        self._timer = self._clock.after(delay, self._on_timer)

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._clock.cancel(self._timer)
            self._timer = None
