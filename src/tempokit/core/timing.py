"""
Call-rate helpers.

debounce collapses bursts into one call; throttle drops calls inside a
fixed window. Both schedule through a Clock, so with the default
AsyncioClock they must be called from a running event loop.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, TypeVar

from tempokit.core.clock import AsyncioClock
from tempokit.core.interfaces import Clock, TimerHandle

R = TypeVar("R")


class Debounced(Generic[R]):
    def __init__(self, fn: Callable[..., R], wait_seconds: float, *, immediate: bool, clock: Clock) -> None:
        self._fn = fn
        self._wait = float(wait_seconds)
        self._leading = immediate
        self._clock = clock
        self._timer: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        call_now = self._leading and self._timer is None
        self.cancel()

        def _fire() -> None:
            self._timer = None
            # Leading mode already ran at the start of the burst
            if not self._leading:
                self._fn(*args, **kwargs)

        self._timer = self._clock.after(self._wait, _fire)

        if call_now:
            self._fn(*args, **kwargs)

    def cancel(self) -> None:
        if self._timer is not None:
            self._clock.cancel(self._timer)
            self._timer = None


class Throttled(Generic[R]):
    def __init__(self, fn: Callable[..., R], limit_seconds: float, *, clock: Clock) -> None:
        self._fn = fn
        self._limit = float(limit_seconds)
        self._clock = clock
        self._blocked = False

    def __call__(self, *args: Any, **kwargs: Any) -> bool:
        if self._blocked:
            return False
        self._fn(*args, **kwargs)
        self._blocked = True
        self._clock.after(self._limit, self._unblock)
        return True

    def _unblock(self) -> None:
        self._blocked = False


def debounce(
    fn: Callable[..., R],
    wait_seconds: float,
    *,
    immediate: bool = False,
    clock: Optional[Clock] = None,
) -> Debounced[R]:
    """Run `fn` only once `wait_seconds` have passed since the last call.

    With immediate=True the first call of a burst runs right away and the
    rest of the burst is dropped.
    """
    return Debounced(fn, wait_seconds, immediate=immediate, clock=clock or AsyncioClock())


def throttle(fn: Callable[..., R], limit_seconds: float, *, clock: Optional[Clock] = None) -> Throttled[R]:
    """Run `fn` at most once every `limit_seconds`; extra calls are dropped."""
    return Throttled(fn, limit_seconds, clock=clock or AsyncioClock())
