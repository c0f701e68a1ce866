"""Core protocol definitions.

Defines the capabilities the stateful helpers depend on instead of
ambient globals: a Clock for time and one-shot timers, and a
RandomSource for uniform floats.
"""

from __future__ import annotations

from typing import Callable, Protocol


class TimerHandle(Protocol):
    """Opaque handle returned by Clock.after()."""
    def cancel(self) -> None:
        ...


class Clock(Protocol):
    """Contract for any time source (asyncio loop, virtual test clock)."""
    def now(self) -> float:
        ...

    def after(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        ...

    def cancel(self, handle: TimerHandle) -> None:
        ...

    async def sleep(self, delay_seconds: float) -> None:
        ...


class RandomSource(Protocol):
    """Zero-argument callable returning a float in [0, 1)."""
    def __call__(self) -> float:
        ...
