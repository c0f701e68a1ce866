import asyncio

import pytest

from tempokit.core.clock import ManualClock


class FixedRandom:
    """RandomSource stand-in that replays a fixed sequence (last value repeats)."""

    def __init__(self, *values: float) -> None:
        self._values = list(values)
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        if len(self._values) > 1:
            return self._values.pop(0)
        return self._values[0]


async def _settle(rounds: int = 10) -> None:
    # Let scheduled tasks run to their next suspension point
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def settle():
    return _settle


@pytest.fixture
def fixed_random():
    return FixedRandom
