import asyncio

import pytest

import tempokit.core.clock as clock_mod
from tempokit.core.clock import AsyncioClock, ManualClock, wait


def test_manual_clock_fires_due_timers_in_order():
    clock = ManualClock()
    fired = []

    clock.after(2.0, lambda: fired.append("b"))
    clock.after(1.0, lambda: fired.append("a"))
    clock.after(2.0, lambda: fired.append("c"))

    clock.advance(1.5)
    assert fired == ["a"]
    assert clock.now() == 1.5

    clock.advance(0.5)
    assert fired == ["a", "b", "c"]
    assert clock.pending() == 0


def test_manual_clock_cancel_and_rescheduling_inside_callback():
    clock = ManualClock(start=10.0)
    fired = []

    handle = clock.after(1.0, lambda: fired.append("cancelled"))
    clock.cancel(handle)

    def chain():
        fired.append(clock.now())
        if len(fired) < 3:
            clock.after(1.0, chain)

    clock.after(1.0, chain)
    clock.advance(5.0)

    assert fired == [11.0, 12.0, 13.0]
    assert clock.now() == 15.0


@pytest.mark.asyncio
async def test_manual_clock_sleep_resolves_on_advance():
    clock = ManualClock()
    woke = asyncio.Event()

    async def sleeper():
        await clock.sleep(3.0)
        woke.set()

    task = asyncio.ensure_future(sleeper())
    await asyncio.sleep(0)

    clock.advance(2.0)
    await asyncio.sleep(0)
    assert not woke.is_set()

    clock.advance(1.0)
    await task
    assert woke.is_set()


def test_asyncio_clock_requires_running_loop():
    with pytest.raises(RuntimeError):
        AsyncioClock().after(1.0, lambda: None)


def test_asyncio_clock_now_is_monotonic(monkeypatch):
    monkeypatch.setattr(clock_mod.time, "monotonic", lambda: 123.0)

    assert AsyncioClock().now() == 123.0


@pytest.mark.asyncio
async def test_asyncio_clock_after_and_cancel():
    clock = AsyncioClock()
    fired = []

    clock.after(0.01, lambda: fired.append("yes"))
    handle = clock.after(0.01, lambda: fired.append("no"))
    clock.cancel(handle)

    await clock.sleep(0.05)

    assert fired == ["yes"]


@pytest.mark.asyncio
async def test_wait_suspends_for_real_time():
    clock = AsyncioClock()
    started = clock.now()

    await wait(0.02)
    await wait(-1)

    assert clock.now() - started >= 0.015
