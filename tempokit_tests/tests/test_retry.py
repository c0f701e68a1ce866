import asyncio

import pytest

from tempokit.core.errors import (
    InvalidArgumentError,
    OperationCancelledError,
    OperationTimeoutError,
)
from tempokit.core.retry import retry


class RecordingClock:
    """Clock stand-in whose sleep() records the delay and returns at once."""

    def __init__(self) -> None:
        self.sleeps = []

    def now(self) -> float:
        return 0.0

    def after(self, delay_seconds, callback):
        raise AssertionError("retry must not arm timers")

    def cancel(self, handle) -> None:
        pass

    async def sleep(self, delay_seconds: float) -> None:
        self.sleeps.append(delay_seconds)


@pytest.mark.asyncio
async def test_retry_returns_first_success():
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        return "done"

    assert await retry(op, clock=RecordingClock()) == "done"
    assert calls == 1


@pytest.mark.asyncio
async def test_retry_exhaustion_calls_operation_retries_plus_one_times():
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        raise ConnectionError(f"fail {calls}")

    with pytest.raises(ConnectionError, match="fail 4"):
        await retry(op, retries=3, clock=RecordingClock())

    assert calls == 4


@pytest.mark.asyncio
async def test_retry_backoff_doubles_with_bounded_jitter(fixed_random):
    clock = RecordingClock()

    async def op():
        raise RuntimeError("nope")

    with pytest.raises(RuntimeError):
        await retry(
            op,
            retries=3,
            delay_seconds=0.5,
            max_jitter_seconds=0.2,
            rng=fixed_random(0.5),
            clock=clock,
        )

    assert clock.sleeps == [pytest.approx(0.6), pytest.approx(1.1), pytest.approx(2.1)]


@pytest.mark.asyncio
async def test_retry_succeeds_after_failures_and_reports_attempts():
    clock = RecordingClock()
    seen = []
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        if calls < 3:
            raise ValueError("transient")
        return calls

    result = await retry(
        op,
        delay_seconds=1.0,
        max_jitter_seconds=0,
        clock=clock,
        on_retry=lambda attempt, exc: seen.append((attempt.attempt, attempt.delay_seconds, str(exc))),
    )

    assert result == 3
    assert seen == [(1, 1.0, "transient"), (2, 2.0, "transient")]


@pytest.mark.asyncio
async def test_retry_zero_retries_propagates_first_failure():
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        raise KeyError("k")

    with pytest.raises(KeyError):
        await retry(op, retries=0, clock=RecordingClock())

    assert calls == 1


@pytest.mark.asyncio
async def test_retry_per_attempt_timeout_is_retryable():
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        if calls == 1:
            await asyncio.sleep(10)
        return "fast"

    result = await retry(op, retries=1, timeout_seconds=0.02, clock=RecordingClock())

    assert result == "fast"
    assert calls == 2


@pytest.mark.asyncio
async def test_retry_timeout_on_last_attempt_raises_timeout_error():
    async def op():
        await asyncio.sleep(10)

    with pytest.raises(OperationTimeoutError):
        await retry(op, retries=1, timeout_seconds=0.01, clock=RecordingClock())


@pytest.mark.asyncio
async def test_retry_already_cancelled_never_calls_operation():
    cancel = asyncio.Event()
    cancel.set()
    calls = 0

    async def op():
        nonlocal calls
        calls += 1

    with pytest.raises(OperationCancelledError):
        await retry(op, cancel_event=cancel)

    assert calls == 0


@pytest.mark.asyncio
async def test_retry_cancel_during_backoff_aborts_wait():
    cancel = asyncio.Event()
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        raise RuntimeError("down")

    task = asyncio.ensure_future(retry(op, retries=5, delay_seconds=30.0, cancel_event=cancel))
    await asyncio.sleep(0.02)
    assert calls == 1

    cancel.set()

    with pytest.raises(OperationCancelledError):
        await asyncio.wait_for(task, timeout=1.0)
    assert calls == 1


@pytest.mark.asyncio
async def test_retry_cancel_interrupts_running_attempt():
    cancel = asyncio.Event()
    started = asyncio.Event()
    interrupted = False

    async def op():
        nonlocal interrupted
        started.set()
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            interrupted = True
            raise

    task = asyncio.ensure_future(retry(op, cancel_event=cancel))
    await started.wait()
    cancel.set()

    with pytest.raises(OperationCancelledError):
        await asyncio.wait_for(task, timeout=1.0)

    for _ in range(3):
        await asyncio.sleep(0)
    assert interrupted is True


@pytest.mark.asyncio
async def test_retry_backoff_with_manual_clock(clock, settle):
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("once")
        return "ok"

    task = asyncio.ensure_future(retry(op, delay_seconds=2.0, max_jitter_seconds=0, clock=clock))
    await settle()
    assert calls == 1
    assert clock.pending() == 1

    clock.advance(1.5)
    await settle()
    assert calls == 1

    clock.advance(0.5)
    await settle()
    assert await task == "ok"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs",
    [{"retries": -1}, {"delay_seconds": -0.1}, {"timeout_seconds": 0}],
)
async def test_retry_rejects_invalid_options(kwargs):
    async def op():
        return None

    with pytest.raises(InvalidArgumentError):
        await retry(op, **kwargs)
