"""
Retry logic with exponential backoff for async operations.

Each attempt can be bounded by a per-attempt timeout, and a cancel event
aborts both a running attempt and a backoff wait immediately (not at the
next poll).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tempokit.config import (
    RETRY_INITIAL_DELAY_SECONDS,
    RETRY_MAX_JITTER_SECONDS,
    RETRY_MAX_RETRIES,
)
from tempokit.core.clock import AsyncioClock
from tempokit.core.errors import (
    InvalidArgumentError,
    OperationCancelledError,
    OperationTimeoutError,
)
from tempokit.core.interfaces import Clock, RandomSource
from tempokit.core.models import RetryAttempt
from tempokit.rnd.prng import resolve_random

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
RetryHook = Callable[[RetryAttempt, BaseException], None]


async def retry(
    operation: Operation[T],
    *,
    retries: int = RETRY_MAX_RETRIES,
    delay_seconds: float = RETRY_INITIAL_DELAY_SECONDS,
    timeout_seconds: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
    max_jitter_seconds: float = RETRY_MAX_JITTER_SECONDS,
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
    clock: Optional[Clock] = None,
    on_retry: Optional[RetryHook] = None,
) -> T:
    """
    Run `operation` until it succeeds or the retry budget is spent.

    Args:
        operation: Zero-argument callable returning an awaitable
        retries: Retries after the first attempt (default: 3, so 4 attempts)
        delay_seconds: Initial backoff, doubled after every retry (default: 0.5)
        timeout_seconds: Per-attempt budget; an overrun counts as a failed attempt
        cancel_event: Setting it aborts the sequence with OperationCancelledError
        max_jitter_seconds: Upper bound of the uniform jitter added to each wait
        seed / rng: Random source for the jitter
        clock: Sleep provider for the backoff waits
        on_retry: Called with the RetryAttempt and the failure before each wait

    Returns:
        Result of the first successful attempt

    Raises:
        OperationCancelledError: cancel_event was set before or during the sequence
        OperationTimeoutError: the last attempt timed out
        Exception: the last attempt's own failure once retries are exhausted
    """
    if retries < 0:
        raise InvalidArgumentError("retries must be >= 0")
    if delay_seconds < 0:
        raise InvalidArgumentError("delay_seconds must be >= 0")
    if timeout_seconds is not None and timeout_seconds <= 0:
        raise InvalidArgumentError("timeout_seconds must be > 0")

    random = resolve_random(seed, rng)
    clock = clock or AsyncioClock()
    delay = float(delay_seconds)
    attempts = retries + 1

    for attempt in range(1, attempts + 1):
        _raise_if_cancelled(cancel_event)

        try:
            result = await _attempt(operation, timeout_seconds, cancel_event)
        except OperationCancelledError:
            raise
        except Exception as e:
            if _is_cancelled(cancel_event):
                raise OperationCancelledError("Retry sequence cancelled") from e
            if attempt == attempts:
                logger.error(
                    "Operation failed after %d retries",
                    retries,
                    extra={"max_retries": retries, "error": str(e)},
                )
                raise

            wait = delay + random() * max(0.0, max_jitter_seconds)
            logger.warning(
                "Retry attempt %d/%d after %.2fs",
                attempt,
                retries,
                wait,
                extra={
                    "attempt": attempt,
                    "max_retries": retries,
                    "delay_seconds": wait,
                    "error": str(e),
                },
            )
            if on_retry is not None:
                on_retry(
                    RetryAttempt(
                        attempt=attempt,
                        delay_seconds=wait,
                        timeout_seconds=timeout_seconds,
                    ),
                    e,
                )

            await _backoff(clock, wait, cancel_event)
            delay *= 2
            continue

        if attempt > 1:
            logger.info(
                "Operation succeeded after %d retries",
                attempt - 1,
                extra={"attempt": attempt, "max_retries": retries},
            )
        return result

    raise RuntimeError("Unreachable: retry did not return a result")


def _is_cancelled(cancel_event: Optional[asyncio.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    if _is_cancelled(cancel_event):
        raise OperationCancelledError("Retry sequence cancelled")


async def _race(
    work: "asyncio.Future[T]",
    cancel_event: Optional[asyncio.Event],
    timeout: Optional[float],
) -> bool:
    """Wait for `work`, the cancel event or the timeout, whichever comes first.

    Returns True when `work` finished. Otherwise `work` is cancelled and
    the caller inspects the cancel event to tell cancel from timeout.
    """
    waiters = {work}
    cancel_waiter: Optional[asyncio.Task[bool]] = None
    if cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()

    if work in done:
        return True

    work.cancel()
    return False


async def _attempt(
    operation: Operation[T],
    timeout: Optional[float],
    cancel_event: Optional[asyncio.Event],
) -> T:
    task = asyncio.ensure_future(operation())
    if await _race(task, cancel_event, timeout):
        return task.result()

    _raise_if_cancelled(cancel_event)
    raise OperationTimeoutError(f"Attempt timed out after {timeout}s")


async def _backoff(clock: Clock, wait: float, cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is None:
        await clock.sleep(wait)
        return

    sleeper = asyncio.ensure_future(clock.sleep(wait))
    if not await _race(sleeper, cancel_event, None):
        _raise_if_cancelled(cancel_event)
