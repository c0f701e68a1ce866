"""Small value types shared by the loop and retry helpers.

Includes the loop state machine and event kinds (LoopState, LoopEvent)
and the immutable record describing a scheduled retry (RetryAttempt).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LoopState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class LoopEvent(str, Enum):
    """Notifications emitted by Loop.

    Payloads:
    - START, RESUME, STOP: none
    - TICK: the user function's result
    - PAUSE: remaining seconds of the interrupted wait
    - ERROR: the exception raised by the user function
    """

    START = "start"
    TICK = "tick"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class RetryAttempt:
    """A failed attempt about to be retried.

    Field groups:
    - Position: attempt (1-based index of the attempt that failed)
    - Timing: delay_seconds (backoff incl. jitter), timeout_seconds
    """

    attempt: int
    delay_seconds: float
    timeout_seconds: Optional[float] = None
