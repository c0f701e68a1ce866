"""Random helpers built on a pluggable RandomSource.

Every helper accepts `seed` (fresh Mulberry32 stream, reproducible) or
`rng` (any zero-argument float source); with neither it falls back to
platform entropy.
"""

from __future__ import annotations

from bisect import bisect_right
from itertools import accumulate
from typing import Callable, Iterable, Literal, Optional, Sequence, TypeVar, Union

from tempokit.config import RND_MAX_REROLLS
from tempokit.core.errors import InvalidArgumentError, InvalidWeightsError
from tempokit.core.interfaces import RandomSource
from tempokit.rnd.prng import resolve_random

T = TypeVar("T")

StringMode = Literal["number", "alpha", "alphanumeric", "custom"]
Casing = Literal["lower", "upper", "mixed"]

LOWER = "abcdefghijklmnopqrstuvwxyz"
UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"

# Below this size a linear scan of cumulative weights beats bisect
_LINEAR_SCAN_MAX = 20


def chance(percent: float = 0.5, *, seed: Optional[int] = None, rng: Optional[RandomSource] = None) -> bool:
    """Return True with probability `percent` (0..1)."""
    if percent <= 0:
        return False
    if percent >= 1:
        return True
    return resolve_random(seed, rng)() < percent


def index(
    items: Sequence[object],
    *,
    reject: Union[Callable[[int], bool], int, None] = None,
    max_rerolls: int = RND_MAX_REROLLS,
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> int:
    """Random valid index into `items`, optionally rerolling rejected ones."""
    if not items:
        raise InvalidArgumentError("Cannot pick an index from an empty sequence")

    random = resolve_random(seed, rng)
    n = len(items)
    result = int(random() * n)

    # A seeded stream would reroll to the same value; only reroll on entropy
    if seed is None and n > 1 and reject is not None:
        rerolls = 0
        while _rejected(reject, result) and rerolls < max_rerolls:
            result = int(random() * n)
            rerolls += 1

    return result


def choice(
    items: Sequence[T],
    *,
    reject: Union[Callable[[T], bool], T, None] = None,
    max_rerolls: int = RND_MAX_REROLLS,
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> T:
    """Random item of `items`; `reject` is a predicate or a value to avoid."""
    if not items:
        raise InvalidArgumentError("Cannot choose from an empty sequence")

    random = resolve_random(seed, rng)
    n = len(items)
    result = items[int(random() * n)]

    if seed is None and n > 1 and reject is not None:
        rerolls = 0
        while _rejected(reject, result) and rerolls < max_rerolls:
            result = items[int(random() * n)]
            rerolls += 1

    return result


def weighted(
    items: Sequence[T],
    weight: Callable[[T], float],
    *,
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> T:
    """One weighted draw without building a sampler (O(n) setup per call)."""
    if not items:
        raise InvalidArgumentError("Cannot choose from an empty sequence")

    cumulative = list(accumulate(float(weight(item)) for item in items))
    total = cumulative[-1]
    if total <= 0:
        raise InvalidWeightsError("Weights sum to zero")

    decider = resolve_random(seed, rng)() * total

    if len(items) < _LINEAR_SCAN_MAX:
        i = next((i for i, w in enumerate(cumulative) if w > decider), len(items) - 1)
    else:
        i = min(bisect_right(cumulative, decider), len(items) - 1)
    return items[i]


def uniform(low: float, high: float, *, seed: Optional[int] = None, rng: Optional[RandomSource] = None) -> float:
    return resolve_random(seed, rng)() * (high - low) + low


def integer(low: int, high: int, *, seed: Optional[int] = None, rng: Optional[RandomSource] = None) -> int:
    """Random integer in [low, high], both ends inclusive."""
    if high < low:
        raise InvalidArgumentError(f"Empty range: [{low}, {high}]")
    return int(resolve_random(seed, rng)() * (high - low + 1)) + low


def string(
    length: int,
    mode: StringMode = "alphanumeric",
    *,
    casing: Casing = "lower",
    custom_chars: str = "",
    exclude: Union[str, Iterable[str]] = "",
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None,
) -> str:
    """Random string of `length` characters drawn from the selected pool."""
    alpha = {"lower": LOWER, "upper": UPPER, "mixed": LOWER + UPPER}.get(casing)
    if alpha is None:
        raise InvalidArgumentError(f"Unknown casing: {casing!r}")

    pool = {
        "number": DIGITS,
        "alpha": alpha,
        "alphanumeric": alpha + DIGITS,
        "custom": custom_chars,
    }.get(mode)
    if pool is None:
        raise InvalidArgumentError(f"Unknown mode: {mode!r}")

    excluded = set(exclude)
    if excluded:
        pool = "".join(ch for ch in pool if ch not in excluded)

    if not pool:
        raise InvalidArgumentError("Character pool is empty after exclusions")

    random = resolve_random(seed, rng)
    size = len(pool)
    return "".join(pool[int(random() * size)] for _ in range(max(0, int(length))))


def _rejected(reject: object, value: object) -> bool:
    if callable(reject):
        return bool(reject(value))
    return value == reject
