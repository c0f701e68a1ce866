"""Deterministic pseudo-random numbers (Mulberry32).

All state updates are masked to 32 bits, so a seed yields the same stream
on every platform and interpreter.
"""

from __future__ import annotations

import random as _random
from typing import Optional

from tempokit.core.interfaces import RandomSource

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    # Low 32 bits of the product, like a C uint32 multiply
    return (a * b) & _MASK32


class Mulberry32:
    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & _MASK32

    def __call__(self) -> float:
        self._state = (self._state + _INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32


def make_prng(seed: int) -> RandomSource:
    """Return a generator of floats in [0, 1) fully determined by `seed`."""
    return Mulberry32(seed)


def resolve_random(seed: Optional[int] = None, rng: Optional[RandomSource] = None) -> RandomSource:
    """Pick the random source for one call: seed, then injected rng, then entropy."""
    if seed is not None:
        return make_prng(seed)
    if rng is not None:
        return rng
    return _random.random
