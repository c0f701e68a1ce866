"""Weighted sampling in O(1) per draw using Vose's alias method.

Construction is a one-time O(n) pass that splits every item's share of
the distribution into at most two columns: its own and one alias.
"""

from __future__ import annotations

import math
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from tempokit.core.errors import InvalidWeightsError
from tempokit.core.interfaces import RandomSource
from tempokit.rnd.prng import make_prng, resolve_random

T = TypeVar("T")


class AliasSampler(Generic[T]):
    def __init__(
        self,
        items: Sequence[T],
        weight: Callable[[T], float],
        seed: Optional[int] = None,
        *,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self._items: Tuple[T, ...] = tuple(items)
        self._prob, self._alias = _build_tables([float(weight(item)) for item in self._items])

        # Construction seed binds one generator that advances across picks
        self._random: Optional[RandomSource] = make_prng(seed) if seed is not None else rng

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def pick(self, seed: Optional[int] = None) -> T:
        """Draw one item; `seed` overrides the sampler's own random source."""
        n = len(self._items)
        if n == 1:
            return self._items[0]

        random = resolve_random(seed, self._random)
        i = int(random() * n)
        if random() < self._prob[i]:
            return self._items[i]
        return self._items[self._alias[i]]

    def probabilities(self) -> List[float]:
        """Expected draw frequency of every item, reconstructed from the tables."""
        n = len(self._items)
        freq = [0.0] * n
        for i in range(n):
            freq[i] += self._prob[i] / n
            freq[self._alias[i]] += (1.0 - self._prob[i]) / n
        return freq


def _build_tables(weights: List[float]) -> Tuple[Tuple[float, ...], Tuple[int, ...]]:
    n = len(weights)
    if n == 0:
        raise InvalidWeightsError("Cannot sample from an empty sequence")
    if any(w < 0 or not math.isfinite(w) for w in weights):
        raise InvalidWeightsError("Weights must be finite and non-negative")

    total = sum(weights)
    if total <= 0:
        raise InvalidWeightsError("Weights sum to zero")

    scaled = [w * n / total for w in weights]
    prob = [0.0] * n
    # Unpaired columns alias themselves
    alias = list(range(n))

    small = [i for i, w in enumerate(scaled) if w < 1]
    large = [i for i, w in enumerate(scaled) if w >= 1]

    while small and large:
        lo = small.pop()
        hi = large.pop()
        prob[lo] = scaled[lo]
        alias[lo] = hi
        # hi donates what lo is missing to fill its column
        scaled[hi] = scaled[hi] + scaled[lo] - 1
        (small if scaled[hi] < 1 else large).append(hi)

    # Leftovers are full columns (float drift keeps a few just under 1)
    for i in large + small:
        prob[i] = 1.0

    return tuple(prob), tuple(alias)


def build_sampler(
    items: Sequence[T],
    weight: Callable[[T], float],
    seed: Optional[int] = None,
    *,
    rng: Optional[RandomSource] = None,
) -> AliasSampler[T]:
    """Build an O(1)-draw sampler over `items` weighted by `weight(item)`."""
    return AliasSampler(items, weight, seed, rng=rng)
