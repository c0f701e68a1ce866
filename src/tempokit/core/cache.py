"""In-memory expiring cache with passive and bounded active eviction.

Store values with an optional monotonic expiration timestamp. Expired
entries are dropped when read (passive eviction) and by a periodic sweep
that looks at no more than `sweep_limit` entries per tick (active
eviction), so a large table never stalls the event loop.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from itertools import islice
from typing import Generic, Optional, TypeVar, Union

from tempokit.config import CACHE_CLEANUP_INTERVAL_SECONDS, CACHE_SWEEP_LIMIT
from tempokit.core.clock import AsyncioClock
from tempokit.core.interfaces import Clock, TimerHandle

T = TypeVar("T")

CacheKey = Union[str, int]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    # Stores value + monotonic expiration time (None = never expires)
    value: T
    expires_at: Optional[float]

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class TTLCache(Generic[T]):
    """Key/value store with per-entry or cache-wide TTL.

    Key behavior:
      - get() never returns an expired value; it deletes it instead.
      - A one-shot timer re-armed after every sweep reclaims entries that are
        never read again. cleanup_interval_seconds <= 0 disables it.
      - The timer is a plain loop callback and never keeps the process alive.
    """

    def __init__(
        self,
        *,
        cleanup_interval_seconds: float = CACHE_CLEANUP_INTERVAL_SECONDS,
        sweep_limit: int = CACHE_SWEEP_LIMIT,
        default_ttl_seconds: Optional[float] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._interval = float(cleanup_interval_seconds)
        self._sweep_limit = max(1, int(sweep_limit))
        self._default_ttl = default_ttl_seconds
        self._clock: Clock = clock or AsyncioClock()
        self._store: "OrderedDict[CacheKey, CacheEntry[T]]" = OrderedDict()
        self._timer: Optional[TimerHandle] = None
        self._sweep_due = 0.0
        self._closed = False

        self._arm_sweep()

    @property
    def sweep_enabled(self) -> bool:
        return self._interval > 0 and not self._closed

    def get(self, key: CacheKey) -> Optional[T]:
        entry = self._live_entry(key)
        return None if entry is None else entry.value

    def set(self, key: CacheKey, value: T, ttl_seconds: Optional[float] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        # A ttl of 0 means "no expiry", same as omitting it
        expires_at = self._clock.now() + float(ttl) if ttl else None

        # Overwrites keep their slot in the sweep order
        self._store[key] = CacheEntry(value=value, expires_at=expires_at)

        if self._timer is None:
            self._arm_sweep()
        elif self._clock.now() > self._sweep_due:
            # Overdue: the handle is late or sits on an event loop that has closed
            self._clock.cancel(self._timer)
            self._on_sweep_timer()

    def remove(self, key: CacheKey) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def sweep(self) -> int:
        """Run one bounded eviction pass and return how many entries it removed.

        Examines at most sweep_limit entries from the front of the table.
        Live ones rotate to the back so the next pass continues where this
        one stopped.
        """
        if not self._store:
            return 0

        now = self._clock.now()
        removed = 0
        for key in list(islice(self._store.keys(), self._sweep_limit)):
            if self._store[key].expired(now):
                del self._store[key]
                removed += 1
            else:
                self._store.move_to_end(key, last=True)

        if removed:
            logger.debug("Cache sweep removed %d expired entries (%d left)", removed, len(self._store))
        return removed

    def close(self) -> None:
        """Cancel the periodic sweep; passive eviction keeps working."""
        self._closed = True
        if self._timer is not None:
            self._clock.cancel(self._timer)
            self._timer = None

    def __enter__(self) -> "TTLCache[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, int)):
            return False
        return self._live_entry(key) is not None

    def _live_entry(self, key: CacheKey) -> Optional[CacheEntry[T]]:
        entry = self._store.get(key)
        if entry is None:
            return None

        # Passive eviction: an expired entry is dropped by the read that finds it
        if entry.expired(self._clock.now()):
            del self._store[key]
            return None

        return entry

    # --- sweep scheduling ---

    def _arm_sweep(self) -> None:
        if not self.sweep_enabled:
            return
        try:
            self._timer = self._clock.after(self._interval, self._on_sweep_timer)
            self._sweep_due = self._clock.now() + self._interval
        except RuntimeError:
            # No running event loop yet; the first set() inside one arms it.
            logger.debug("No running event loop, cache sweep deferred")
            self._timer = None

    def _on_sweep_timer(self) -> None:
        self._timer = None
        self.sweep()
        self._arm_sweep()
