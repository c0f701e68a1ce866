"""Configuration and environment helpers for the toolkit.

Provides small helpers to read typed environment variables and exposes
the defaults used by the cache, retry and random helpers (sweep interval
and limit, retry budget and jitter, reroll cap).
"""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Cache active eviction (<= 0 interval disables the periodic sweep)
CACHE_CLEANUP_INTERVAL_SECONDS = _env_float("TEMPOKIT_CACHE_CLEANUP_INTERVAL", 60.0)
CACHE_SWEEP_LIMIT = _env_int("TEMPOKIT_CACHE_SWEEP_LIMIT", 20)

# Retry / backoff
RETRY_MAX_RETRIES = _env_int("TEMPOKIT_RETRY_RETRIES", 3)
RETRY_INITIAL_DELAY_SECONDS = _env_float("TEMPOKIT_RETRY_DELAY", 0.5)
RETRY_MAX_JITTER_SECONDS = _env_float("TEMPOKIT_RETRY_MAX_JITTER", 0.2)

# Random helpers
RND_MAX_REROLLS = _env_int("TEMPOKIT_RND_MAX_REROLLS", 10)
