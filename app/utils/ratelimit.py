# =============================================
# File: app/utils/ratelimit.py
# Purpose: In-memory per-shopper rate limiter for /chat (sliding window)
# =============================================
from __future__ import annotations
import os
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

_store: Dict[str, Deque[float]] = {}
_lock = threading.Lock()
_clock: Callable[[], float] = time.time


class RateLimitExceeded(RuntimeError):
    def __init__(self, key: str, retry_after: int) -> None:
        super().__init__(f"Rate limit exceeded for {key}")
        self.retry_after = retry_after


def _get_limits() -> tuple[int, int]:
    """Read limits at call time so tests/env overrides take effect."""
    max_reqs = int(os.getenv("RL_MAX_REQS", "30"))
    window_s = int(os.getenv("RL_WINDOW_SECONDS", "60"))
    return max_reqs, window_s


def check_rate_limit(key: str) -> None:
    """Record one request for `key`; raise RateLimitExceeded when the window is full."""
    max_reqs, window_s = _get_limits()
    now = _clock()
    with _lock:
        dq = _store.setdefault(key, deque())
        cutoff = now - window_s
        while dq and dq[0] <= cutoff:
            dq.popleft()
        if len(dq) >= max_reqs:
            retry_after = max(1, int(dq[0] + window_s - now))
            raise RateLimitExceeded(key, retry_after)
        dq.append(now)


def reset_rate_limit() -> None:
    """For tests: clear in-memory counters."""
    with _lock:
        _store.clear()
