"""
Shared call pacing for one enrichment run.

Every provider call acquires the limiter first; acquisitions are spaced at
least `min_interval_sec` apart regardless of how many coroutines are waiting.
"""

from __future__ import annotations

import asyncio
import time


class RateLimiter:
    """Simple token-bucket style: min interval between acquires."""

    def __init__(self, min_interval_sec: float) -> None:
        if min_interval_sec < 0:
            raise ValueError("min_interval_sec must be >= 0")
        self._interval = min_interval_sec
        self._last_acquire: float | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def per_second(cls, rate_per_sec: float) -> "RateLimiter":
        return cls(1.0 / rate_per_sec if rate_per_sec > 0 else 0.0)

    @property
    def interval(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        async with self._lock:
            if self._last_acquire is not None and self._interval > 0:
                elapsed = time.monotonic() - self._last_acquire
                if elapsed < self._interval:
                    await asyncio.sleep(self._interval - elapsed)
            self._last_acquire = time.monotonic()
