"""Injectable rate limiter shared by queue worker tasks."""

import asyncio
import time
from typing import Awaitable, Callable

from rcmentions.logging import setup_logging

logger = setup_logging()


class RateLimiter:
    """Spaces operations at least ``1 / operations_per_second`` seconds apart.

    All worker tasks share one limiter. The lock is held for the whole wait
    so concurrent callers are released one at a time, in arrival order.

    Attributes:
        operations_per_second: Upper bound on acquisitions per second.
        acquired: Number of successful `acquire()` calls since the last reset.
    """

    def __init__(
        self,
        operations_per_second: float = 50,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if operations_per_second <= 0:
            raise ValueError("operations_per_second must be positive")
        self.operations_per_second = operations_per_second
        self.min_interval = 1.0 / operations_per_second
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock: asyncio.Lock | None = None
        self.acquired = 0

    def _get_lock(self) -> asyncio.Lock:
        """Lazy-init lock (must be created in event loop context)."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def get_delay(self) -> float:
        """Seconds to wait before the next operation may start (0 if none)."""
        if self._last is None:
            return 0.0
        return max(0.0, self.min_interval - (self._clock() - self._last))

    async def acquire(self) -> float:
        """Wait for a slot. Returns the delay actually applied, in seconds."""
        async with self._get_lock():
            delay = self.get_delay()
            if delay > 0:
                logger.debug(f"Rate limit: sleeping {delay:.3f}s")
                await self._sleep(delay)
            self._last = self._clock()
            self.acquired += 1
            return delay

    def reset(self) -> None:
        """Forget the last acquisition so the next call proceeds immediately."""
        self._last = None
        self.acquired = 0
