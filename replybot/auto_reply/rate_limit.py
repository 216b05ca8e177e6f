"""Global spacing between backend calls."""

import asyncio
import time
from typing import Awaitable, Callable

from loguru import logger

DEFAULT_MIN_INTERVAL = 10.0


class RateLimiter:
    """
    Enforces one minimum interval between dispatches across ALL chats.

    This protects a shared, quota-limited backend; it is coarse global
    throttling, not per-chat fairness. Only the dispatch worker calls
    ``acquire``, so no lock is needed.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_dispatch: float | None = None
        self._total_wait = 0.0

    async def acquire(self) -> None:
        """Wait until the interval since the last dispatch has elapsed."""
        if self._last_dispatch is not None:
            wait = self._last_dispatch + self.min_interval - self._clock()
            if wait > 0:
                logger.debug(f"Rate limiter waiting {wait:.2f}s before next dispatch")
                self._total_wait += wait
                await self._sleep(wait)
        self._last_dispatch = self._clock()

    @property
    def last_dispatch(self) -> float | None:
        return self._last_dispatch

    def get_stats(self) -> dict[str, float | None]:
        return {
            "min_interval": self.min_interval,
            "last_dispatch": self._last_dispatch,
            "total_wait_seconds": round(self._total_wait, 3),
        }
