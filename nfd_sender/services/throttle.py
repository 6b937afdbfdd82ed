"""
Throttle gate for outbound NFD API calls.

One gate is shared by every caller in the batch. Each acquire() waits until
the shared "next allowed" cursor, then pushes the cursor forward by the
minimum interval. The lock serializes callers on the cursor.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class ThrottleGate:
    """
    Minimum-interval rate limiter shared across all callers.

    min_interval=0.2 gives roughly 300 calls per minute.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._next_allowed: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    async def acquire(self) -> None:
        """Wait until a call is allowed and reserve the slot."""
        async with self._lock:
            now = self._clock()
            if self._next_allowed is not None and now < self._next_allowed:
                delay = self._next_allowed - now
                logger.debug(f"Throttle: waiting {delay:.3f}s")
                await self._sleep(delay)
                now = max(self._clock(), self._next_allowed)
            self._next_allowed = now + self._min_interval

    async def __aenter__(self) -> "ThrottleGate":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None
