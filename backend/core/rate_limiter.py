"""
Outbound rate limiting for the external media index.

One RateLimiter is shared by every caller in the process. Each permitted call
is at least ``min_interval`` seconds after the previous one; there is no burst
allowance. Waiting callers sleep rather than spin.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 0.2


class RateLimiter:
    """Spaces outbound calls a fixed minimum interval apart."""

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            min_interval: Minimum seconds between two permitted calls
            clock: Monotonic time source (injectable for tests)
            sleep: Async sleep function (injectable for tests)
        """
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Suspend until the next call is permitted, then claim the slot."""
        async with self._lock:
            if self._last_call is not None:
                while True:
                    elapsed = self._clock() - self._last_call
                    if elapsed >= self.min_interval:
                        break
                    delay = self.min_interval - elapsed
                    logger.debug(f"Rate limited, sleeping {delay:.3f}s")
                    await self._sleep(delay)
            self._last_call = self._clock()

    @property
    def last_call(self) -> Optional[float]:
        return self._last_call
