# autoblog/domain/services/pacing.py
"""
Minimum spacing between successive catalog calls.

PA-API throttles (HTTP 429 TooManyRequests) above ~1 request/second per account.
A Pacer belongs to ONE call sequence (a paged search or a batched detail fetch);
there is no module-level lock, so concurrent unrelated sequences never wait on each other.
"""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Pacer:
    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = max(0.0, float(min_interval))
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self.total_waited = 0.0

    async def wait(self) -> float:
        """
        Call right before each outbound request. The first call returns
        immediately; later calls sleep only the part of the interval not
        already spent elsewhere. Returns the seconds slept.
        """
        waited = 0.0
        if self._last is not None:
            remaining = self.min_interval - (self._clock() - self._last)
            if remaining > 0:
                logger.debug("pacing sleep=%.3fs", remaining)
                await self._sleep(remaining)
                waited = remaining
        self._last = self._clock()
        self.total_waited += waited
        return waited


def backoff_delay(attempt: int, base: float, cap: float = 30.0) -> float:
    """Exponential backoff: base, base*2, base*4 ... capped."""
    return min(base * (2 ** attempt), cap)
