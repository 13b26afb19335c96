"""
rate_limiter.py — pacing for sequential calls to rate-limited providers.

FixedIntervalPacer guarantees a minimum spacing between the *starts* of
consecutive calls: call `await pacer.wait()` right before each request.
The first call never waits; later calls wait only for whatever part of the
interval the previous request did not already use up.

Clock and sleep are injectable so tests run without real wall-clock waits.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class FixedIntervalPacer:

    def __init__(
        self,
        interval: float,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_start: Optional[float] = None

    async def wait(self) -> float:
        """Block until the next call may start. Returns the seconds slept."""
        now = self._clock()
        delay = 0.0
        if self._last_start is not None:
            delay = max(0.0, self._last_start + self.interval - now)
        if delay > 0:
            logger.debug("Pacing: sleeping %.3fs", delay)
            await self._sleep(delay)
        self._last_start = now + delay
        return delay

    def reset(self) -> None:
        self._last_start = None

