# src/cubit_connect/llm/rate_gate.py

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 2.0


class RateGate:
    """
    Minimum spacing between outbound model calls.

    A single flat interval (not a token bucket): every acquire() returns at
    least min_interval_seconds after the previous one returned. The lock makes
    the read-modify-write of the last-call timestamp atomic, so concurrent
    callers queue up behind each other instead of racing past the check.

    clock/sleep are injectable for tests.
    """

    def __init__(
        self,
        min_interval_seconds: float = MIN_INTERVAL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._interval = max(0.0, float(min_interval_seconds))
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    @property
    def min_interval_seconds(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                wait_s = self._interval - elapsed
                if wait_s > 0:
                    logger.debug("RateGate: waiting %.3fs", wait_s)
                    await self._sleep(wait_s)
            self._last_call = self._clock()


_default_gate: RateGate | None = None


def get_default_gate() -> RateGate:
    """
    Process-wide gate shared by every extractor built without an explicit one.

    Always uses MIN_INTERVAL_SECONDS; a configured interval needs its own RateGate.
    """
    global _default_gate
    if _default_gate is None:
        _default_gate = RateGate(MIN_INTERVAL_SECONDS)
    return _default_gate
