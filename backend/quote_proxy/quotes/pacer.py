"""Fixed-interval pacing for outbound upstream calls."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable


class FixedIntervalPacer:
    """Enforces a quiet gap of ``interval`` seconds after every paced call.

    Usage:
        async with pacer:
            payload = await provider.fetch_quote(symbol)

    The gap is measured from when the previous call *finished*, so a slow
    or timed-out call is still followed by the full delay. Calls through one
    pacer are serialised, so the spacing holds for any number of fetchers
    sharing the same upstream key. An interval of 0 disables pacing.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self._interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_release: float | None = None
        self._lock = asyncio.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    async def __aenter__(self) -> FixedIntervalPacer:
        await self._lock.acquire()
        try:
            if self._last_release is not None and self._interval > 0:
                remaining = self._last_release + self._interval - self._clock()
                if remaining > 0:
                    await self._sleep(remaining)
        except BaseException:
            self._lock.release()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        # Stamped whether the call succeeded or raised
        self._last_release = self._clock()
        self._lock.release()
