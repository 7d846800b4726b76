"""Bulk refresh of the monitored symbols and the timer that drives it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .cache import QuoteCache
from .interface import QuoteProvider
from .pacer import FixedIntervalPacer
from .symbols import MONITORED_SYMBOLS

logger = logging.getLogger(__name__)

# Spacing between upstream calls during a pass (Finnhub free tier: 60/min)
DEFAULT_REQUEST_DELAY = 1.5
DEFAULT_REFRESH_INTERVAL = 3 * 60.0


@dataclass(slots=True)
class RefreshResult:
    """Outcome of one pass: which symbols were written and which were skipped."""

    updated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class QuoteRefresher:
    """Walks the monitored symbols one at a time and writes hits into the cache.

    A failure on one symbol is logged and skipped; it never aborts the pass,
    and the previous cache entry for that symbol is left as it was.
    """

    def __init__(
        self,
        cache: QuoteCache,
        provider: QuoteProvider,
        symbols: Sequence[str] = MONITORED_SYMBOLS,
        pacer: FixedIntervalPacer | None = None,
    ) -> None:
        self._cache = cache
        self._provider = provider
        self._symbols = tuple(symbols)
        if pacer is None:
            pacer = FixedIntervalPacer(DEFAULT_REQUEST_DELAY)
        self._pacer = pacer

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    async def refresh_all(self) -> RefreshResult:
        """Fetch every symbol in order, then stamp the cache's last_updated."""
        logger.info("Updating stock data from Finnhub (%d symbols)...", len(self._symbols))
        result = RefreshResult()

        for symbol in self._symbols:
            # The full delay follows every call, whatever its outcome or duration
            try:
                async with self._pacer:
                    payload = await self._provider.fetch_quote(symbol)
            except Exception:
                logger.exception("Failed to update %s", symbol)
                result.failed.append(symbol)
                continue

            if payload is None:
                result.failed.append(symbol)
                continue

            entry = self._cache.put(symbol, payload)
            result.updated.append(symbol)
            logger.info("Updated %s: $%s", symbol, entry.price)

        self._cache.touch_last_updated()
        logger.info(
            "Stock update completed: %d updated, %d failed",
            len(result.updated),
            len(result.failed),
        )
        return result


class QuoteScheduler:
    """Runs a refresh pass at start and then on a fixed interval.

    Passes never overlap: a tick that fires while the previous pass is still
    in flight is skipped, and the cadence is not shifted.
    """

    def __init__(
        self,
        refresher: QuoteRefresher,
        interval: float = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        self._refresher = refresher
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._pass: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Begin the timer. The first pass is launched immediately."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="quote-refresh-timer")
        logger.info("Quote scheduler started: %.1fs interval", self._interval)

    async def stop(self) -> None:
        for task in (self._task, self._pass):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._task = None
        self._pass = None
        logger.info("Quote scheduler stopped")

    # --- Internal ---

    async def _run_loop(self) -> None:
        while True:
            self._launch_pass()
            await asyncio.sleep(self._interval)

    def _launch_pass(self) -> None:
        if self._pass is not None and not self._pass.done():
            logger.warning("Previous refresh pass still running; skipping this tick")
            return
        self._pass = asyncio.create_task(self._run_pass(), name="quote-refresh-pass")

    async def _run_pass(self) -> None:
        try:
            await self._refresher.refresh_all()
        except Exception:
            # Keep the timer alive; the next tick will try again.
            logger.exception("Refresh pass failed")
