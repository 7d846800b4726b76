"""In-memory quote cache shared by the refresher and the HTTP routes."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from .models import CachedQuote

# Entries younger than this are served without contacting the upstream
FRESHNESS_WINDOW_MS = 3 * 60 * 1000


class QuoteCache:
    """Latest upstream payload per symbol, plus the time of the last full refresh.

    Writers: QuoteRefresher (bulk pass) and the /api/quote read-through path.
    Readers: the /api/quote, /api/quotes and /api/status routes.

    All access happens on the event loop thread, so single operations need
    no lock. Entries are overwritten in place and never evicted.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, CachedQuote] = {}
        self._last_updated: int = 0  # 0 until the first full pass completes

    def now_ms(self) -> int:
        """Current time in Unix milliseconds according to the cache clock."""
        return int(self._clock() * 1000)

    def put(self, symbol: str, payload: dict[str, Any]) -> CachedQuote:
        """Store a payload for a symbol, stamped with the current time."""
        entry = CachedQuote(symbol=symbol, payload=payload, fetched_at=self.now_ms())
        self._entries[symbol] = entry
        return entry

    def get(self, symbol: str) -> CachedQuote | None:
        """Plain lookup. Freshness is the caller's concern."""
        return self._entries.get(symbol)

    def get_fresh(self, symbol: str, max_age_ms: int = FRESHNESS_WINDOW_MS) -> CachedQuote | None:
        """Return the entry for a symbol only if it is younger than ``max_age_ms``."""
        entry = self._entries.get(symbol)
        if entry is None or not entry.is_fresh(self.now_ms(), max_age_ms):
            return None
        return entry

    def touch_last_updated(self) -> None:
        """Mark the end of a completed bulk refresh pass."""
        self._last_updated = self.now_ms()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Payload of every entry, stale or fresh, keyed by symbol."""
        return {symbol: entry.payload for symbol, entry in self._entries.items()}

    @property
    def last_updated(self) -> int:
        return self._last_updated

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._entries
