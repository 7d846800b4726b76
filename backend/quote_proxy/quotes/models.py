"""Data models for cached quotes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CachedQuote:
    """The last successful upstream payload for one symbol.

    The payload is passed through to clients untouched; only the current
    price field ``c`` is ever read, and only for log lines. ``fetched_at``
    is stamped by QuoteCache from its own clock.
    """

    symbol: str
    payload: dict[str, Any]
    fetched_at: int  # Unix milliseconds

    @property
    def price(self) -> Any:
        """Current price reported by the upstream, if present."""
        return self.payload.get("c")

    def age_ms(self, now: int) -> int:
        return now - self.fetched_at

    def is_fresh(self, now: int, max_age_ms: int) -> bool:
        """True while the entry is strictly younger than ``max_age_ms``."""
        return self.age_ms(now) < max_age_ms
