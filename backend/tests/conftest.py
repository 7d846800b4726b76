"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from quote_proxy.quotes.interface import QuoteProvider


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(QuoteProvider):
    """In-memory QuoteProvider that records every call.

    ``quotes`` maps symbol to payload; symbols missing from it come back as
    None. Symbols listed in ``errors`` raise instead.
    """

    def __init__(self, quotes: dict[str, dict[str, Any]] | None = None) -> None:
        self.quotes: dict[str, dict[str, Any]] = dict(quotes or {})
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.started = False
        self.stopped = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def fetch_quote(self, symbol: str) -> dict[str, Any] | None:
        self.calls.append(symbol)
        if symbol in self.errors:
            raise self.errors[symbol]
        return self.quotes.get(symbol)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()
