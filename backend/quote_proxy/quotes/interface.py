"""Abstract interface for upstream quote providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class QuoteProvider(ABC):
    """Contract for upstream quote sources.

    A provider fetches one symbol at a time and never raises on upstream
    trouble: failures are logged and reported as ``None`` so that callers
    (the bulk refresher, the read-through route) can simply skip them.

    Lifecycle:
        provider = FinnhubClient(api_key)
        await provider.start()
        payload = await provider.fetch_quote("AAPL")
        # ... app runs ...
        await provider.stop()
    """

    async def start(self) -> None:
        """Acquire any network resources. Optional; the default is a no-op."""

    async def stop(self) -> None:
        """Release network resources. Safe to call multiple times."""

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> dict[str, Any] | None:
        """Return the upstream payload for ``symbol`` verbatim, or None on any failure."""
