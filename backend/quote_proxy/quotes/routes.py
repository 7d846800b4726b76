"""HTTP routes serving the quote cache."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .cache import FRESHNESS_WINDOW_MS, QuoteCache
from .interface import QuoteProvider

logger = logging.getLogger(__name__)

_PROCESS_START = time.monotonic()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_quotes_router(cache: QuoteCache, provider: QuoteProvider) -> APIRouter:
    """Create the /api router bound to a cache and an upstream provider.

    The router is built per application so that the cache and provider are
    injected rather than imported as globals.
    """
    router = APIRouter(prefix="/api", tags=["quotes"])

    @router.get("/quote")
    async def get_quote(symbol: str | None = None):
        """Serve one quote from cache if fresh, otherwise fetch it through.

        Any symbol is accepted, monitored or not.
        """
        if not symbol:
            return _error(400, "Symbol parameter is required")

        cached = cache.get_fresh(symbol, FRESHNESS_WINDOW_MS)
        if cached is not None:
            return cached.payload

        try:
            payload = await provider.fetch_quote(symbol)
            if payload is None:
                return _error(404, "Symbol data not available")
            cache.put(symbol, payload)
            return payload
        except Exception:
            logger.exception("Proxy error for %s", symbol)
            return _error(500, "Failed to fetch data")

    @router.get("/quotes")
    async def get_quotes():
        """Every cached payload, stale or fresh, with the last full refresh time."""
        return {"lastUpdated": cache.last_updated, "data": cache.snapshot()}

    @router.get("/status")
    async def get_status():
        return {
            "status": "online",
            "lastUpdated": cache.last_updated,
            "stocksTracked": len(cache),
            "uptime": time.monotonic() - _PROCESS_START,
        }

    return router
