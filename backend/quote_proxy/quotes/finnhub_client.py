"""Finnhub REST client for single-symbol quotes."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .interface import QuoteProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://finnhub.io"
QUOTE_PATH = "/api/v1/quote"


class FinnhubClient(QuoteProvider):
    """QuoteProvider backed by Finnhub's GET /api/v1/quote endpoint.

    One request per symbol; the JSON body is returned exactly as received
    (keys such as ``c`` current price, ``pc`` previous close, ``t`` timestamp).

    Rate limits:
      - Free tier: 60 req/min per key. The bulk refresher paces its calls
        at 1.5s to stay under that with headroom for on-demand lookups.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport  # Tests inject httpx.MockTransport here
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        self._ensure_client()
        if not self._api_key:
            logger.warning("FINNHUB_API_KEY is not set; upstream requests will be rejected")

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def fetch_quote(self, symbol: str) -> dict[str, Any] | None:
        client = self._ensure_client()
        try:
            response = await client.get(
                QUOTE_PATH,
                params={"symbol": symbol, "token": self._api_key},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            # Don't re-raise: a failed symbol is skipped by every caller.
            # Common failures: 401 (bad key), 429 (rate limit), network errors.
            logger.error("Error fetching %s: %s", symbol, e)
            return None

        if not isinstance(payload, dict):
            logger.error("Error fetching %s: unexpected payload type %s", symbol, type(payload).__name__)
            return None
        return payload
