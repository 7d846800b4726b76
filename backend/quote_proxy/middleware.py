"""Security headers, per-IP rate limiting and the CORS allow-list."""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

# Same set the Express ``helmet`` defaults produce
SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

ALLOWED_ORIGINS: frozenset[str] = frozenset(
    {
        "https://hw-invest.web.app",
        "https://hw-invest.firebaseapp.com",
    }
)
ALLOWED_HEADERS = "Origin, X-Requested-With, Content-Type, Accept, X-API-Key"

RATE_LIMIT_MAX = 100
RATE_LIMIT_WINDOW = 15 * 60.0  # seconds
RATE_LIMIT_PREFIX = "/api/"
RATE_LIMIT_MESSAGE = "Too many requests, please try again later"

CallNext = Callable[[Request], Awaitable[Response]]


class SlidingWindowRateLimiter:
    """Per-key sliding-window request counter.

    Keeps the timestamps of accepted hits for each key; a hit is accepted
    while fewer than ``max_requests`` fall inside the trailing window.
    Rejected hits are not recorded.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX,
        window: float = RATE_LIMIT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}

    def hit(self, key: str) -> tuple[bool, int, int]:
        """Record a hit for ``key``.

        Returns (allowed, remaining, reset_seconds) where reset_seconds is
        how long until the oldest counted hit leaves the window.
        """
        now = self._clock()
        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= now - self.window:
            hits.popleft()

        allowed = len(hits) < self.max_requests
        if allowed:
            hits.append(now)

        remaining = max(0, self.max_requests - len(hits))
        reset = math.ceil(hits[0] + self.window - now) if hits else math.ceil(self.window)
        return allowed, remaining, max(reset, 0)

    def prune(self) -> None:
        """Drop keys whose hits have all left the window."""
        cutoff = self._clock() - self.window
        for key in [k for k, v in self._hits.items() if not v or v[-1] <= cutoff]:
            del self._hits[key]

    def __len__(self) -> int:
        return len(self._hits)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def install_middleware(
    app: FastAPI, limiter: SlidingWindowRateLimiter | None = None
) -> SlidingWindowRateLimiter:
    """Register the middleware stack on ``app`` and return the limiter in use.

    Request order: security headers, then rate limit, then CORS.
    Starlette runs the most recently registered middleware first, so they
    are registered innermost first.
    """
    if limiter is None:
        limiter = SlidingWindowRateLimiter()

    @app.middleware("http")
    async def allow_headers_middleware(request: Request, call_next: CallNext) -> Response:
        # CORSMiddleware only advertises allowed headers on preflights
        response = await call_next(request)
        response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
        return response

    # Reflects Access-Control-Allow-Origin only for an exact allow-list match
    # and answers OPTIONS preflights before they reach the GET-only routes.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(ALLOWED_ORIGINS),
        allow_methods=["GET"],
        allow_headers=[h.strip() for h in ALLOWED_HEADERS.split(",")],
    )

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next: CallNext) -> Response:
        if not request.url.path.startswith(RATE_LIMIT_PREFIX):
            return await call_next(request)

        ip = _client_ip(request)
        allowed, remaining, reset = limiter.hit(ip)
        headers = {
            "RateLimit-Limit": str(limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset),
        }
        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", ip, request.url.path)
            headers["Retry-After"] = str(reset)
            return PlainTextResponse(RATE_LIMIT_MESSAGE, status_code=429, headers=headers)

        if len(limiter) > 8000:
            limiter.prune()

        response = await call_next(request)
        response.headers.update(headers)
        return response

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next: CallNext) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    return limiter
