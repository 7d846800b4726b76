"""FastAPI application for the quote proxy."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .config import Settings
from .middleware import SlidingWindowRateLimiter, install_middleware
from .quotes import (
    FinnhubClient,
    QuoteCache,
    QuoteProvider,
    QuoteRefresher,
    QuoteScheduler,
    create_quotes_router,
)

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Settings | None = None,
    *,
    cache: QuoteCache | None = None,
    provider: QuoteProvider | None = None,
    limiter: SlidingWindowRateLimiter | None = None,
    run_scheduler: bool = True,
) -> FastAPI:
    """Wire the cache, upstream provider, scheduler and routes into one app.

    Everything is constructed here and passed by reference, so tests can
    swap in a fake provider, a clock-controlled cache or a fresh limiter.
    """
    if settings is None:
        settings = Settings.from_env()
    if cache is None:
        cache = QuoteCache()
    if provider is None:
        provider = FinnhubClient(
            api_key=settings.finnhub_api_key,
            base_url=settings.finnhub_base_url,
            timeout=settings.finnhub_timeout,
        )
    scheduler = QuoteScheduler(QuoteRefresher(cache, provider))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await provider.start()
        if run_scheduler:
            await scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop()
            await provider.stop()

    app = FastAPI(title="Quote Proxy", lifespan=lifespan)
    app.state.cache = cache
    app.state.provider = provider
    app.state.scheduler = scheduler

    app.include_router(create_quotes_router(cache, provider))
    app.state.limiter = install_middleware(app, limiter)
    return app


def run() -> None:
    """Console entry point: read settings, configure logging, serve."""
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Proxy server running on port %d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
