"""Quote subsystem for the proxy.

Public API:
    CachedQuote          - Immutable cached payload for one symbol
    QuoteCache           - In-memory symbol -> quote store
    QuoteProvider        - Abstract interface for upstream sources
    FinnhubClient        - Finnhub REST implementation of QuoteProvider
    FixedIntervalPacer   - Spaces outbound calls to respect upstream limits
    QuoteRefresher       - Bulk refresh pass over the monitored symbols
    QuoteScheduler       - Runs the refresher now and on a fixed interval
    MONITORED_SYMBOLS    - Tickers kept warm by the refresher
    create_quotes_router - FastAPI router factory for the /api routes
"""

from .cache import QuoteCache
from .finnhub_client import FinnhubClient
from .interface import QuoteProvider
from .models import CachedQuote
from .pacer import FixedIntervalPacer
from .refresher import QuoteRefresher, QuoteScheduler, RefreshResult
from .routes import create_quotes_router
from .symbols import MONITORED_SYMBOLS

__all__ = [
    "CachedQuote",
    "QuoteCache",
    "QuoteProvider",
    "FinnhubClient",
    "FixedIntervalPacer",
    "QuoteRefresher",
    "QuoteScheduler",
    "RefreshResult",
    "MONITORED_SYMBOLS",
    "create_quotes_router",
]
