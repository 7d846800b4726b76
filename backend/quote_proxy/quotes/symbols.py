"""Tickers kept warm by the bulk refresher."""

# Refreshed in this order every pass. The /api/quote route is not limited
# to these; anything else is fetched on demand.
MONITORED_SYMBOLS: tuple[str, ...] = (
    "AAPL", "MSFT", "AMZN", "GOOGL", "META",
    "TSLA", "NVDA", "JPM", "JNJ", "V",
    "WMT", "KO", "PG", "NFLX", "DIS",
    "PFE", "INTC", "MA", "UNH", "VZ",
    "AMD", "PYPL", "ADBE", "CRM", "BA",
    "GE", "SBUX", "MCD", "ABNB", "UBER",
    "COST", "TGT", "F", "NKE", "T",
)  # fmt: skip
