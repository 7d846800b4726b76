"""Process configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from .quotes.finnhub_client import DEFAULT_BASE_URL


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class Settings:
    port: int = 3000
    host: str = "0.0.0.0"
    finnhub_api_key: str = ""
    finnhub_base_url: str = DEFAULT_BASE_URL
    finnhub_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> Settings:
        """Build settings from os.environ, loading a .env file first if present.

        Variables already set in the environment win over the .env file.
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        return cls(
            port=_env_int("PORT", 3000),
            host=os.environ.get("HOST", "0.0.0.0").strip() or "0.0.0.0",
            finnhub_api_key=os.environ.get("FINNHUB_API_KEY", "").strip(),
            finnhub_base_url=os.environ.get("FINNHUB_BASE_URL", "").strip() or DEFAULT_BASE_URL,
            finnhub_timeout=_env_float("FINNHUB_TIMEOUT", 10.0),
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
