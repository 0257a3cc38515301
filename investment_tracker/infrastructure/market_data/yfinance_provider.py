"""
YFinance Quote Provider
Async-safe Yahoo Finance quotes through the yfinance library
"""

import asyncio
import logging
import random
import time
from typing import Dict, Optional

import yfinance as yf

from investment_tracker.domain.exceptions import MarketDataError
from investment_tracker.domain.models import Quote
from investment_tracker.domain.services.numeric import normalize

logger = logging.getLogger(__name__)


class YFinanceProvider:
    """
    Yahoo Finance quotes for exchange-suffixed symbols (RELIANCE.NS, TCS.BO, AAPL)
    Async-safe via thread offloading
    """

    def __init__(self, retries: int = 2, cache_ttl_seconds: int = 60):
        self.retries = retries
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cache: Dict[str, tuple[float, Quote]] = {}

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    async def _history(self, ticker: yf.Ticker, **kwargs):
        """
        Async-safe wrapper around yfinance history()
        """
        return await asyncio.to_thread(ticker.history, **kwargs)

    async def _history_with_retry(self, ticker: yf.Ticker, **kwargs):
        """
        Retry wrapper around history() to handle transient failures.
        """
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                return await self._history(ticker, **kwargs)
            except Exception as exc:
                last_exc = exc
                if attempt < self.retries:
                    await asyncio.sleep(0.4 * (2 ** attempt) + random.random() * 0.2)
        raise MarketDataError(f"yfinance history failed: {last_exc}") from last_exc

    def _cache_get(self, key: str) -> Optional[Quote]:
        cached = self._cache.get(key)
        if not cached:
            return None
        ts, value = cached
        if time.time() - ts > self.cache_ttl_seconds:
            return None
        return value

    def _cache_set(self, key: str, value: Quote) -> None:
        self._cache[key] = (time.time(), value)

    # ------------------------------------------------------------------
    # QUOTES
    # ------------------------------------------------------------------

    async def get_quote(self, symbol: str) -> Quote:
        """
        Latest daily close (EOD-safe for NSE, which often has no intraday bars)
        """
        cached = self._cache_get(symbol)
        if cached is not None:
            return cached

        ticker = yf.Ticker(symbol)
        hist = await self._history_with_retry(
            ticker,
            period="5d",
            interval="1d",
            auto_adjust=False,
        )

        if hist is None or hist.empty or "Close" not in hist:
            raise MarketDataError(f"No price data for {symbol}", symbol=symbol)

        closes = hist["Close"].dropna()
        if closes.empty:
            raise MarketDataError(f"No price data for {symbol}", symbol=symbol)

        close = normalize(closes.iloc[-1])
        if close <= 0:
            raise MarketDataError(f"No valid price data for {symbol}", symbol=symbol)

        stamp = closes.index[-1]
        as_of = stamp.date().isoformat() if hasattr(stamp, "date") else None

        quote = Quote(symbol=symbol, price=close, as_of=as_of)
        self._cache_set(symbol, quote)
        return quote
