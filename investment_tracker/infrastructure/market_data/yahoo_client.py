"""
Yahoo Finance HTTP Client
Chart endpoint for quotes, search endpoint for symbols and company names
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from investment_tracker.domain.exceptions import MarketDataError
from investment_tracker.domain.models import Quote, StockSearchResult
from investment_tracker.domain.services.numeric import normalize
from investment_tracker.infrastructure.market_data.exchanges import get_exchange

logger = logging.getLogger(__name__)


class YahooFinanceClient:
    """
    Unauthenticated Yahoo Finance endpoints.

    Every request is a single attempt; callers decide how failures are handled.
    """

    # Yahoo rejects requests without a browser-like agent
    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        ),
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str = "https://query1.finance.yahoo.com",
        timeout: float = 10.0,
        search_timeout: float = 5.0,
        search_limit: int = 8,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.search_timeout = search_timeout
        self.search_limit = search_limit

    async def _request_json(
        self,
        url: str,
        params: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(headers=self.HEADERS, timeout=timeout or self.timeout) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise MarketDataError(f"Yahoo request failed: {exc}") from exc

        if response.status_code != 200:
            raise MarketDataError(f"Yahoo API {response.status_code} for {url}")
        try:
            return response.json()
        except ValueError as exc:
            raise MarketDataError(f"Yahoo returned invalid JSON for {url}") from exc

    # ------------------------------------------------------------------
    # QUOTES
    # ------------------------------------------------------------------

    async def get_quote(self, symbol: str) -> Quote:
        payload = await self._request_json(f"{self.base_url}/v8/finance/chart/{symbol}")

        try:
            meta = payload["chart"]["result"][0]["meta"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MarketDataError(f"Invalid response structure for {symbol}", symbol=symbol) from exc

        price = normalize(meta.get("regularMarketPrice"))
        if price <= 0:
            raise MarketDataError(f"No valid price data for {symbol}", symbol=symbol)

        as_of = None
        market_time = meta.get("regularMarketTime")
        if isinstance(market_time, (int, float)):
            as_of = datetime.fromtimestamp(market_time, tz=timezone.utc).date().isoformat()

        return Quote(symbol=symbol, price=price, as_of=as_of)

    # ------------------------------------------------------------------
    # SEARCH
    # ------------------------------------------------------------------

    async def _search_quotes(self, query: str) -> List[Dict[str, Any]]:
        payload = await self._request_json(
            f"{self.base_url}/v1/finance/search",
            params={"q": query},
            timeout=self.search_timeout,
        )
        quotes = payload.get("quotes") if isinstance(payload, dict) else None
        return [q for q in quotes or [] if isinstance(q, dict)]

    async def search_stocks(self, query: str, exchange: Optional[str] = None) -> List[StockSearchResult]:
        """
        Symbol suggestions, optionally restricted to one exchange.

        Exchange suffixes are stripped from the display symbol.
        """
        quotes = await self._search_quotes(query)
        venue = get_exchange(exchange)
        if venue is not None:
            quotes = [q for q in quotes if venue.matches(q.get("symbol") or "", q.get("exchange"))]

        suggestions: List[StockSearchResult] = []
        for quote in quotes[: self.search_limit]:
            symbol = quote.get("symbol") or ""
            display = venue.display_symbol(symbol) if venue is not None else symbol
            suggestions.append(
                StockSearchResult(
                    symbol=display,
                    name=quote.get("longname") or quote.get("shortname") or display,
                    full_symbol=symbol,
                    exchange=quote.get("exchange") or exchange,
                )
            )
        return suggestions

    async def get_company_name(self, symbol: str) -> Optional[str]:
        """Company long/short name for a symbol; None when nothing usable is found."""
        try:
            quotes = await self._search_quotes(symbol)
        except MarketDataError as e:
            logger.error(f"Error fetching company name for {symbol}: {e}")
            return None

        if not quotes:
            logger.info(f"No company name found for {symbol} in search results")
            return None

        exact = next((q for q in quotes if q.get("symbol") == symbol), None)
        for candidate in (exact, quotes[0]):
            if candidate and (candidate.get("longname") or candidate.get("shortname")):
                name = candidate.get("longname") or candidate.get("shortname")
                logger.info(f"Found company name for {symbol}: {name}")
                return name

        logger.info(f"No company name found for {symbol} in search results")
        return None
