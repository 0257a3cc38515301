"""
Provider chain - try primary, then fallbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from investment_tracker.domain.exceptions import MarketDataError
from investment_tracker.domain.models import NavEntry, Quote
from investment_tracker.infrastructure.market_data.mfapi_client import MFApiClient
from investment_tracker.infrastructure.market_data.types import QuoteProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamedProvider:
    name: str
    provider: QuoteProvider


class ChainedQuoteProvider:
    def __init__(self, providers: List[NamedProvider]):
        if not providers:
            raise ValueError("At least one quote provider is required")
        self.providers = providers

    async def get_quote(self, symbol: str) -> Quote:
        last_exc: Optional[Exception] = None
        for named in self.providers:
            try:
                quote = await named.provider.get_quote(symbol)
            except Exception as exc:
                logger.debug(f"{named.name} quote failed for {symbol}: {exc}")
                last_exc = exc
                continue
            if quote is not None and quote.price > 0:
                logger.debug(f"{named.name} served quote for {symbol}")
                return quote
        raise MarketDataError(f"All quote providers failed for {symbol}: {last_exc}", symbol=symbol)


class MarketDataGateway:
    """
    Price provider used by the reconciler.

    Combines stock quotes, fund NAV history and the market-suffix rule
    for bare symbols.
    """

    def __init__(self, quotes: QuoteProvider, funds: MFApiClient, default_suffix: str = ".NS"):
        self.quotes = quotes
        self.funds = funds
        self.default_suffix = default_suffix

    def market_symbol(self, symbol: str) -> str:
        """Append the default market suffix to symbols that carry no exchange suffix."""
        symbol = symbol.strip()
        if "." in symbol or symbol.startswith("^") or not self.default_suffix:
            return symbol
        return f"{symbol}{self.default_suffix}"

    async def get_quote(self, symbol: str) -> Quote:
        return await self.quotes.get_quote(symbol)

    async def get_fund_nav_history(self, scheme_code: str) -> List[NavEntry]:
        return await self.funds.get_fund_nav_history(scheme_code)
