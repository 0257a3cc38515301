"""
Market data collaborator protocols for type hints.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from investment_tracker.domain.models import (
    FundSearchResult,
    NavEntry,
    Quote,
)


class QuoteProvider(Protocol):
    async def get_quote(self, symbol: str) -> Quote:
        ...


class PriceProvider(Protocol):
    def market_symbol(self, symbol: str) -> str:
        ...

    async def get_quote(self, symbol: str) -> Quote:
        ...

    async def get_fund_nav_history(self, scheme_code: str) -> List[NavEntry]:
        ...


class FundCodeResolver(Protocol):
    async def search(self, query: str) -> List[FundSearchResult]:
        ...


class CompanyNameLookup(Protocol):
    async def get_company_name(self, symbol: str) -> Optional[str]:
        ...
