"""
Domain Models Package
Export all domain entities
"""

from .holding import (
    FUND_LAYOUT,
    STOCK_LAYOUT,
    HoldingKind,
    HoldingLayout,
    RawHolding,
)
from .lookup import (
    FundSearchResult,
    LookupFailure,
    LookupResult,
    NavEntry,
    PriceUpdate,
    Quote,
    StockSearchResult,
)
from .portfolio import PortfolioAggregate
from .position import ConsolidatedPortfolio, ConsolidatedPosition, Transaction

__all__ = [
    # Holdings
    "FUND_LAYOUT",
    "STOCK_LAYOUT",
    "HoldingKind",
    "HoldingLayout",
    "RawHolding",
    "PortfolioAggregate",

    # Positions
    "ConsolidatedPortfolio",
    "ConsolidatedPosition",
    "Transaction",

    # Lookups
    "FundSearchResult",
    "LookupFailure",
    "LookupResult",
    "NavEntry",
    "PriceUpdate",
    "Quote",
    "StockSearchResult",
]
