"""
DOMAIN MODELS: MARKET DATA LOOKUPS

Value types exchanged with the external price, NAV and search collaborators,
and the per-item outcome of a reconciliation lookup.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    as_of: Optional[str] = None


@dataclass(frozen=True)
class NavEntry:
    nav: float
    date: str


@dataclass(frozen=True)
class FundSearchResult:
    code: str
    name: str
    house: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class StockSearchResult:
    symbol: str
    name: str
    full_symbol: str
    exchange: Optional[str] = None


@dataclass(frozen=True)
class PriceUpdate:
    """Successful lookup: a usable price (or NAV) and its market date."""
    price: float
    as_of: Optional[str] = None
    scheme_code: Optional[str] = None


@dataclass(frozen=True)
class LookupFailure:
    """
    Failed lookup for one holding.

    ``scheme_code`` is set when the fund code was resolved before the NAV
    fetch failed, so the resolution is still memoized on the holding.
    """
    reason: str
    scheme_code: Optional[str] = None


LookupResult = Union[PriceUpdate, LookupFailure]
