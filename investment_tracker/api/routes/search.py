"""
Instrument search for the add-holding forms.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from investment_tracker.api.dependencies import get_mfapi, get_yahoo
from investment_tracker.domain.exceptions import MarketDataError
from investment_tracker.domain.schemas.portfolio import FundSuggestion, StockSuggestion
from investment_tracker.infrastructure.market_data.mfapi_client import MFApiClient
from investment_tracker.infrastructure.market_data.yahoo_client import YahooFinanceClient

logger = logging.getLogger(__name__)
router = APIRouter()

MIN_QUERY_LENGTH = 2


@router.get("/stock/search", response_model=List[StockSuggestion])
async def search_stocks(
    query: Optional[str] = None,
    exchange: Optional[str] = None,
    yahoo: YahooFinanceClient = Depends(get_yahoo),
):
    if not query or len(query) < MIN_QUERY_LENGTH:
        return []

    try:
        results = await yahoo.search_stocks(query, exchange=exchange)
    except MarketDataError as e:
        logger.error(f"❌ Stock search failed for {query!r}: {e}")
        raise HTTPException(status_code=500, detail="Failed to search stocks")

    return [
        StockSuggestion(
            symbol=r.symbol,
            name=r.name,
            full_symbol=r.full_symbol,
            exchange=r.exchange,
        )
        for r in results
    ]


@router.get("/mutual-fund/search", response_model=List[FundSuggestion])
async def search_mutual_funds(
    query: Optional[str] = None,
    mfapi: MFApiClient = Depends(get_mfapi),
):
    if not query or len(query) < MIN_QUERY_LENGTH:
        return []

    try:
        results = await mfapi.search_funds(query)
    except MarketDataError as e:
        logger.error(f"❌ Mutual fund search failed for {query!r}: {e}")
        raise HTTPException(status_code=500, detail="Failed to search mutual funds")

    return [
        FundSuggestion(
            scheme_code=r.code,
            scheme_name=r.name,
            fund_house=r.house,
            scheme_type=r.type,
        )
        for r in results
    ]
