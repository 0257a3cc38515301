"""
Manual market-data refresh.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from investment_tracker.api.dependencies import get_reconciler, get_store
from investment_tracker.domain.exceptions import PersistenceError
from investment_tracker.domain.schemas.portfolio import RefreshResponse
from investment_tracker.domain.services.reconciliation_engine import MarketDataReconciler
from investment_tracker.infrastructure.persistence.json_store import JsonPortfolioStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_portfolio(
    store: JsonPortfolioStore = Depends(get_store),
    reconciler: MarketDataReconciler = Depends(get_reconciler),
):
    """
    Re-price every holding and save the result.

    Individual lookup failures are recorded as error flags on the holdings
    and reported in the counts; they never fail the request.
    """
    try:
        async with store.transaction() as portfolio:
            await reconciler.reconcile(portfolio)
    except PersistenceError as e:
        logger.error(f"❌ Error refreshing portfolio: {e}")
        raise HTTPException(status_code=500, detail="Failed to refresh portfolio")

    return RefreshResponse(
        message="Portfolio refreshed successfully",
        last_updated=portfolio.last_updated,
        errors=portfolio.error_counts(),
    )
