"""
Portfolio API Routes
Raw and consolidated views plus holding add / edit / delete
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from investment_tracker.api.dependencies import (
    get_holding_service,
    get_mfapi,
    get_store,
    get_yahoo,
)
from investment_tracker.config import settings
from investment_tracker.domain.exceptions import HoldingNotFoundError, PersistenceError
from investment_tracker.domain.models import HoldingKind
from investment_tracker.domain.schemas.portfolio import (
    ConsolidatedPortfolioResponse,
    MessageResponse,
    MutualFundAddedResponse,
    MutualFundCreate,
    MutualFundUpdate,
    StockAddedResponse,
    StockCreate,
    StockUpdate,
)
from investment_tracker.domain.services.consolidation_engine import consolidate_portfolio
from investment_tracker.domain.services.holding_service import HoldingService, is_scheme_code
from investment_tracker.infrastructure.market_data.mfapi_client import MFApiClient
from investment_tracker.infrastructure.market_data.yahoo_client import YahooFinanceClient
from investment_tracker.infrastructure.persistence.json_store import JsonPortfolioStore

logger = logging.getLogger(__name__)
router = APIRouter()


async def _backfill_company_name(
    store: JsonPortfolioStore,
    yahoo: YahooFinanceClient,
    service: HoldingService,
    holding_id: str,
    symbol: str,
) -> None:
    """Runs after the add-stock response; failures only get logged."""
    name = await yahoo.get_company_name(symbol)
    if not name:
        return
    try:
        async with store.transaction() as portfolio:
            if service.set_company_name(portfolio, holding_id, name):
                logger.info(f"🏷️ Company name for {symbol} set to {name}")
    except PersistenceError as e:
        logger.error(f"❌ Error updating company name for {symbol}: {e}")


# ============================================================
# VIEWS
# ============================================================

@router.get("/portfolio")
async def get_portfolio(store: JsonPortfolioStore = Depends(get_store)) -> Dict[str, Any]:
    try:
        portfolio = await store.load()
    except PersistenceError as e:
        logger.error(f"❌ Error reading portfolio: {e}")
        raise HTTPException(status_code=500, detail="Failed to read portfolio data")
    return portfolio.to_dict()


@router.get("/portfolio/consolidated", response_model=ConsolidatedPortfolioResponse)
async def get_consolidated_portfolio(store: JsonPortfolioStore = Depends(get_store)):
    """One position per instrument, each listing the purchases it merges."""
    try:
        portfolio = await store.load()
    except PersistenceError as e:
        logger.error(f"❌ Error reading portfolio: {e}")
        raise HTTPException(status_code=500, detail="Failed to read portfolio data")
    return consolidate_portfolio(portfolio).to_dict()


# ============================================================
# ADD
# ============================================================

@router.post("/portfolio/stock", response_model=StockAddedResponse)
async def add_stock(
    request: StockCreate,
    background_tasks: BackgroundTasks,
    store: JsonPortfolioStore = Depends(get_store),
    yahoo: YahooFinanceClient = Depends(get_yahoo),
    service: HoldingService = Depends(get_holding_service),
):
    try:
        async with store.transaction() as portfolio:
            holding = service.add_stock(portfolio, request)
    except PersistenceError as e:
        logger.error(f"❌ Error adding stock: {e}")
        raise HTTPException(status_code=500, detail="Failed to add stock")

    background_tasks.add_task(
        _backfill_company_name, store, yahoo, service, holding.id, holding.instrument_key
    )
    return StockAddedResponse(message="Stock added successfully", stock=holding.to_dict())


@router.post("/portfolio/mutual-fund", response_model=MutualFundAddedResponse)
async def add_mutual_fund(
    request: MutualFundCreate,
    store: JsonPortfolioStore = Depends(get_store),
    mfapi: MFApiClient = Depends(get_mfapi),
    service: HoldingService = Depends(get_holding_service),
):
    scheme_name = None
    if is_scheme_code(request.scheme):
        scheme_name = await mfapi.get_scheme_name(request.scheme)

    try:
        async with store.transaction() as portfolio:
            holding = service.add_mutual_fund(portfolio, request, scheme_name=scheme_name)
    except PersistenceError as e:
        logger.error(f"❌ Error adding mutual fund: {e}")
        raise HTTPException(status_code=500, detail="Failed to add mutual fund")

    return MutualFundAddedResponse(
        message="Mutual fund added successfully",
        mutual_fund=holding.to_dict(),
    )


# ============================================================
# EDIT
# ============================================================

@router.put("/stocks/transaction/{holding_id}", response_model=MessageResponse)
async def update_stock(
    holding_id: str,
    request: StockUpdate,
    store: JsonPortfolioStore = Depends(get_store),
    yahoo: YahooFinanceClient = Depends(get_yahoo),
    service: HoldingService = Depends(get_holding_service),
):
    company_name = await yahoo.get_company_name(request.symbol) if request.symbol else None

    try:
        async with store.transaction() as portfolio:
            service.update_stock(portfolio, holding_id, request, company_name=company_name)
    except HoldingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Error updating stock transaction: {e}")
        raise HTTPException(status_code=500, detail="Failed to update stock transaction")

    return MessageResponse(message="Stock transaction updated successfully")


@router.put("/mutual-funds/transaction/{holding_id}", response_model=MessageResponse)
async def update_mutual_fund(
    holding_id: str,
    request: MutualFundUpdate,
    store: JsonPortfolioStore = Depends(get_store),
    service: HoldingService = Depends(get_holding_service),
):
    try:
        async with store.transaction() as portfolio:
            service.update_mutual_fund(portfolio, holding_id, request)
    except HoldingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Error updating mutual fund transaction: {e}")
        raise HTTPException(status_code=500, detail="Failed to update mutual fund transaction")

    return MessageResponse(message="Mutual fund transaction updated successfully")


@router.post("/update-company-names", response_model=MessageResponse)
async def update_company_names(
    store: JsonPortfolioStore = Depends(get_store),
    yahoo: YahooFinanceClient = Depends(get_yahoo),
    service: HoldingService = Depends(get_holding_service),
):
    try:
        async with store.transaction() as portfolio:
            filled = await service.fill_missing_company_names(
                portfolio, yahoo, delay_seconds=settings.NAME_LOOKUP_DELAY_SECONDS
            )
    except PersistenceError as e:
        logger.error(f"❌ Error updating company names: {e}")
        raise HTTPException(status_code=500, detail="Failed to update company names")

    logger.info(f"🏷️ Company names filled for {filled} stocks")
    return MessageResponse(message="Company names updated successfully")


# ============================================================
# DELETE
# ============================================================

async def _delete(
    store: JsonPortfolioStore,
    service: HoldingService,
    holding_id: str,
    kind: HoldingKind | None,
) -> None:
    try:
        async with store.transaction() as portfolio:
            service.delete(portfolio, holding_id, kind)
    except HoldingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error(f"❌ Error deleting transaction {holding_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete transaction")


@router.delete("/stocks/transaction/{holding_id}", response_model=MessageResponse)
async def delete_stock(
    holding_id: str,
    store: JsonPortfolioStore = Depends(get_store),
    service: HoldingService = Depends(get_holding_service),
):
    await _delete(store, service, holding_id, HoldingKind.STOCK)
    return MessageResponse(message="Stock transaction deleted successfully")


@router.delete("/mutual-funds/transaction/{holding_id}", response_model=MessageResponse)
async def delete_mutual_fund(
    holding_id: str,
    store: JsonPortfolioStore = Depends(get_store),
    service: HoldingService = Depends(get_holding_service),
):
    await _delete(store, service, holding_id, HoldingKind.MUTUAL_FUND)
    return MessageResponse(message="Mutual fund transaction deleted successfully")


@router.delete("/portfolio/transaction/{holding_id}", response_model=MessageResponse)
async def delete_transaction(
    holding_id: str,
    store: JsonPortfolioStore = Depends(get_store),
    service: HoldingService = Depends(get_holding_service),
):
    await _delete(store, service, holding_id, None)
    return MessageResponse(message="Transaction deleted successfully")
