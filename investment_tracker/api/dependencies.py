"""
Request-scoped accessors for the collaborators built at startup.
"""

from fastapi import Request

from investment_tracker.domain.services.holding_service import HoldingService
from investment_tracker.domain.services.reconciliation_engine import MarketDataReconciler
from investment_tracker.infrastructure.market_data.mfapi_client import MFApiClient
from investment_tracker.infrastructure.market_data.yahoo_client import YahooFinanceClient
from investment_tracker.infrastructure.persistence.json_store import JsonPortfolioStore


def get_store(request: Request) -> JsonPortfolioStore:
    return request.app.state.store


def get_reconciler(request: Request) -> MarketDataReconciler:
    return request.app.state.reconciler


def get_yahoo(request: Request) -> YahooFinanceClient:
    return request.app.state.yahoo


def get_mfapi(request: Request) -> MFApiClient:
    return request.app.state.mfapi


def get_holding_service(request: Request) -> HoldingService:
    return request.app.state.holding_service
