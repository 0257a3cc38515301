import asyncio
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from investment_tracker.api.routes import health, portfolio, refresh, search
from investment_tracker.config import settings
from investment_tracker.domain.exceptions import MarketDataError
from investment_tracker.domain.models import (
    FundSearchResult,
    HoldingKind,
    NavEntry,
    Quote,
    RawHolding,
    StockSearchResult,
)
from investment_tracker.domain.services.holding_service import HoldingService
from investment_tracker.domain.services.reconciliation_engine import MarketDataReconciler
from investment_tracker.infrastructure.market_data.provider_chain import MarketDataGateway
from investment_tracker.infrastructure.persistence.json_store import JsonPortfolioStore


class StubQuotes:
    """Quote source keyed by full market symbol; values may be prices or exceptions."""

    def __init__(self, prices: Optional[Dict] = None, delays: Optional[Dict[str, float]] = None):
        self.prices = dict(prices or {})
        self.delays = dict(delays or {})
        self.calls: List[str] = []

    async def get_quote(self, symbol: str) -> Quote:
        self.calls.append(symbol)
        if symbol in self.delays:
            await asyncio.sleep(self.delays[symbol])
        value = self.prices.get(symbol)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise MarketDataError(f"No price data for {symbol}", symbol=symbol)
        return Quote(symbol=symbol, price=value, as_of="2026-10-16")


class StubFunds:
    """NAV history by scheme code plus a fixed search catalog."""

    def __init__(
        self,
        navs: Optional[Dict] = None,
        catalog: Optional[List[FundSearchResult]] = None,
        names: Optional[Dict[str, str]] = None,
    ):
        self.navs = dict(navs or {})
        self.catalog = list(catalog or [])
        self.names = dict(names or {})
        self.nav_calls: List[str] = []
        self.search_calls: List[str] = []

    async def get_fund_nav_history(self, scheme_code: str) -> List[NavEntry]:
        self.nav_calls.append(scheme_code)
        value = self.navs.get(scheme_code)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise MarketDataError(f"No NAV data for scheme {scheme_code}", symbol=scheme_code)
        return value

    async def search(self, query: str) -> List[FundSearchResult]:
        self.search_calls.append(query)
        return [f for f in self.catalog if query.lower() in f.name.lower()]

    async def search_funds(self, query: str) -> List[FundSearchResult]:
        return (await self.search(query))[:8]

    async def get_scheme_name(self, scheme_code: str) -> Optional[str]:
        return self.names.get(scheme_code)


class StubYahoo:
    def __init__(self, names: Optional[Dict[str, str]] = None, suggestions: Optional[List[StockSearchResult]] = None):
        self.names = dict(names or {})
        self.suggestions = list(suggestions or [])
        self.name_calls: List[str] = []

    async def get_company_name(self, symbol: str) -> Optional[str]:
        self.name_calls.append(symbol)
        return self.names.get(symbol)

    async def search_stocks(self, query: str, exchange: Optional[str] = None) -> List[StockSearchResult]:
        return list(self.suggestions)


def make_stock(id, symbol, quantity, price, current=None, **kwargs) -> RawHolding:
    return RawHolding(
        kind=HoldingKind.STOCK,
        id=id,
        instrument_key=symbol,
        quantity=quantity,
        cost_basis=price,
        current_price=price if current is None else current,
        **kwargs,
    )


def make_fund(id, scheme, units, nav, current=None, **kwargs) -> RawHolding:
    return RawHolding(
        kind=HoldingKind.MUTUAL_FUND,
        id=id,
        instrument_key=scheme,
        quantity=units,
        cost_basis=nav,
        current_price=nav if current is None else current,
        **kwargs,
    )


@pytest.fixture()
def stock_factory():
    return make_stock


@pytest.fixture()
def fund_factory():
    return make_fund


@pytest.fixture()
def stub_quotes() -> StubQuotes:
    return StubQuotes({"RELIANCE.NS": 2600.0, "TCS.NS": 3900.5})


@pytest.fixture()
def stub_funds() -> StubFunds:
    return StubFunds(
        navs={"120503": [NavEntry(nav=61.2345, date="16-10-2026"), NavEntry(nav=60.9, date="15-10-2026")]},
        catalog=[
            FundSearchResult(code="120503", name="Axis Bluechip Fund - Direct Plan - Growth", house="Axis"),
            FundSearchResult(code="120504", name="Axis Bluechip Fund - Direct Plan - IDCW", house="Axis"),
        ],
        names={"120503": "Axis Bluechip Fund - Direct Plan - Growth"},
    )


@pytest.fixture()
def stub_yahoo() -> StubYahoo:
    return StubYahoo(
        names={"RELIANCE": "Reliance Industries Limited"},
        suggestions=[
            StockSearchResult(symbol="RELIANCE", name="Reliance Industries Limited", full_symbol="RELIANCE.NS", exchange="NSI"),
        ],
    )


@pytest.fixture()
def gateway(stub_quotes, stub_funds) -> MarketDataGateway:
    return MarketDataGateway(quotes=stub_quotes, funds=stub_funds, default_suffix=".NS")


@pytest.fixture()
def reconciler(gateway, stub_funds) -> MarketDataReconciler:
    return MarketDataReconciler(
        price_provider=gateway,
        fund_code_resolver=stub_funds,
        quote_timeout=1.0,
        nav_timeout=1.0,
        search_timeout=1.0,
    )


@pytest.fixture()
def store(tmp_path) -> JsonPortfolioStore:
    return JsonPortfolioStore(tmp_path / "data" / "portfolio.json")


@pytest.fixture()
async def app(store, reconciler, stub_yahoo, stub_funds, monkeypatch) -> FastAPI:
    monkeypatch.setattr(settings, "NAME_LOOKUP_DELAY_SECONDS", 0.0)

    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(portfolio.router, prefix="/api", tags=["Portfolio"])
    app.include_router(search.router, prefix="/api", tags=["Search"])
    app.include_router(refresh.router, prefix="/api", tags=["Refresh"])

    app.state.store = store
    app.state.reconciler = reconciler
    app.state.yahoo = stub_yahoo
    app.state.mfapi = stub_funds
    app.state.holding_service = HoldingService()
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
