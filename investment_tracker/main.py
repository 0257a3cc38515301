"""
FastAPI Main Application
Portfolio tracker API plus the static front end
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from investment_tracker.api.routes import health, portfolio, refresh, search
from investment_tracker.config import settings
from investment_tracker.core.logging import setup_logging
from investment_tracker.domain.services.holding_service import HoldingService
from investment_tracker.domain.services.reconciliation_engine import MarketDataReconciler
from investment_tracker.infrastructure.market_data.provider_factory import (
    get_market_data_gateway,
    get_yahoo_client,
)
from investment_tracker.infrastructure.persistence.json_store import JsonPortfolioStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Builds the store and market data collaborators once per process
    """
    setup_logging(settings.LOG_LEVEL)

    logger.info("=" * 60)
    logger.info("🚀 Starting Investment Tracker")
    logger.info("=" * 60)

    app.state.store = JsonPortfolioStore(settings.PORTFOLIO_FILE)
    logger.info(f"📂 Portfolio file: {settings.PORTFOLIO_FILE}")

    gateway = get_market_data_gateway(Path(settings.CONFIG_DIR))
    app.state.yahoo = get_yahoo_client()
    app.state.mfapi = gateway.funds
    app.state.holding_service = HoldingService()
    app.state.reconciler = MarketDataReconciler(
        price_provider=gateway,
        fund_code_resolver=gateway.funds,
        quote_timeout=settings.QUOTE_TIMEOUT_SECONDS,
        nav_timeout=settings.NAV_TIMEOUT_SECONDS,
        search_timeout=settings.SEARCH_TIMEOUT_SECONDS,
        concurrency=settings.REFRESH_CONCURRENCY,
    )
    logger.info(
        f"✅ Market data ready | suffix={gateway.default_suffix} "
        f"concurrency={settings.REFRESH_CONCURRENCY}"
    )
    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info("   ✅ Manual refresh via POST /api/refresh (auto-refresh disabled)")

    yield

    logger.info("👋 Investment Tracker shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Investment Tracker",
        description="Stock and mutual fund portfolio with consolidated positions",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(portfolio.router, prefix="/api", tags=["Portfolio"])
    app.include_router(search.router, prefix="/api", tags=["Search"])
    app.include_router(refresh.router, prefix="/api", tags=["Refresh"])

    # Mounted last so API routes take precedence over static paths
    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "investment_tracker.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
