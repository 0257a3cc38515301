"""
Market data provider factory (config-driven).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from investment_tracker.config import settings
from investment_tracker.infrastructure.market_data.mfapi_client import MFApiClient
from investment_tracker.infrastructure.market_data.provider_chain import (
    ChainedQuoteProvider,
    MarketDataGateway,
    NamedProvider,
)
from investment_tracker.infrastructure.market_data.types import QuoteProvider
from investment_tracker.infrastructure.market_data.yahoo_client import YahooFinanceClient
from investment_tracker.infrastructure.market_data.yfinance_provider import YFinanceProvider

logger = logging.getLogger(__name__)


def _load_app_config(config_dir: Optional[Path] = None) -> Dict:
    config_dir = Path(config_dir or settings.CONFIG_DIR)
    app_file = config_dir / "app.yml"
    if not app_file.exists():
        logger.info(f"No {app_file}; using default market data providers")
        return {}
    with open(app_file, "r") as f:
        data = yaml.safe_load(f) or {}
    return data.get("market_data", {}) or {}


def get_yahoo_client() -> YahooFinanceClient:
    return YahooFinanceClient(
        base_url=settings.YAHOO_BASE_URL,
        timeout=settings.QUOTE_TIMEOUT_SECONDS,
        search_timeout=settings.SEARCH_TIMEOUT_SECONDS,
        search_limit=settings.SEARCH_RESULT_LIMIT,
    )


def get_mfapi_client() -> MFApiClient:
    return MFApiClient(
        base_url=settings.MFAPI_BASE_URL,
        timeout=settings.NAV_TIMEOUT_SECONDS,
        search_limit=settings.SEARCH_RESULT_LIMIT,
    )


def _build_quote_provider(name: str, app_config: Dict) -> QuoteProvider:
    name = (name or "").lower()
    if name == "yfinance":
        return YFinanceProvider(
            retries=int(app_config.get("retries", 2)),
            cache_ttl_seconds=int(app_config.get("cache_ttl", 60)),
        )
    if name == "yahoo":
        return get_yahoo_client()
    raise ValueError(f"Unknown quote provider: {name}")


def get_quote_provider(app_config: Dict) -> QuoteProvider:
    provider_name = app_config.get("provider", "yahoo")
    fallback_names = app_config.get("fallback_providers", []) or []

    providers: List[NamedProvider] = []
    for name in [provider_name, *fallback_names]:
        if not name or any(p.name == name.lower() for p in providers):
            continue
        try:
            providers.append(NamedProvider(name.lower(), _build_quote_provider(name, app_config)))
        except ValueError as e:
            logger.warning(f"Skipping quote provider: {e}")

    if not providers:
        raise RuntimeError("No valid quote providers configured")
    if len(providers) == 1:
        return providers[0].provider
    return ChainedQuoteProvider(providers)


def get_market_data_gateway(config_dir: Optional[Path] = None) -> MarketDataGateway:
    app_config = _load_app_config(config_dir)
    return MarketDataGateway(
        quotes=get_quote_provider(app_config),
        funds=get_mfapi_client(),
        default_suffix=app_config.get("default_suffix", settings.DEFAULT_MARKET_SUFFIX),
    )
