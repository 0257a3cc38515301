"""
MARKET-DATA RECONCILER
Refresh stock prices and fund NAVs on the portfolio document

RESPONSIBILITIES:
- One quote / NAV lookup per holding, bounded by a timeout
- Resolve and memoize missing mutual fund scheme codes
- Recompute valuation fields from the fresh price

RULES (LOCKED):
❌ One holding's failure never touches another holding
❌ A failed holding keeps every valuation field it had
❌ Non-positive prices are failures, not data
✅ Failures surface only as priceError / navError flags
✅ Results applied in document order, whatever the completion order
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from investment_tracker.domain.models import (
    LookupFailure,
    LookupResult,
    PortfolioAggregate,
    PriceUpdate,
    RawHolding,
)
from investment_tracker.domain.services import valuation
from investment_tracker.domain.services.consolidation_engine import holding_invested
from investment_tracker.domain.services.numeric import normalize
from investment_tracker.infrastructure.market_data.types import FundCodeResolver, PriceProvider
from investment_tracker.utils.time import now_utc_iso, today_iso

logger = logging.getLogger(__name__)

Lookup = Callable[[RawHolding], Awaitable[Optional[LookupResult]]]


class MarketDataReconciler:
    """
    Market-Data Reconciler
    Folds per-holding lookup results into the portfolio aggregate
    """

    def __init__(
        self,
        price_provider: PriceProvider,
        fund_code_resolver: FundCodeResolver,
        quote_timeout: float = 10.0,
        nav_timeout: float = 5.0,
        search_timeout: float = 5.0,
        concurrency: int = 1,
    ):
        """
        Initialize reconciler

        Args:
            price_provider: Quote and NAV history source
            fund_code_resolver: Scheme-name search used to find missing scheme codes
            quote_timeout: Seconds allowed per stock quote
            nav_timeout: Seconds allowed per NAV history fetch
            search_timeout: Seconds allowed per scheme code search
            concurrency: Max lookups in flight (1 = strictly sequential)
        """
        self.price_provider = price_provider
        self.fund_code_resolver = fund_code_resolver
        self.quote_timeout = quote_timeout
        self.nav_timeout = nav_timeout
        self.search_timeout = search_timeout
        self.concurrency = max(1, int(concurrency))

    async def reconcile(self, portfolio: PortfolioAggregate) -> PortfolioAggregate:
        """
        Run one reconciliation pass over the whole portfolio.

        Mutates and returns ``portfolio``. Never raises for lookup failures;
        the caller persists the result.
        """
        logger.info(
            f"🔄 Refreshing {len(portfolio.stocks)} stocks and "
            f"{len(portfolio.mutual_funds)} mutual funds"
        )

        stock_results = await self._lookup_all(portfolio.stocks, self._lookup_stock)
        for holding, result in zip(portfolio.stocks, stock_results):
            if result is not None:
                self._apply_stock(holding, result)

        fund_results = await self._lookup_all(portfolio.mutual_funds, self._lookup_fund)
        for holding, result in zip(portfolio.mutual_funds, fund_results):
            if result is not None:
                self._apply_fund(holding, result)

        portfolio.last_updated = now_utc_iso()

        failed = portfolio.error_counts()
        logger.info(
            f"✅ Refresh complete | stock errors={failed['stocks']} "
            f"fund errors={failed['mutualFunds']}"
        )
        return portfolio

    # ------------------------------------------------------------------
    # SCHEDULING
    # ------------------------------------------------------------------

    async def _lookup_all(self, holdings: List[RawHolding], lookup: Lookup) -> List[Optional[LookupResult]]:
        async def guarded(holding: RawHolding) -> Optional[LookupResult]:
            try:
                return await lookup(holding)
            except Exception as e:
                logger.error(f"❌ Lookup failed for {holding.instrument_key}: {e}")
                return LookupFailure(str(e) or type(e).__name__)

        if self.concurrency == 1:
            return [await guarded(holding) for holding in holdings]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(holding: RawHolding) -> Optional[LookupResult]:
            async with semaphore:
                return await guarded(holding)

        # gather keeps input order, so results line up with holdings
        return list(await asyncio.gather(*(bounded(h) for h in holdings)))

    # ------------------------------------------------------------------
    # STOCKS
    # ------------------------------------------------------------------

    async def _lookup_stock(self, holding: RawHolding) -> Optional[LookupResult]:
        if not holding.instrument_key:
            return None

        symbol = holding.instrument_key
        try:
            symbol = self.price_provider.market_symbol(str(holding.instrument_key))
            logger.debug(f"Fetching price for: {symbol}")
            quote = await asyncio.wait_for(
                self.price_provider.get_quote(symbol),
                timeout=self.quote_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Price lookup timed out for {symbol}")
            return LookupFailure("timeout")
        except Exception as e:
            logger.error(f"❌ Error fetching price for {symbol}: {e}")
            return LookupFailure(str(e) or type(e).__name__)

        price = valuation.round_price(normalize(getattr(quote, "price", None)))
        if price <= 0:
            logger.warning(f"❌ No valid price data for {symbol}")
            return LookupFailure("non-positive price")

        return PriceUpdate(price=price, as_of=quote.as_of)

    def _apply_stock(self, holding: RawHolding, result: LookupResult) -> None:
        if isinstance(result, LookupFailure):
            holding.error_flag = True
            return

        quantity = normalize(holding.quantity)
        basis = normalize(holding.cost_basis)
        invested = holding_invested(holding)

        holding.current_price = result.price
        holding.change, holding.change_percent = valuation.change_and_percent(result.price, basis)
        holding.total_value = valuation.total_value(quantity, result.price)
        holding.total_gain = valuation.total_gain(holding.total_value, invested)
        holding.gain_percent = valuation.gain_percent(holding.total_gain, invested)
        holding.error_flag = False
        holding.as_of = today_iso()
        logger.info(
            f"✅ Updated {holding.instrument_key}: ₹{holding.current_price} "
            f"(change: {valuation.round_percent(holding.change_percent)}%)"
        )

    # ------------------------------------------------------------------
    # MUTUAL FUNDS
    # ------------------------------------------------------------------

    async def _lookup_fund(self, holding: RawHolding) -> Optional[LookupResult]:
        if not holding.instrument_key:
            return None

        resolved: Optional[str] = None
        code = holding.scheme_code
        if not code:
            resolved = await self._resolve_scheme_code(holding.instrument_key)
            code = resolved
        if not code:
            logger.warning(f"No scheme code found for {holding.instrument_key}")
            return LookupFailure("scheme code not found")

        try:
            history = await asyncio.wait_for(
                self.price_provider.get_fund_nav_history(code),
                timeout=self.nav_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ NAV lookup timed out for {holding.instrument_key}")
            return LookupFailure("timeout", scheme_code=resolved)
        except Exception as e:
            logger.error(f"❌ Error fetching NAV for {holding.instrument_key}: {e}")
            return LookupFailure(str(e) or type(e).__name__, scheme_code=resolved)

        if not history:
            logger.warning(f"Empty NAV history for {holding.instrument_key}")
            return LookupFailure("empty NAV history", scheme_code=resolved)

        latest = history[0]
        nav = valuation.round_price(normalize(latest.nav))
        if nav <= 0:
            logger.warning(f"No valid NAV data for {holding.instrument_key}")
            return LookupFailure("non-positive NAV", scheme_code=resolved)

        return PriceUpdate(price=nav, as_of=latest.date, scheme_code=resolved)

    async def _resolve_scheme_code(self, scheme_name: str) -> Optional[str]:
        """Scheme code of the search result whose name matches exactly (case-insensitive)."""
        logger.info(f"Searching for scheme code for: {scheme_name}")
        try:
            results = await asyncio.wait_for(
                self.fund_code_resolver.search(scheme_name),
                timeout=self.search_timeout,
            )
            wanted = str(scheme_name).lower()
            for fund in results or []:
                if str(fund.name or "").lower() == wanted and fund.code:
                    logger.info(f"Found scheme code {fund.code} for {scheme_name}")
                    return str(fund.code)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Scheme code search timed out for {scheme_name}")
        except Exception as e:
            logger.warning(f"Error searching for scheme code: {e}")
        return None

    def _apply_fund(self, holding: RawHolding, result: LookupResult) -> None:
        if result.scheme_code:
            holding.scheme_code = result.scheme_code

        if isinstance(result, LookupFailure):
            holding.error_flag = True
            return

        units = normalize(holding.quantity)
        basis = normalize(holding.cost_basis)
        invested = holding_invested(holding)

        holding.current_price = result.price
        holding.change, holding.change_percent = valuation.change_and_percent(result.price, basis)
        holding.total_value = valuation.total_value(units, result.price)
        holding.total_gain = valuation.total_gain(holding.total_value, invested)
        holding.gain_percent = valuation.gain_percent(holding.total_gain, invested)
        holding.error_flag = False
        if result.as_of:
            holding.as_of = result.as_of
        logger.info(f"✅ Updated {holding.instrument_key}: ₹{holding.current_price} ({holding.as_of})")


async def reconcile(
    portfolio: PortfolioAggregate,
    price_provider: PriceProvider,
    fund_code_resolver: FundCodeResolver,
    **options,
) -> PortfolioAggregate:
    """Run one reconciliation pass with a throwaway reconciler."""
    reconciler = MarketDataReconciler(price_provider, fund_code_resolver, **options)
    return await reconciler.reconcile(portfolio)
