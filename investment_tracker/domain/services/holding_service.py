"""
HOLDING SERVICE
Add, edit and delete purchase records on the portfolio document

Operates on a loaded PortfolioAggregate; the caller owns load/save.
Display-name lookups are passed in by the caller.
"""

import asyncio
import logging
import re
import threading
import time
from typing import Optional

from investment_tracker.domain.exceptions import HoldingNotFoundError
from investment_tracker.domain.models import HoldingKind, PortfolioAggregate, RawHolding
from investment_tracker.domain.schemas.portfolio import (
    MutualFundCreate,
    MutualFundUpdate,
    StockCreate,
    StockUpdate,
)
from investment_tracker.domain.services import valuation
from investment_tracker.domain.services.consolidation_engine import holding_invested
from investment_tracker.domain.services.numeric import normalize
from investment_tracker.infrastructure.market_data.types import CompanyNameLookup
from investment_tracker.utils.time import today_display

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE = "NSE"

_SCHEME_CODE = re.compile(r"^\d+$")


def is_scheme_code(value: str) -> bool:
    return bool(_SCHEME_CODE.match(value or ""))


class HoldingIdGenerator:
    """
    Millisecond-timestamp ids, strictly increasing within the process.

    Ids sort in creation order and never repeat even when two holdings
    are added in the same millisecond.
    """

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            candidate = int(time.time() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


new_holding_id = HoldingIdGenerator()


class HoldingService:
    def __init__(self, id_factory=new_holding_id):
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # ADD
    # ------------------------------------------------------------------

    def add_stock(self, portfolio: PortfolioAggregate, request: StockCreate) -> RawHolding:
        """
        Append a stock purchase valued at its own purchase price.

        The company name starts as the entered symbol; a real name is
        filled in later by a name lookup.
        """
        quantity = normalize(request.quantity)
        price = normalize(request.purchase_price)
        raw_symbol = request.original_symbol or request.symbol

        holding = RawHolding(
            kind=HoldingKind.STOCK,
            id=self.id_factory(),
            instrument_key=request.symbol.upper(),
            raw_symbol=raw_symbol,
            display_name=raw_symbol,
            exchange=request.exchange or DEFAULT_EXCHANGE,
            quantity=quantity,
            cost_basis=price,
            purchase_date=request.purchase_date,
            current_price=price,
            change=0.0,
            change_percent=0.0,
            total_value=valuation.total_value(quantity, price),
            total_gain=0.0,
            gain_percent=0.0,
        )
        portfolio.stocks.append(holding)
        logger.info(f"➕ Added stock {holding.instrument_key} ({quantity} @ {price})")
        return holding

    def add_mutual_fund(
        self,
        portfolio: PortfolioAggregate,
        request: MutualFundCreate,
        scheme_name: Optional[str] = None,
    ) -> RawHolding:
        """
        Append a fund purchase.

        An all-digit ``scheme`` is a scheme code; ``scheme_name`` is its
        resolved name when the caller could look it up.
        """
        units = normalize(request.units)
        nav = normalize(request.purchase_nav)
        code = request.scheme if is_scheme_code(request.scheme) else None

        holding = RawHolding(
            kind=HoldingKind.MUTUAL_FUND,
            id=self.id_factory(),
            instrument_key=scheme_name or request.scheme,
            scheme_code=code,
            quantity=units,
            cost_basis=nav,
            invested_amount=normalize(request.invested_amount),
            purchase_date=request.purchase_date,
            current_price=nav,
            change=0.0,
            change_percent=0.0,
            total_value=valuation.total_value(units, nav),
            total_gain=0.0,
            gain_percent=0.0,
            as_of=today_display(),
        )
        portfolio.mutual_funds.append(holding)
        logger.info(f"➕ Added mutual fund {holding.instrument_key} ({units} units @ {nav})")
        return holding

    # ------------------------------------------------------------------
    # EDIT
    # ------------------------------------------------------------------

    def update_stock(
        self,
        portfolio: PortfolioAggregate,
        holding_id: str,
        request: StockUpdate,
        company_name: Optional[str] = None,
    ) -> RawHolding:
        holding = self._get(portfolio, holding_id, HoldingKind.STOCK)

        if request.symbol:
            holding.instrument_key = request.symbol.upper()
        holding.raw_symbol = request.original_symbol or holding.raw_symbol or holding.instrument_key
        holding.display_name = company_name or holding.display_name or holding.raw_symbol
        holding.exchange = request.exchange or holding.exchange or DEFAULT_EXCHANGE
        holding.quantity = normalize(request.quantity, normalize(holding.quantity))
        holding.cost_basis = normalize(request.purchase_price, normalize(holding.cost_basis))
        holding.purchase_date = request.purchase_date or holding.purchase_date

        self._revalue(holding)
        logger.info(f"✏️ Stock transaction {holding_id} updated")
        return holding

    def update_mutual_fund(
        self,
        portfolio: PortfolioAggregate,
        holding_id: str,
        request: MutualFundUpdate,
    ) -> RawHolding:
        holding = self._get(portfolio, holding_id, HoldingKind.MUTUAL_FUND)

        if request.scheme and request.scheme != holding.instrument_key:
            holding.instrument_key = request.scheme
            # Cached code belonged to the old scheme; next refresh resolves again
            holding.scheme_code = request.scheme if is_scheme_code(request.scheme) else None
        holding.quantity = normalize(request.units, normalize(holding.quantity))
        holding.cost_basis = normalize(request.purchase_nav, normalize(holding.cost_basis))
        holding.invested_amount = normalize(request.invested_amount, normalize(holding.invested_amount))
        holding.purchase_date = request.purchase_date or holding.purchase_date

        self._revalue(holding)
        logger.info(f"✏️ Mutual fund transaction {holding_id} updated")
        return holding

    def set_company_name(self, portfolio: PortfolioAggregate, holding_id: str, name: str) -> bool:
        """Store a looked-up company name; False when the holding is gone meanwhile."""
        located = portfolio.find(holding_id, HoldingKind.STOCK)
        if located is None:
            return False
        portfolio.stocks[located[1]].display_name = name
        return True

    async def fill_missing_company_names(
        self,
        portfolio: PortfolioAggregate,
        names: CompanyNameLookup,
        delay_seconds: float = 0.5,
    ) -> int:
        """
        Look up a company name for every stock that has none.

        Stocks the lookup cannot name fall back to their raw symbol.
        Lookups are spaced by ``delay_seconds`` to stay under search
        rate limits. Returns the number of stocks touched.
        """
        filled = 0
        for holding in portfolio.stocks:
            if holding.display_name:
                continue
            logger.info(f"🔎 Fetching company name for {holding.instrument_key}...")
            name = await names.get_company_name(holding.instrument_key)
            if name:
                holding.display_name = name
            else:
                holding.display_name = holding.raw_symbol or holding.instrument_key
                logger.info(f"No name found for {holding.instrument_key}, using symbol as fallback")
            filled += 1
            if delay_seconds > 0:
                await asyncio.sleep(delay_seconds)
        return filled

    # ------------------------------------------------------------------
    # DELETE
    # ------------------------------------------------------------------

    def delete(
        self,
        portfolio: PortfolioAggregate,
        holding_id: str,
        kind: Optional[HoldingKind] = None,
    ) -> RawHolding:
        """
        Remove a holding by id, from one variant or from either.

        Raises:
            HoldingNotFoundError: no such id; the portfolio is left untouched
        """
        located = portfolio.find(holding_id, kind)
        if located is None:
            raise HoldingNotFoundError(holding_id, kind.layout.label if kind else None)
        found_kind, index = located
        removed = portfolio.holdings(found_kind).pop(index)
        logger.info(f"🗑️ {found_kind.layout.label} transaction {holding_id} deleted")
        return removed

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    def _get(self, portfolio: PortfolioAggregate, holding_id: str, kind: HoldingKind) -> RawHolding:
        located = portfolio.find(holding_id, kind)
        if located is None:
            raise HoldingNotFoundError(holding_id, kind.layout.label)
        return portfolio.holdings(kind)[located[1]]

    def _revalue(self, holding: RawHolding) -> None:
        """Recompute valuation fields against the stored current price."""
        quantity = normalize(holding.quantity)
        basis = normalize(holding.cost_basis)
        price = normalize(holding.current_price)
        invested = holding_invested(holding)

        holding.change, holding.change_percent = valuation.change_and_percent(price, basis)
        holding.total_value = valuation.total_value(quantity, price)
        holding.total_gain = valuation.total_gain(holding.total_value, invested)
        holding.gain_percent = valuation.gain_percent(holding.total_gain, invested)
