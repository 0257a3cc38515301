"""
CONSOLIDATION ENGINE
Merge purchase records of the same instrument into one position

RESPONSIBILITIES:
- Group raw holdings by instrument key (symbol / scheme name)
- Weighted-average cost basis across purchases
- Preserve every purchase as a transaction of its position

RULES:
✅ Output order = first occurrence in the input (never sorted)
✅ Invested amount carried forward unrounded across merges
✅ Latest holding wins for current price / change fields
❌ A placeholder name never replaces a real company name
"""

import logging
from typing import Dict, Iterable, List

from investment_tracker.domain.models import (
    ConsolidatedPortfolio,
    ConsolidatedPosition,
    HoldingKind,
    PortfolioAggregate,
    RawHolding,
    Transaction,
)
from investment_tracker.domain.services.numeric import normalize
from investment_tracker.domain.services import valuation

logger = logging.getLogger(__name__)


def holding_invested(holding: RawHolding) -> float:
    """
    Amount paid for one holding.

    Funds record what was actually paid (stamp duty and rounding make it
    differ from units * NAV); stocks are always quantity * purchase price.
    """
    quantity = normalize(holding.quantity)
    basis = normalize(holding.cost_basis)
    if holding.kind is HoldingKind.MUTUAL_FUND:
        recorded = normalize(holding.invested_amount)
        if recorded > 0:
            return recorded
    return quantity * basis


class ConsolidationEngine:
    """
    Consolidation Engine
    Same algorithm for stocks and funds; HoldingKind supplies the field names.
    """

    def consolidate(self, holdings: Iterable[RawHolding]) -> List[ConsolidatedPosition]:
        """
        Merge holdings sharing an instrument key.

        Args:
            holdings: Raw holdings of a single kind, in document order

        Returns:
            One position per instrument key, in first-seen order
        """
        positions: List[ConsolidatedPosition] = []
        index_by_key: Dict[str, int] = {}

        for holding in holdings:
            key = holding.instrument_key
            if key in index_by_key:
                self._merge(positions[index_by_key[key]], holding)
            else:
                index_by_key[key] = len(positions)
                positions.append(self._open(holding))

        return positions

    def consolidate_portfolio(self, portfolio: PortfolioAggregate) -> ConsolidatedPortfolio:
        consolidated = ConsolidatedPortfolio(
            stocks=self.consolidate(portfolio.stocks),
            mutual_funds=self.consolidate(portfolio.mutual_funds),
        )
        logger.debug(
            "Consolidated %d stock and %d fund holdings into %d + %d positions",
            len(portfolio.stocks),
            len(portfolio.mutual_funds),
            len(consolidated.stocks),
            len(consolidated.mutual_funds),
        )
        return consolidated

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    def _open(self, holding: RawHolding) -> ConsolidatedPosition:
        quantity = normalize(holding.quantity)
        price = normalize(holding.current_price)
        invested = holding_invested(holding)

        position = ConsolidatedPosition(
            kind=holding.kind,
            instrument_key=holding.instrument_key,
            display_name=holding.name,
            quantity=quantity,
            cost_basis=normalize(holding.cost_basis),
            invested_amount=invested,
            current_price=price,
            change=normalize(holding.change),
            change_percent=normalize(holding.change_percent),
            transactions=[self._transaction(holding)],
            raw_symbol=holding.raw_symbol,
            exchange=holding.exchange,
            scheme_code=holding.scheme_code,
            as_of=holding.as_of,
            error_flag=holding.error_flag is True,
        )
        self._revalue(position)
        return position

    def _merge(self, position: ConsolidatedPosition, holding: RawHolding) -> None:
        position.quantity += normalize(holding.quantity)
        position.invested_amount += holding_invested(holding)
        position.cost_basis = valuation.average_cost(position.invested_amount, position.quantity)

        # Last write wins; unset incoming values keep what the position has
        position.current_price = normalize(holding.current_price, position.current_price)
        position.change = normalize(holding.change, position.change)
        position.change_percent = normalize(holding.change_percent, position.change_percent)
        if holding.as_of:
            position.as_of = holding.as_of

        if not position.scheme_code and holding.scheme_code:
            position.scheme_code = holding.scheme_code
        if holding.error_flag is True:
            position.error_flag = True
        if not holding.has_placeholder_name():
            position.display_name = holding.display_name

        position.transactions.append(self._transaction(holding))
        self._revalue(position)

    def _transaction(self, holding: RawHolding) -> Transaction:
        return Transaction(
            id=holding.id,
            quantity=normalize(holding.quantity),
            cost_basis=normalize(holding.cost_basis),
            invested_amount=holding_invested(holding),
            purchase_date=holding.purchase_date,
        )

    def _revalue(self, position: ConsolidatedPosition) -> None:
        """Mark the position and all of its transactions to its current price."""
        price = position.current_price
        position.total_value = valuation.total_value(position.quantity, price)
        position.total_gain = valuation.total_gain(position.total_value, position.invested_amount)
        position.gain_percent = valuation.gain_percent(position.total_gain, position.invested_amount)

        for txn in position.transactions:
            txn.total_value = valuation.total_value(txn.quantity, price)
            txn.total_gain = valuation.total_gain(txn.total_value, txn.invested_amount)
            txn.gain_percent = valuation.gain_percent(txn.total_gain, txn.invested_amount)


def consolidate(holdings: Iterable[RawHolding]) -> List[ConsolidatedPosition]:
    return ConsolidationEngine().consolidate(holdings)


def consolidate_portfolio(portfolio: PortfolioAggregate) -> ConsolidatedPortfolio:
    return ConsolidationEngine().consolidate_portfolio(portfolio)
