"""
DOMAIN MODELS: CONSOLIDATED POSITIONS

Aggregated view of every purchase of one instrument.
No market data fetching. No persistence.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from investment_tracker.domain.models.holding import HoldingKind
from investment_tracker.domain.services.valuation import round_percent


@dataclass
class Transaction:
    """
    One purchase inside a position.

    Value and gain are measured at the owning position's current price,
    so every transaction of a position is marked to the same market.
    """
    id: Optional[str]
    quantity: float
    cost_basis: float
    invested_amount: float
    purchase_date: Optional[str]
    total_value: float = 0.0
    total_gain: float = 0.0
    gain_percent: float = 0.0

    def to_dict(self, kind: HoldingKind) -> Dict[str, Any]:
        layout = kind.layout
        return {
            "id": self.id,
            layout.quantity: self.quantity,
            layout.cost_basis: self.cost_basis,
            "investedAmount": self.invested_amount,
            "purchaseDate": self.purchase_date,
            "totalValue": self.total_value,
            "totalGain": self.total_gain,
            "gainPercent": round_percent(self.gain_percent),
        }


@dataclass
class ConsolidatedPosition:
    """
    Aggregated position for a single instrument.

    Invariants:
    - quantity == sum(t.quantity for t in transactions)
    - cost_basis == invested_amount / quantity (0 when quantity is 0)
    - gain_percent == total_gain / invested_amount * 100 (0 when nothing invested)
    """
    kind: HoldingKind
    instrument_key: str
    display_name: str
    quantity: float = 0.0
    cost_basis: float = 0.0
    invested_amount: float = 0.0
    current_price: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    total_value: float = 0.0
    total_gain: float = 0.0
    gain_percent: float = 0.0
    transactions: List[Transaction] = field(default_factory=list)
    raw_symbol: Optional[str] = None
    exchange: Optional[str] = None
    scheme_code: Optional[str] = None
    as_of: Optional[str] = None
    error_flag: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Presentation form: document key names, percentages at 2 decimals."""
        layout = self.kind.layout
        data: Dict[str, Any] = {layout.instrument: self.instrument_key}
        if self.kind is HoldingKind.STOCK:
            data["originalSymbol"] = self.raw_symbol or self.instrument_key
            data["companyName"] = self.display_name
            data["exchange"] = self.exchange
        else:
            data["schemeCode"] = self.scheme_code
        data.update({
            layout.quantity: self.quantity,
            layout.cost_basis: self.cost_basis,
            "investedAmount": self.invested_amount,
            layout.current_price: self.current_price,
            "change": self.change,
            "changePercent": round_percent(self.change_percent),
            "totalValue": self.total_value,
            "totalGain": self.total_gain,
            "gainPercent": round_percent(self.gain_percent),
            layout.error_flag: self.error_flag,
            layout.as_of: self.as_of,
            "transactions": [t.to_dict(self.kind) for t in self.transactions],
        })
        return data


@dataclass
class ConsolidatedPortfolio:
    """Consolidated stocks and mutual funds, each in first-seen order."""
    stocks: List[ConsolidatedPosition] = field(default_factory=list)
    mutual_funds: List[ConsolidatedPosition] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stocks": [p.to_dict() for p in self.stocks],
            "mutualFunds": [p.to_dict() for p in self.mutual_funds],
        }
