"""
DOMAIN MODELS: RAW HOLDINGS

One stored purchase record, exactly as it lives in the portfolio document.
Stocks and mutual funds share the same shape under different key names;
HoldingKind carries the mapping so the engines stay variant-agnostic.

Numeric attributes are left untyped on purpose: documents edited by hand or
written by older versions may contain strings or nulls, and only the
Numeric Normalizer turns them into arithmetic input.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class HoldingLayout:
    """Document key names for one holding variant."""
    label: str
    instrument: str
    quantity: str
    cost_basis: str
    current_price: str
    error_flag: str
    as_of: str
    # (attribute, document key, always written)
    keys: Tuple[Tuple[str, str, bool], ...]


STOCK_LAYOUT = HoldingLayout(
    label="Stock",
    instrument="symbol",
    quantity="quantity",
    cost_basis="purchasePrice",
    current_price="currentPrice",
    error_flag="priceError",
    as_of="lastUpdated",
    keys=(
        ("id", "id", True),
        ("instrument_key", "symbol", True),
        ("raw_symbol", "originalSymbol", False),
        ("display_name", "companyName", False),
        ("exchange", "exchange", False),
        ("quantity", "quantity", True),
        ("cost_basis", "purchasePrice", True),
        ("purchase_date", "purchaseDate", False),
        ("current_price", "currentPrice", True),
        ("change", "change", True),
        ("change_percent", "changePercent", True),
        ("total_value", "totalValue", True),
        ("total_gain", "totalGain", True),
        ("gain_percent", "gainPercent", True),
        ("error_flag", "priceError", False),
        ("as_of", "lastUpdated", False),
    ),
)

FUND_LAYOUT = HoldingLayout(
    label="Mutual fund",
    instrument="scheme",
    quantity="units",
    cost_basis="purchaseNAV",
    current_price="currentNAV",
    error_flag="navError",
    as_of="navDate",
    keys=(
        ("id", "id", True),
        ("instrument_key", "scheme", True),
        ("scheme_code", "schemeCode", True),
        ("quantity", "units", True),
        ("cost_basis", "purchaseNAV", True),
        ("invested_amount", "investedAmount", True),
        ("purchase_date", "purchaseDate", False),
        ("current_price", "currentNAV", True),
        ("change", "change", True),
        ("change_percent", "changePercent", True),
        ("total_value", "totalValue", True),
        ("total_gain", "totalGain", True),
        ("gain_percent", "gainPercent", True),
        ("error_flag", "navError", False),
        ("as_of", "navDate", False),
    ),
)


def _as_flag(value: Any) -> bool:
    # Hand-edited documents may carry "false" / "true" as text
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


class HoldingKind(str, Enum):
    """Holding variant"""
    STOCK = "stock"
    MUTUAL_FUND = "mutual_fund"

    @property
    def layout(self) -> HoldingLayout:
        return STOCK_LAYOUT if self is HoldingKind.STOCK else FUND_LAYOUT


@dataclass
class RawHolding:
    """A single purchase record (stock or mutual fund)."""
    kind: HoldingKind
    id: Optional[str] = None
    instrument_key: Optional[str] = None
    quantity: Any = None
    cost_basis: Any = None
    purchase_date: Optional[str] = None
    current_price: Any = None
    change: Any = None
    change_percent: Any = None
    total_value: Any = None
    total_gain: Any = None
    gain_percent: Any = None
    invested_amount: Any = None
    display_name: Optional[str] = None
    raw_symbol: Optional[str] = None
    exchange: Optional[str] = None
    scheme_code: Optional[str] = None
    error_flag: Optional[bool] = None
    as_of: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def layout(self) -> HoldingLayout:
        return self.kind.layout

    @property
    def name(self) -> str:
        """Best available label: display name, raw symbol, then the key itself."""
        return self.display_name or self.raw_symbol or self.instrument_key or ""

    def has_placeholder_name(self) -> bool:
        """
        True when the display name is missing or just echoes a symbol.

        A placeholder must never replace a real company name during merges.
        """
        if not self.display_name:
            return True
        return self.display_name in (self.instrument_key, self.raw_symbol)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], kind: HoldingKind) -> "RawHolding":
        values: Dict[str, Any] = {}
        consumed = set()
        for attr, key, _ in kind.layout.keys:
            if key in data:
                values[attr] = data[key]
                consumed.add(key)
        for attr in ("id", "instrument_key", "scheme_code"):
            if values.get(attr) is not None:
                values[attr] = str(values[attr])
        if values.get("error_flag") is not None:
            values["error_flag"] = _as_flag(values["error_flag"])
        extra = {k: v for k, v in data.items() if k not in consumed}
        return cls(kind=kind, extra=extra, **values)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for attr, key, always in self.layout.keys:
            value = getattr(self, attr)
            if always or value is not None:
                data[key] = value
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data
