"""
DOMAIN MODELS: PORTFOLIO DOCUMENT

The whole persisted portfolio: stock and mutual fund holdings plus the
time of the last market-data refresh. Owned by the persistence layer
between requests; engines receive it for one operation only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from investment_tracker.domain.models.holding import HoldingKind, RawHolding


@dataclass
class PortfolioAggregate:
    stocks: List[RawHolding] = field(default_factory=list)
    mutual_funds: List[RawHolding] = field(default_factory=list)
    last_updated: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def holdings(self, kind: HoldingKind) -> List[RawHolding]:
        return self.stocks if kind is HoldingKind.STOCK else self.mutual_funds

    def find(self, holding_id: str, kind: Optional[HoldingKind] = None) -> Optional[Tuple[HoldingKind, int]]:
        """Locate a holding by id, optionally restricted to one variant."""
        kinds = [kind] if kind is not None else list(HoldingKind)
        for candidate in kinds:
            for index, holding in enumerate(self.holdings(candidate)):
                if holding.id == holding_id:
                    return candidate, index
        return None

    def error_counts(self) -> Dict[str, int]:
        return {
            "stocks": sum(1 for h in self.stocks if h.error_flag is True),
            "mutualFunds": sum(1 for h in self.mutual_funds if h.error_flag is True),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PortfolioAggregate":
        data = data or {}
        stocks = [RawHolding.from_dict(item, HoldingKind.STOCK) for item in data.get("stocks") or []]
        funds = [RawHolding.from_dict(item, HoldingKind.MUTUAL_FUND) for item in data.get("mutualFunds") or []]
        extra = {k: v for k, v in data.items() if k not in ("stocks", "mutualFunds", "lastUpdated")}
        return cls(
            stocks=stocks,
            mutual_funds=funds,
            last_updated=data.get("lastUpdated"),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "stocks": [h.to_dict() for h in self.stocks],
            "mutualFunds": [h.to_dict() for h in self.mutual_funds],
        }
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data
