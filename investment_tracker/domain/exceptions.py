"""
Domain exceptions for the investment tracker.
"""


class InvestmentTrackerError(Exception):
    """Base class for all tracker errors."""


class MarketDataError(InvestmentTrackerError):
    """An external quote, NAV or search lookup failed or returned unusable data."""

    def __init__(self, message: str, symbol: str | None = None):
        super().__init__(message)
        self.symbol = symbol


class HoldingNotFoundError(InvestmentTrackerError):
    """No holding with the requested id exists in the portfolio."""

    def __init__(self, holding_id: str, kind: str | None = None):
        label = f"{kind} transaction" if kind else "Transaction"
        super().__init__(f"{label} not found: {holding_id}")
        self.holding_id = holding_id
        self.kind = kind


class PersistenceError(InvestmentTrackerError):
    """The portfolio document could not be read or written."""
