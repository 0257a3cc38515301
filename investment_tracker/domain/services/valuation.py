"""
VALUATION CALCULATOR
Pure functions over (quantity, cost basis, current price).

Percentages are kept at full precision internally and rounded only when a
value is presented (API responses), so merged positions do not accumulate
rounding error.
"""

from typing import Tuple


def change_and_percent(current: float, basis: float) -> Tuple[float, float]:
    """
    Per-unit change and percent change against the cost basis.

    A zero basis has no meaningful percent change; it is reported as 0.0
    so no non-finite value ever reaches the document.
    """
    change = current - basis
    if basis == 0:
        return change, 0.0
    return change, (change / basis) * 100.0


def total_value(quantity: float, price: float) -> float:
    return quantity * price


def total_gain(value: float, invested: float) -> float:
    return value - invested


def gain_percent(gain: float, invested: float) -> float:
    if invested <= 0:
        return 0.0
    return (gain / invested) * 100.0


def average_cost(invested: float, quantity: float) -> float:
    if quantity <= 0:
        return 0.0
    return invested / quantity


def round_price(price: float) -> float:
    return round(price, 2)


def round_percent(percent: float) -> float:
    return round(percent, 2)
