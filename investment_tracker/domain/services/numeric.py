"""
NUMERIC NORMALIZER
Single entry point where untrusted document values become arithmetic input.
"""

import math
from typing import Any


def normalize(value: Any, default: float = 0.0) -> float:
    """
    Coerce ``value`` into a finite float.

    Accepts ints, floats and numeric strings. Anything else (None, booleans,
    unparsable text, containers, NaN, +/-Infinity) yields ``default``.
    Never raises.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        return default

    if not math.isfinite(number):
        return default
    return number
