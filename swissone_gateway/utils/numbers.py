"""Numeric coercion for values read from the document store or user input"""

import math
from typing import Any, Optional


def to_finite_float(value: Any) -> Optional[float]:
    """Convert value to a finite float, or None when that is not possible"""
    # bool is an int subclass; True must not become 1.0
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coerce_balance(value: Any) -> float:
    """Normalize a stored balance/amount: anything non-numeric becomes 0.0"""
    number = to_finite_float(value)
    return 0.0 if number is None else number


def parse_amount(value: Any) -> Optional[float]:
    """Parse a requested settlement amount; None unless finite and > 0"""
    number = to_finite_float(value)
    if number is None or number <= 0:
        return None
    return number
