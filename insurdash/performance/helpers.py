# insurdash/performance/helpers.py
"""
Numeric helpers shared by the aggregation, KPI and export code.

Every ratio in the engine goes through ``safe_divide`` so that a zero
denominator yields a defined fallback instead of NaN or an exception.
"""

import math
from typing import Any, Optional

import numpy as np


def safe_divide(numerator: float, denominator: Optional[float], on_zero: Any = 0.0):
    """
    Divide, returning ``on_zero`` when the denominator is 0, None or not finite.

    Args:
        numerator: Dividend
        denominator: Divisor
        on_zero: Value returned for a degenerate denominator

    Returns:
        numerator / denominator, or on_zero
    """
    if denominator is None or not is_number(denominator) or denominator == 0:
        return on_zero
    if numerator is None or not is_number(numerator):
        return on_zero
    return numerator / denominator


def is_number(value: Any) -> bool:
    """True for finite int/float values (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, np.integer, np.floating)):
        return bool(np.isfinite(value))
    return False


def to_number(value: Any) -> Optional[float]:
    """Coerce numeric-looking input to float; None when it is not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    if not is_number(value):
        return None
    return float(value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +inf (-2.5 -> -2, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def is_missing(value: Any) -> bool:
    """None, NaN or +/-inf."""
    if value is None:
        return True
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        return not np.isfinite(value)
    return False
