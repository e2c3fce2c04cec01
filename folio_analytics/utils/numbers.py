"""Numeric guards shared by the analytics components."""

import math


def finite(val, default: float = 0.0) -> float:
    """Coerce to float, mapping None/NaN/Inf to ``default``."""
    if val is None:
        return default
    try:
        val = float(val)
    except (TypeError, ValueError):
        return default
    if math.isnan(val) or math.isinf(val):
        return default
    return val


def safe_div(num: float, den: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` when the denominator is zero or the result is not finite."""
    if not den:
        return default
    return finite(num / den, default)


def pct_of(part: float, total: float) -> float:
    """``part`` as a percentage of ``total``; 0 when ``total`` is not positive."""
    if total <= 0:
        return 0.0
    return finite(part / total * 100.0)


def to_float(val, ndigits: int = 6) -> float:
    """Round for JSON output."""
    return round(finite(val), ndigits)
