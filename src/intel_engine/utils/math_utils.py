"""
Mathematical Utilities

Provides the small numeric helpers shared by the quality gate and the
decision fusion engine:
- Percentage clamping with non-finite fallback
- Half-up rounding to 2 decimals
- Linear freshness decay
- Numerically stable softmax
"""

import math
from typing import Iterable, List, Optional


class StatisticalUtils:
    """Statistical calculation utilities."""

    @staticmethod
    def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
        """Safe division that handles zero and non-finite denominators."""
        if denominator == 0 or not math.isfinite(denominator):
            return default
        return numerator / denominator

    @staticmethod
    def mean(values: List[float], default: float = 0.0) -> float:
        """Arithmetic mean, or ``default`` for an empty list."""
        if not values:
            return default
        return math.fsum(values) / len(values)


def is_finite_number(value) -> bool:
    """True for int/float values that are finite (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def clamp(value: Optional[float], min_val: float = 0.0, max_val: float = 100.0) -> float:
    """
    Clamp value between min and max.

    Non-finite or non-numeric values collapse to ``min_val``.
    """
    if not is_finite_number(value):
        return float(min_val)
    return float(min(max_val, max(min_val, value)))


def round2(value: float) -> float:
    """Round half-up to 2 decimals (0.125 -> 0.13, -0.125 -> -0.12)."""
    if not math.isfinite(value):
        return 0.0
    return math.floor(value * 100 + 0.5) / 100


def freshness_factor(max_age_sec: float, freshness_sec: float) -> float:
    """
    Linear time decay of a signal.

    Returns 1.0 for a brand new signal, falling to 0.0 once the signal age
    reaches ``max_age_sec``. A non-positive max age disables the domain.
    """
    if not is_finite_number(max_age_sec) or max_age_sec <= 0:
        return 0.0
    age = max(0.0, freshness_sec) if is_finite_number(freshness_sec) else max_age_sec
    if age >= max_age_sec:
        return 0.0
    return 1.0 - age / max_age_sec


def softmax(values: List[float]) -> List[float]:
    """
    Softmax with max-subtraction for numerical stability.

    Falls back to a uniform distribution when the exponent sum is not a
    positive finite number.
    """
    if not values:
        return []
    shift = max(values)
    try:
        exps = [math.exp(v - shift) for v in values]
    except (OverflowError, TypeError):
        exps = []
    total = math.fsum(exps)
    if len(exps) != len(values) or not math.isfinite(total) or total <= 0:
        return [1.0 / len(values)] * len(values)
    return [e / total for e in exps]


def unique_strings(values: Iterable[str]) -> List[str]:
    """De-duplicate non-blank strings, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if not value or not value.strip() or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
