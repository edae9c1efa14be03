"""
Decimal Utilities
rag_cascade/scoring/utils.py

Precision-safe decimal math shared by the aggregators and the formula
evaluator. Every helper takes its inputs in order and is deterministic, so a
recomputation over unchanged inputs reproduces the same digits.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import List, Optional, Sequence

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def quantize(value: Decimal, places: int = 2) -> Decimal:
    """Round half-up to a fixed number of decimal places."""
    return value.quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP)


def clamp(
    value: Decimal,
    min_val: Decimal = ZERO,
    max_val: Decimal = HUNDRED,
) -> Decimal:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def coerce_decimal(value) -> Optional[Decimal]:
    """
    Best-effort conversion to a finite Decimal.

    Returns None for None, NaN, infinities, booleans and anything that does
    not parse as a number.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not d.is_finite():
        return None
    return d


def mean(values: Sequence[Decimal]) -> Optional[Decimal]:
    """Arithmetic mean, or None for an empty sequence."""
    if not values:
        return None
    return sum(values, ZERO) / Decimal(len(values))


def weighted_mean(values: List[Decimal], weights: List[Decimal]) -> Optional[Decimal]:
    """
    Calculate weighted mean.

    Formula: Σ(value_i × weight_i) / Σ(weight_i)
    Returns None if there are no values or all weights are zero.
    """
    if len(values) != len(weights):
        raise ValueError("values and weights must have same length")

    total_weight = sum(weights, ZERO)
    if not values or total_weight == 0:
        return None

    numerator = sum((v * w for v, w in zip(values, weights)), ZERO)
    return numerator / total_weight
