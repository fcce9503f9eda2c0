"""
Numeric helpers shared by the metrics calculator and the simulators.

All functions return None rather than NaN or infinity when an input is
undefined, so the metrics layer can propagate "no value" explicitly.
"""

import math
from typing import Optional

from depth_sim.execution.errors import ComputationError
from depth_sim.execution.models import REASON_COMPUTATION_ERROR

BPS_PER_UNIT = 10_000


def is_finite_number(value: Optional[float]) -> bool:
    """True for an int/float that is neither None, NaN nor infinite."""
    return value is not None and math.isfinite(value)


def safe_ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """
    Divide, returning None for an undefined operand or a zero/non-finite denominator.

    Example:
        >>> safe_ratio(1.0, 4.0)
        0.25
        >>> safe_ratio(1.0, 0.0) is None
        True
    """
    if not (is_finite_number(numerator) and is_finite_number(denominator)):
        return None
    if denominator == 0:
        return None
    return numerator / denominator


def to_bps(fraction: Optional[float]) -> Optional[float]:
    """Convert a fractional change (0.0012) to basis points (12.0)."""
    if fraction is None:
        return None
    return fraction * BPS_PER_UNIT


def ensure_finite(value: Optional[float], name: str) -> Optional[float]:
    """
    Pass `value` through, raising ComputationError if it is NaN or infinite.

    None is allowed through (it means "undefined", not "broken").
    """
    if value is not None and not math.isfinite(value):
        raise ComputationError(REASON_COMPUTATION_ERROR, f"{name} is not finite ({value!r})")
    return value
