"""Priority arithmetic shared by interactive adjustments and queue replay."""
import math
from decimal import ROUND_HALF_UP, Decimal

from ..core.errors import InvalidActivityError

MINIMUM_PRIORITY = 0.1
MAXIMUM_PRIORITY = 1_000_000.0
PRIORITY_ADJUSTMENT = 0.1
DEFAULT_PRIORITY = 1.0


def round_priority(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    # repr() first so 1.25 rounds to 1.3 rather than following its binary expansion
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def apply_delta(current: float, delta: float) -> float:
    return max(MINIMUM_PRIORITY, round_priority(current + delta))


def check_priority(priority: float) -> float:
    """Reject priorities the weighted pick cannot roll against."""
    if not math.isfinite(priority) or not MINIMUM_PRIORITY <= priority <= MAXIMUM_PRIORITY:
        raise InvalidActivityError(
            f"Priority must be a number between {MINIMUM_PRIORITY} and {MAXIMUM_PRIORITY:g}"
        )
    return priority


def check_delta(delta: float) -> float:
    if not math.isfinite(delta) or abs(delta) > MAXIMUM_PRIORITY:
        raise InvalidActivityError(
            f"Priority delta must be a number between {-MAXIMUM_PRIORITY:g} and {MAXIMUM_PRIORITY:g}"
        )
    return delta
