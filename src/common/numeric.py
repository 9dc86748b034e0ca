# ABOUTME: Rounding helpers shared by the verifier, the statistics, and the grader.
# ABOUTME: Rounds half away from zero on the shortest decimal form of each value.

from __future__ import annotations

import math
import numbers
from decimal import ROUND_HALF_UP, Decimal, localcontext


def round_decimal(value: float, places: int) -> Decimal:
    """
    Round ``value`` to ``places`` decimals, half away from zero.

    The value is read through its shortest repr, so 2.675 rounds to 2.68 even
    though the nearest binary double sits slightly below it.
    """

    quantum = Decimal(1).scaleb(-places)
    if isinstance(value, numbers.Integral):
        number = Decimal(int(value))
    else:
        number = Decimal(str(float(value)))
    # Precision must hold every integer digit plus the requested places.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, number.adjusted() + places + 2)
        return number.quantize(quantum, rounding=ROUND_HALF_UP)


def round_half_up(value: float, places: int = 0) -> float:
    if not math.isfinite(value):
        return float(value)
    return float(round_decimal(value, places))


def round2(value: float) -> float:
    return round_half_up(value, 2)


def round4(value: float) -> float:
    return round_half_up(value, 4)


def round_score(value: float) -> int:
    """Round to the nearest integer score."""

    return int(round_decimal(value, 0))


def clamp(value: float, low: float = 0, high: float = 100):
    return min(high, max(low, value))
