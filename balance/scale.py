"""
Scale readout: pan totals, the relational symbol, and the beam's tilt.

Blocks whose value is NaN (a variable is still undefined) weigh nothing, and
while any such block sits on the scale the beam is held level and the symbol
reads ``=``.
"""

import math
from dataclasses import dataclass

from balance.display import round_for_display

MAX_TILT_DEGREES = 20.0
DEGREES_PER_UNIT = 2.0
# Totals closer than this read as equal.
DISPLAY_TOLERANCE = 0.001


@dataclass(frozen=True)
class ScaleReading:
    left_total: float
    right_total: float
    symbol: str
    tilt: float
    has_undefined: bool

    def as_dict(self) -> dict:
        return {
            "left_total": _display_total(self.left_total),
            "right_total": _display_total(self.right_total),
            "symbol": self.symbol,
            "tilt": self.tilt,
            "has_undefined": self.has_undefined,
        }


def _display_total(total: float):
    # JSON has no infinity; callers see None for an overflowing pan.
    return round_for_display(total) if math.isfinite(total) else None


def _safe(value: float) -> float:
    return 0.0 if math.isnan(value) else value


def clamp(low: float, high: float, value: float) -> float:
    return max(low, min(high, value))


def tilt_angle(difference: float) -> float:
    """Beam rotation in degrees; positive means the right pan is heavier."""
    if math.isnan(difference):
        return 0.0
    return clamp(-MAX_TILT_DEGREES, MAX_TILT_DEGREES, difference * DEGREES_PER_UNIT)


def relation_symbol(left_total: float, right_total: float) -> str:
    if left_total == right_total or abs(left_total - right_total) < DISPLAY_TOLERANCE:
        return "="
    return ">" if left_total > right_total else "<"


def read_scale(left_values, right_values) -> ScaleReading:
    """Summarise the pans given each block's cached value."""
    left_values = list(left_values)
    right_values = list(right_values)
    left_total = sum((_safe(v) for v in left_values), 0.0)
    right_total = sum((_safe(v) for v in right_values), 0.0)
    has_undefined = any(math.isnan(v) for v in left_values + right_values)

    if has_undefined:
        return ScaleReading(left_total, right_total, "=", 0.0, True)

    return ScaleReading(
        left_total,
        right_total,
        relation_symbol(left_total, right_total),
        tilt_angle(right_total - left_total),
        False,
    )
