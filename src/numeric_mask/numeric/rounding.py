"""Numeric rounding under selectable modes, step snapping and clamping.

All helpers are no-ops on non-finite or non-numeric input so that callers can pass
whatever a parse produced without pre-checking it.
"""

from __future__ import annotations

import math
import sys
from decimal import Decimal, InvalidOperation
from enum import StrEnum


class RoundMode(StrEnum):
    HALF_UP = "half-up"
    HALF_DOWN = "half-down"
    HALF_EVEN = "half-even"
    HALF_AWAY = "half-away"
    CEIL = "ceil"
    FLOOR = "floor"
    TRUNC = "trunc"
    TOWARD_ZERO = "toward-zero"
    BANKERS = "bankers"


MODE_ALIASES = {
    RoundMode.BANKERS: RoundMode.HALF_EVEN,
    RoundMode.TOWARD_ZERO: RoundMode.TRUNC,
}

# Fractional parts this close to 0.5 count as ties.
TIE_TOLERANCE = 1e-12
# Relative tolerance absorbing binary representation drift of scaled values.
DRIFT = sys.float_info.epsilon * 8
# Beyond this absolute drift the float grid is too coarse for a correction.
DRIFT_CAP = 1e-3
# Every float at or above 2**52 is already integral.
INTEGRAL_LIMIT = 2.0 ** 52

_DIRECTED = (RoundMode.CEIL, RoundMode.FLOOR, RoundMode.TRUNC)


def is_finite_number(value) -> bool:
    """True for real ``int``/``float`` values that are neither NaN nor infinite."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def normalize_mode(mode: str | None) -> RoundMode:
    """Resolve aliases and case; unknown modes behave as ``half-up``."""
    name = str(mode or RoundMode.HALF_UP).strip().lower()
    try:
        resolved = RoundMode(name)
    except ValueError:
        return RoundMode.HALF_UP
    return MODE_ALIASES.get(resolved, resolved)


def _drift(magnitude: float) -> float:
    tolerance = magnitude * DRIFT
    return tolerance if tolerance < DRIFT_CAP else 0.0


def _round_integral(y: float, mode: RoundMode) -> float:
    """Apply the integer rule of *mode* to an already scaled value."""
    if abs(y) >= INTEGRAL_LIMIT:
        return float(y)
    if mode in _DIRECTED:
        nearest = round(y)
        if abs(y - nearest) <= _drift(abs(y)):
            y = float(nearest)
        if mode == RoundMode.CEIL:
            return float(math.ceil(y))
        if mode == RoundMode.FLOOR:
            return float(math.floor(y))
        return float(math.trunc(y))

    sign = -1.0 if y < 0 else 1.0
    ay = abs(y)
    whole = float(math.floor(ay))
    frac = ay - whole
    if abs(frac - 0.5) > max(TIE_TOLERANCE, _drift(ay)):
        return sign * (whole + 1 if frac > 0.5 else whole)
    if mode == RoundMode.HALF_DOWN:
        return sign * whole
    if mode == RoundMode.HALF_EVEN:
        return sign * (whole if whole % 2 == 0 else whole + 1)
    if mode == RoundMode.HALF_AWAY:
        return sign * (whole + 1)
    # half-up: ties go toward +infinity
    return whole + 1 if sign > 0 else -whole


def round_value(value, digits: int = 0, mode: str | None = RoundMode.HALF_UP):
    """Round *value* to *digits* decimals using *mode*.

    >>> round_value(2.5, 0, "half-even")
    2.0
    >>> round_value(1.005, 2, "half-up")
    1.01
    """
    if not is_finite_number(value):
        return value
    d = max(0, int(digits or 0))
    m = normalize_mode(mode)
    if d == 0:
        return _round_integral(float(value), m)
    factor = 10.0 ** d
    scaled = value * factor
    if not math.isfinite(scaled):
        return value
    return _round_integral(scaled, m) / factor


def step_decimals(step) -> int:
    """Number of decimal places needed to represent *step* (handles ``1e-7``)."""
    if not is_finite_number(step):
        return 0
    try:
        exponent = Decimal(repr(step)).normalize().as_tuple().exponent
    except InvalidOperation:
        return 0
    return max(0, -exponent) if isinstance(exponent, int) else 0


def round_to_step(value, step, base=None, mode: str | None = RoundMode.HALF_UP):
    """Snap *value* to the nearest multiple of *step* counted from *base* (or 0)."""
    if not is_finite_number(value) or not is_finite_number(step) or step <= 0:
        return value
    origin = base if is_finite_number(base) else 0.0
    quotient = round_value((value - origin) / step, 0, mode)
    snapped = quotient * step + origin
    return round(snapped, max(step_decimals(step), step_decimals(origin)))


def clamp(value, min_value=None, max_value=None):
    """Bound *value* by each finite limit; other inputs pass through unchanged."""
    if not is_finite_number(value):
        return value
    if is_finite_number(min_value) and value < min_value:
        value = min_value
    if is_finite_number(max_value) and value > max_value:
        value = max_value
    return value
