"""Math engines: the default float path and an optional ``decimal`` backend.

The decimal engine mirrors the float engine's contract. Any failure inside it falls
back to the float engine so callers never see an arithmetic exception.
"""

from __future__ import annotations

from decimal import (
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Decimal,
    InvalidOperation,
)
from typing import Protocol, runtime_checkable

import structlog

from .rounding import (
    RoundMode,
    clamp,
    is_finite_number,
    normalize_mode,
    round_to_step,
    round_value,
)

logger = structlog.get_logger(__name__)

MULTIPLE_TOLERANCE = 1e-12


@runtime_checkable
class MathEngine(Protocol):
    name: str

    def round(self, value, digits: int, mode: str | None): ...

    def round_to_step(self, value, step, base, mode: str | None): ...

    def clamp(self, value, min_value, max_value): ...

    def is_multiple(self, value, multiple, tolerance: float = MULTIPLE_TOLERANCE) -> bool: ...


class FloatEngine:
    """Binary floating point with epsilon-corrected rounding."""

    name = "number"

    def round(self, value, digits: int, mode: str | None):
        return round_value(value, digits, mode)

    def round_to_step(self, value, step, base, mode: str | None):
        return round_to_step(value, step, base, mode)

    def clamp(self, value, min_value, max_value):
        return clamp(value, min_value, max_value)

    def is_multiple(self, value, multiple, tolerance: float = MULTIPLE_TOLERANCE) -> bool:
        if not is_finite_number(value) or not is_finite_number(multiple) or multiple <= 0:
            return True
        nearest = round_value(value / multiple, 0, RoundMode.HALF_UP) * multiple
        return abs(value - nearest) <= tolerance


def _to_decimal(value) -> Decimal:
    return Decimal(repr(value))


def _decimal_rounding(mode: RoundMode, negative: bool) -> str:
    if mode == RoundMode.HALF_EVEN:
        return ROUND_HALF_EVEN
    if mode == RoundMode.HALF_AWAY:
        return ROUND_HALF_UP
    if mode == RoundMode.CEIL:
        return ROUND_CEILING
    if mode == RoundMode.FLOOR:
        return ROUND_FLOOR
    if mode == RoundMode.TRUNC:
        return ROUND_DOWN
    # half-up sends ties toward +infinity, same as the float path
    return ROUND_HALF_DOWN if negative else ROUND_HALF_UP


class DecimalEngine:
    """Exact decimal arithmetic via :mod:`decimal`, with a silent float fallback.

    ``half-down`` has no native equivalent here and always takes the float path.
    """

    name = "decimal"

    def __init__(self, fallback: FloatEngine | None = None):
        self._fallback = fallback or FloatEngine()

    def round(self, value, digits: int, mode: str | None):
        if not is_finite_number(value):
            return value
        d = max(0, int(digits or 0))
        m = normalize_mode(mode)
        if m == RoundMode.HALF_DOWN:
            return self._fallback.round(value, d, m)
        try:
            exact = _to_decimal(value)
            quantum = Decimal(1).scaleb(-d)
            return float(exact.quantize(quantum, rounding=_decimal_rounding(m, exact < 0)))
        except (InvalidOperation, ValueError, OverflowError) as exc:
            logger.debug("engine_fallback", operation="round", error=str(exc))
            return self._fallback.round(value, d, m)

    def round_to_step(self, value, step, base, mode: str | None):
        if not is_finite_number(value) or not is_finite_number(step) or step <= 0:
            return value
        m = normalize_mode(mode)
        if m == RoundMode.HALF_DOWN:
            return self._fallback.round_to_step(value, step, base, m)
        try:
            origin = _to_decimal(base) if is_finite_number(base) else Decimal(0)
            exact_step = _to_decimal(step)
            quotient = (_to_decimal(value) - origin) / exact_step
            whole = quotient.quantize(Decimal(1), rounding=_decimal_rounding(m, quotient < 0))
            return float(whole * exact_step + origin)
        except (InvalidOperation, ValueError, OverflowError) as exc:
            logger.debug("engine_fallback", operation="round_to_step", error=str(exc))
            return self._fallback.round_to_step(value, step, base, m)

    def clamp(self, value, min_value, max_value):
        if not is_finite_number(value):
            return value
        try:
            exact = _to_decimal(value)
            if is_finite_number(min_value) and exact < _to_decimal(min_value):
                return min_value
            if is_finite_number(max_value) and exact > _to_decimal(max_value):
                return max_value
            return value
        except (InvalidOperation, ValueError) as exc:
            logger.debug("engine_fallback", operation="clamp", error=str(exc))
            return self._fallback.clamp(value, min_value, max_value)

    def is_multiple(self, value, multiple, tolerance: float = MULTIPLE_TOLERANCE) -> bool:
        if not is_finite_number(value) or not is_finite_number(multiple) or multiple <= 0:
            return True
        try:
            remainder = _to_decimal(value) % _to_decimal(multiple)
            return remainder == 0 or abs(remainder) <= Decimal(repr(tolerance))
        except (InvalidOperation, ValueError) as exc:
            logger.debug("engine_fallback", operation="is_multiple", error=str(exc))
            return self._fallback.is_multiple(value, multiple, tolerance)


ENGINES = {
    "number": FloatEngine,
    "decimal": DecimalEngine,
    "big": DecimalEngine,
}


def get_engine(name: str | None = None) -> MathEngine:
    """Return an engine instance for *name* (``number``, ``decimal`` or ``big``)."""
    factory = ENGINES.get(str(name or "number").lower(), FloatEngine)
    return factory()
