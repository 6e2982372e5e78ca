"""Effective per-surface options.

``MaskOptions`` is an immutable value: every surface holds its own snapshot, and a
change of global defaults never mutates an already-built instance. Derived defaults
(unit factors, auto negatives, step-driven digits, percent bounds) are resolved once
at construction time.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..numeric.rounding import RoundMode, is_finite_number, step_decimals


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class GroupStyle(StrEnum):
    STANDARD = "standard"
    INDIAN = "indian"


class SignPosition(StrEnum):
    BEFORE_PREFIX = "beforePrefix"
    AFTER_PREFIX = "afterPrefix"


class NegativeStyle(StrEnum):
    SIGN = "sign"
    PARENS = "parens"


class MinusBehavior(StrEnum):
    FORCE_NEGATIVE = "forceNegative"
    TOGGLE = "toggle"


class EmptyValue(StrEnum):
    ZERO = "zero"
    NULL = "null"
    EMPTY = "empty"


class ParsePercent(StrEnum):
    OFF = "off"
    AUTO = "auto"
    SYMBOL_ONLY = "symbolOnly"


class ClampMode(StrEnum):
    ALWAYS = "always"
    BLUR = "blur"


class LiveMinStrategy(StrEnum):
    NONE = "none"
    LENIENT = "lenient"
    STRICT = "strict"


class ValidationMode(StrEnum):
    BLOCK = "block"
    SOFT = "soft"


class Unit(StrEnum):
    PERCENT = "percent"
    PERMILLE = "permille"
    BASIS_POINTS = "bp"


UNIT_FACTORS = {
    Unit.PERCENT: 0.01,
    Unit.PERMILLE: 0.001,
    Unit.BASIS_POINTS: 0.0001,
}

UNIT_SUFFIXES = {
    Unit.PERCENT: "%",
    Unit.PERMILLE: "‰",
    Unit.BASIS_POINTS: " bp",
}


# ---------------------------------------------------------------------------
# Schema constraints
# ---------------------------------------------------------------------------


class SchemaRule(BaseModel):
    """Declarative constraints checked on every candidate value."""

    model_config = ConfigDict(frozen=True)

    multiple_of: float | None = Field(default=None, gt=0)
    allowed_range: tuple[float | None, float | None] | None = None
    disallow: Callable[[float], bool] | None = None
    custom_message: str | None = None


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


def _to_number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    return float(value)


def parse_group_pattern(value: Any) -> tuple[int, ...] | None:
    """Turn ``"3,2,2"`` or ``[3, 2, 2]`` into a tuple, dropping empty/zero entries."""
    if not value:
        return None
    items = value.split(",") if isinstance(value, str) else list(value)
    sizes = []
    for item in items:
        try:
            size = int(str(item).strip() or 0)
        except ValueError:
            continue
        if size:
            sizes.append(size)
    return tuple(sizes) or None


class MaskOptions(BaseModel):
    """Formatting, parsing and live-edit behaviour for one surface."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    # ── Locale / format ─────────────────────────────────────────────────────
    decimal: str = ","
    group: str = "."
    group_style: GroupStyle = GroupStyle.STANDARD
    group_pattern: tuple[int, ...] | None = None
    digits: int = Field(default=0, ge=0)
    round_mode: RoundMode = RoundMode.HALF_UP
    prefix: str = ""
    suffix: str = ""
    sign_position: SignPosition = SignPosition.AFTER_PREFIX
    negative_style: NegativeStyle = NegativeStyle.SIGN
    negative_parens: str = "(,)"
    negative_sign_symbol: str = "-"
    positive_sign_symbol: str = "+"
    show_positive_sign: bool = False
    show_zero_sign: bool = False
    allow_negative: bool = False
    allow_exponent: bool = False

    # ── Units ───────────────────────────────────────────────────────────────
    unit: Unit | None = None
    unit_factor: float = Field(default=1.0, gt=0)
    parse_percent: ParsePercent = ParsePercent.SYMBOL_ONLY
    accept_both_decimal: bool = False

    # ── Limits ──────────────────────────────────────────────────────────────
    min: float | None = None
    max: float | None = None
    step: float | None = None
    clamp_mode: ClampMode = ClampMode.ALWAYS
    clamp_on_paste: bool = True
    snap_to_step_on_blur: bool = False
    snap_while_holding: bool = False
    enforce_max_while_typing: bool = True
    live_min_strategy: LiveMinStrategy = LiveMinStrategy.NONE

    # ── Empty / zero handling ───────────────────────────────────────────────
    empty_value: EmptyValue = EmptyValue.ZERO
    keep_empty: bool = False
    blank_if_zero: bool = False
    format_empty_on_init: bool = True

    # ── Editing UX ──────────────────────────────────────────────────────────
    minus_behavior: MinusBehavior = MinusBehavior.FORCE_NEGATIVE
    group_while_typing: bool = True
    preserve_caret: bool | Literal["auto"] = "auto"
    allow_wheel: bool = False
    hold_accel: bool = False
    copy_raw: bool = False
    raw_on_focus: bool = False
    raw_digits: int | None = Field(default=None, ge=0)
    unformat_on_focus: bool = False
    select_on_focus: bool = False
    select_on_focus_once: bool = False
    select_decimals_only: bool = False

    # ── Validation ──────────────────────────────────────────────────────────
    math_engine: Literal["number", "decimal", "big"] = "number"
    schema_rule: SchemaRule | None = None
    validation_mode: ValidationMode = ValidationMode.BLOCK
    before_change: Callable[..., Any] | None = Field(default=None, exclude=True)
    enforce_before_change_while_typing: bool = False
    note: str | None = None
    error_message: str | None = None

    # ── Notifications / history ─────────────────────────────────────────────
    live_debounce_ms: int = Field(default=0, ge=0)
    history: bool = True
    history_limit: int = Field(default=50, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _derive_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("min", "max", "step"):
            if key in data:
                data[key] = _to_number(data[key])
        if "group_pattern" in data:
            data["group_pattern"] = parse_group_pattern(data["group_pattern"])
        if data.get("minus_behavior") not in (None, MinusBehavior.TOGGLE):
            data["minus_behavior"] = MinusBehavior.FORCE_NEGATIVE

        unit = data.get("unit")
        if unit:
            unit = Unit(str(unit).lower())
            data["unit"] = unit
            data.setdefault("unit_factor", UNIT_FACTORS[unit])
            if "prefix" not in data and "suffix" not in data:
                data["suffix"] = UNIT_SUFFIXES[unit]

        if "allow_negative" not in data:
            lows = [data.get("min"), data.get("max")]
            if any(is_finite_number(v) and v < 0 for v in lows):
                data["allow_negative"] = True

        step = data.get("step")
        if is_finite_number(step):
            places = step_decimals(step)
            data["digits"] = 0 if places == 0 else max(int(data.get("digits") or 0), places)

        if not unit and str(data.get("suffix") or "").strip().endswith("%"):
            if not is_finite_number(data.get("min")):
                data["min"] = 0.0
            if not is_finite_number(data.get("max")):
                data["max"] = 100.0
        return data

    @field_validator("group_pattern")
    @classmethod
    def _positive_groups(cls, value: tuple[int, ...] | None) -> tuple[int, ...] | None:
        if value is not None and any(size <= 0 for size in value):
            raise ValueError("group pattern entries must be positive")
        return value

    @field_validator("negative_parens")
    @classmethod
    def _paren_pair(cls, value: str) -> str:
        parts = [p.strip() for p in str(value).split(",")]
        if len(parts) == 2 and parts[0] and parts[1]:
            return f"{parts[0]},{parts[1]}"
        return "(,)"

    # ── Derived accessors ───────────────────────────────────────────────────

    @property
    def decimal_char(self) -> str:
        return self.decimal or ","

    @property
    def alternate_decimal(self) -> str:
        return "." if self.decimal_char == "," else ","

    @property
    def paren_open(self) -> str:
        return self.negative_parens.split(",")[0]

    @property
    def paren_close(self) -> str:
        return self.negative_parens.split(",")[1]

    @property
    def neg_symbol(self) -> str:
        return self.negative_sign_symbol or "-"

    @property
    def pos_symbol(self) -> str:
        return self.positive_sign_symbol or "+"

    @property
    def default_step(self) -> float:
        """Explicit step, else one display unit (or a hundredth of one with decimals)."""
        if is_finite_number(self.step):
            return self.step
        unit_step = 0.01 if self.digits > 0 else 1.0
        return unit_step * self.unit_factor if self.unit_factor != 1 else unit_step

