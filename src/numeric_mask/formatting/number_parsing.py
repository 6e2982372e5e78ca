"""Decorated, possibly localised text -> number.

Anything that does not belong to a number is dropped; only text with no
numeric content (or a non-finite result) yields ``None``.
"""
from __future__ import annotations

import math
import re

from ..models.options import MaskOptions, ParsePercent, Unit
from .normalization import (
    count_digits,
    detect_unit_scale,
    has_unit_token,
    normalize_digits,
    normalize_punctuation,
    strip_decorations,
)

_WHITESPACE = re.compile(r"\s+")
_LATE_SIGNS = re.compile(r"(?!^)[+-]")
_NOT_NUMERIC = re.compile(r"[^\d.+-]")
_NOT_EXPONENTIAL = re.compile(r"[^\d.+\-eE]")
_NOT_EXPONENT_DIGIT = re.compile(r"[^\d+-]")

_UNIT_FACTORS = (0.01, 0.001, 0.0001)


def apply_alternate_decimal(
    text: str,
    options: MaskOptions,
    *,
    unit_hint: bool = False,
    paste: bool = False,
    max_fraction_digits: int | None = None,
) -> str:
    """Reinterpret a lone alternate separator (``.`` vs ``,``) as the decimal mark.

    Only applies when ``accept_both_decimal`` is on or a unit token is present,
    the configured decimal mark is absent, and the alternate mark occurs exactly
    once with digits on both sides. When the alternate mark is also the grouping
    separator the text stays ambiguous and is left alone unless a unit token
    signals intent. For pasted text the conflict only counts when exactly three
    digits follow the mark.
    """
    dec = options.decimal_char
    alt = options.alternate_decimal
    if not (options.accept_both_decimal or unit_hint):
        return text
    if dec in text or text.count(alt) != 1:
        return text
    idx = text.rfind(alt)
    before = count_digits(text[:idx])
    after = count_digits(text[idx + 1:])
    if before < 1 or after < 1:
        return text
    if max_fraction_digits is not None and after > max_fraction_digits:
        return text
    conflict = alt == options.group and (not paste or after == 3)
    if conflict and not unit_hint:
        return text
    return text[:idx] + dec + text[idx + 1:]


def _unwrap_parens(text: str, options: MaskOptions) -> tuple[str, bool]:
    opening, closing = options.paren_open, options.paren_close
    if (
        len(text) >= len(opening) + len(closing)
        and text.startswith(opening)
        and text.endswith(closing)
    ):
        return text[len(opening): len(text) - len(closing)].strip(), True
    return text, False


def _single_dot(text: str) -> str:
    first = text.find(".")
    if first == -1:
        return text
    return text[: first + 1] + text[first + 1:].replace(".", "")


def _sanitize_plain(text: str, options: MaskOptions) -> str:
    text = _single_dot(_NOT_NUMERIC.sub("", text))
    text = _LATE_SIGNS.sub("", text)
    if not options.allow_negative:
        text = text.replace("-", "")
    return text


def _sanitize_exponential(text: str, options: MaskOptions) -> str:
    text = _NOT_EXPONENTIAL.sub("", text)
    e_idx = max(text.rfind("e"), text.rfind("E"))
    if e_idx > 0:
        mantissa, exponent = text[:e_idx], text[e_idx + 1:]
    else:
        mantissa, exponent = text, ""
    mantissa = _single_dot(re.sub(r"[eE]", "", mantissa))
    mantissa = _LATE_SIGNS.sub("", mantissa)
    if not options.allow_negative:
        mantissa = mantissa.replace("-", "")
    exponent = _LATE_SIGNS.sub("", _NOT_EXPONENT_DIGIT.sub("", exponent))
    if exponent in ("", "+", "-"):
        return mantissa
    return f"{mantissa}e{exponent}"


def is_unit_field(options: MaskOptions) -> bool:
    return (
        options.unit in (Unit.PERCENT, Unit.PERMILLE, Unit.BASIS_POINTS)
        or options.suffix.strip().endswith("%")
        or options.unit_factor in _UNIT_FACTORS
    )


def unit_scale(stripped: str, options: MaskOptions) -> float:
    """Factor applied to a parsed number.

    An explicit unit token typed beyond the field's own decorations wins; with
    ``parse_percent="auto"`` bare numbers on non-unit fields are percentages;
    otherwise the field's unit factor applies.
    """
    token = 1.0 if options.parse_percent == ParsePercent.OFF else detect_unit_scale(stripped)
    if token != 1:
        return token
    if options.parse_percent == ParsePercent.AUTO and not is_unit_field(options):
        return 0.01
    return options.unit_factor


def parse_number(text, options: MaskOptions) -> float | None:
    """Parse *text* under *options*; ``None`` when no finite number is present.

    >>> parse_number("€ 1.234,56", MaskOptions(prefix="€ ", digits=2))
    1234.56
    """
    if text is None:
        return None
    original = str(text)
    s = normalize_digits(original.strip())
    s, had_parens = _unwrap_parens(s, options)
    s = normalize_punctuation(s, options)
    s = strip_decorations(s, options)
    decorations_free = s
    s = _WHITESPACE.sub("", s)

    s = apply_alternate_decimal(s, options, unit_hint=has_unit_token(decorations_free))
    if options.group:
        s = s.replace(options.group, "")
    if options.decimal_char != ".":
        s = s.replace(options.decimal_char, ".")

    if options.allow_exponent:
        s = _sanitize_exponential(s, options)
    else:
        s = _sanitize_plain(s, options)

    try:
        value = float(s)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    if had_parens and options.allow_negative:
        value = -abs(value)

    factor = unit_scale(decorations_free, options)
    return value * factor if factor != 1 else value
