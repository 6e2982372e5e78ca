"""Number -> decorated text."""
from __future__ import annotations

import math

from ..models.options import MaskOptions, NegativeStyle, SignPosition
from ..numeric.engines import MathEngine, get_engine
from ..numeric.rounding import is_finite_number
from .grouping import group_integer


def compose(sign: str, core: str, options: MaskOptions, *, decorated: bool = True) -> str:
    """Join sign, numeric core and prefix/suffix honouring the sign position."""
    prefix = options.prefix if decorated else ""
    suffix = options.suffix if decorated else ""
    if not sign:
        return prefix + core + suffix
    if options.sign_position == SignPosition.BEFORE_PREFIX:
        return sign + prefix + core + suffix
    return prefix + sign + core + suffix


def plain_digits(value: float, digits: int, decimal: str) -> str:
    """Ungrouped magnitude of *value* with a fixed number of decimals."""
    return f"{abs(value):.{max(0, digits)}f}".replace(".", decimal)


def format_number(value, options: MaskOptions, engine: MathEngine | None = None) -> str:
    """Render *value* with grouping, decimals, sign and decorations.

    Negative input is rendered as its magnitude when negatives are disallowed.
    Zero never carries a sign unless ``show_zero_sign`` is set and the zero is
    negative.

    >>> format_number(1234567, MaskOptions(group=".", digits=0))
    '1.234.567'
    """
    engine = engine or get_engine(options.math_engine)
    n = float(value) if is_finite_number(value) else 0.0
    if not options.allow_negative and n < 0:
        n = abs(n)
    if options.unit_factor != 1:
        n = n / options.unit_factor
    digits = options.digits
    n = engine.round(n, digits, options.round_mode)

    int_part, _, frac_part = f"{abs(n):.{digits}f}".partition(".")
    core = group_integer(int_part, options)
    if digits > 0:
        core += options.decimal_char + frac_part

    negative = n < 0 or (n == 0 and math.copysign(1.0, n) < 0 and options.show_zero_sign)
    if negative:
        sign = options.neg_symbol
    elif options.show_positive_sign and n > 0:
        sign = options.pos_symbol
    else:
        sign = ""

    use_parens = options.negative_style == NegativeStyle.PARENS and negative
    if use_parens:
        return options.paren_open + compose("", core, options) + options.paren_close
    return compose(sign, core, options)
