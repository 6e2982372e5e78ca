"""Caret algebra across reformatting.

A *logical offset* counts the characters that carry meaning (digits, the decimal
mark and a leading sign) before a caret, ignoring prefix, grouping and suffix. It is
computed on the text before an edit and mapped back to a raw index in the text
after reformatting, so the caret stays behind the same digits the user typed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from ..formatting.normalization import normalize_digits, parens_to_sign
from ..models.options import MaskOptions, SignPosition

_MARK = "\x00"
_NOT_LOGICAL = re.compile(r"[^\d\x00+-]")
_LATE_SIGNS = re.compile(r"(?!^)[+-]")
_LEADING_ZEROS = re.compile(r"^([+-]?)0+(?=\d)")


def wants_preserve_caret(options: MaskOptions, coarse_pointer: bool = False) -> bool:
    """``True`` always maps, ``auto`` maps except on coarse (touch) pointers."""
    if options.preserve_caret == "auto":
        return not coarse_pointer
    return options.preserve_caret is True


def count_logical_before(text: str, caret: int, options: MaskOptions, digits: int | None = None) -> int:
    """Number of logical characters in ``text[:caret]``.

    *digits* overrides the fraction length (the raw focus view edits with more
    decimals than the formatted one).
    """
    before = str(text or "")[: max(0, caret)]
    if not before:
        return 0
    live_digits = options.digits if digits is None else digits
    dec = options.decimal_char

    s = parens_to_sign(normalize_digits(before), options)
    if options.prefix and s.startswith(options.prefix):
        s = s[len(options.prefix):]
    if options.neg_symbol != "-":
        s = s.replace(options.neg_symbol, "-")
    if options.pos_symbol != "+":
        s = s.replace(options.pos_symbol, "+")
    if options.group:
        s = s.replace(options.group, "")
    s = _NOT_LOGICAL.sub("", s.replace(dec, _MARK))
    s = _LATE_SIGNS.sub("", s)
    if not options.allow_negative:
        s = s.replace("-", "")

    has_decimal = _MARK in s and live_digits > 0
    s = re.sub(_MARK + "+", dec if has_decimal else "", s)
    if has_decimal:
        head, _, tail = s.partition(dec)
        s = head + dec + tail.replace(dec, "")[:live_digits]
    s = _LEADING_ZEROS.sub(r"\1", s)
    return len(s)


def map_logical_to_index(text: str, options: MaskOptions) -> Callable[[int], int]:
    """Return a function mapping a logical offset to a raw index in *text*.

    Offset 0 lands on the first logical character; offsets past the last one land
    at the end of the string. Multi-character sign glyphs count once.
    """
    dec = options.decimal_char
    neg = options.neg_symbol
    pos = options.pos_symbol
    before_prefix = options.sign_position == SignPosition.BEFORE_PREFIX

    def index_for(target: int) -> int:
        count = 0
        i = 0
        while i < len(text):
            here_neg = text.startswith(neg, i)
            here_pos = not here_neg and text.startswith(pos, i)
            ch = text[i]
            width = len(neg) if here_neg else len(pos) if here_pos else 1
            is_sign = here_neg or here_pos or ch in "+-"
            logical = (
                "0" <= ch <= "9"
                or ch == dec
                or (is_sign and (i == 0 if before_prefix else count == 0))
            )
            if logical:
                if target <= 0:
                    return i
                count += 1
                if count == target:
                    return i + width
            i += width
        return len(text)

    return index_for


def numeric_start(options: MaskOptions, has_sign: bool, symbol: str | None = None) -> int:
    """Index where the numeric core starts (after prefix and an optional sign)."""
    width = len(symbol or options.neg_symbol) if has_sign else 0
    return len(options.prefix) + width


def content_end(text: str, options: MaskOptions) -> int:
    """Index just before the suffix (or the end of *text*)."""
    if options.suffix and text.endswith(options.suffix):
        return len(text) - len(options.suffix)
    return len(text)


@dataclass(frozen=True)
class SignView:
    """A sign found in the visible text."""

    present: bool = False
    negative: bool = False
    symbol: str = ""


def sign_in_view(text: str, options: MaskOptions) -> SignView:
    """Locate a sign before the prefix, right after it, or at the start of *text*."""
    text = str(text or "")
    neg, pos = options.neg_symbol, options.pos_symbol
    signs = ["+", "-"] + [s for s in (neg, pos) if s not in ("+", "-")]
    alternatives = "|".join(re.escape(s) for s in sorted(signs, key=len, reverse=True))
    prefix = options.prefix

    def view(symbol: str) -> SignView:
        return SignView(True, symbol in (neg, "-"), symbol)

    match = re.match(rf"^({alternatives})\s*{re.escape(prefix)}", text)
    if match:
        return view(match.group(1))
    if prefix and text.startswith(prefix):
        match = re.match(rf"^\s*({alternatives})", text[len(prefix):])
        if match:
            return view(match.group(1))
    stripped = text.strip()
    for symbol in (neg, "-", pos, "+"):
        if stripped.startswith(symbol):
            return view(symbol)
    return SignView()
