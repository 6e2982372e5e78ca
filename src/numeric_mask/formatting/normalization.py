"""Text normalisation shared by parsing, live editing and caret mapping.

Covers digit scripts (any Unicode ``Nd`` digit becomes ASCII), bidi control marks,
space and minus variants, custom sign glyphs, Arabic separators, prefix/suffix
stripping and unit token detection.
"""

from __future__ import annotations

import re
import unicodedata

from ..models.options import MaskOptions, NegativeStyle

BIDI_CONTROLS = re.compile("[\u061c\u200e\u200f\u202a-\u202e\u2066-\u2069]")
SPACE_VARIANTS = re.compile("[\u00a0\u2007\u2009\u202f]")
UNICODE_MINUS = "\u2212"
ARABIC_DECIMAL = "\u066b"
ARABIC_GROUP = "\u066c"

_PERCENT_RE = re.compile(r"%|％|\b(?:pct|percent|per\s*cento)\b")
_PERMILLE_RE = re.compile(r"‰|\b(?:permille|per\s*mille)\b")
_BASIS_POINT_RE = re.compile(r"‱|\bbps?\b|\bbasis\s*points?\b")
_UNIT_TOKEN_RE = re.compile(
    r"%|％|‰|‱|\bbps?\b|\bbasis\s*points?\b|\bpct\b|\bpercent\b"
    r"|\bper\s*cento\b|\bpermille\b|\bper\s*mille\b"
)


def normalize_digits(text: str) -> str:
    """Map every decimal digit of any script to ASCII and drop bidi marks."""
    text = BIDI_CONTROLS.sub("", str(text))
    if text.isascii():
        return text
    out = []
    for ch in text:
        if not ch.isascii() and unicodedata.category(ch) == "Nd":
            out.append(str(unicodedata.decimal(ch)))
        else:
            out.append(ch)
    return "".join(out)


def normalize_punctuation(text: str, options: MaskOptions) -> str:
    """Spaces, the Unicode minus, custom sign glyphs and Arabic separators."""
    text = SPACE_VARIANTS.sub(" ", text).replace(UNICODE_MINUS, "-")
    if options.neg_symbol != "-":
        text = text.replace(options.neg_symbol, "-")
    if options.pos_symbol != "+":
        text = text.replace(options.pos_symbol, "+")
    if ARABIC_DECIMAL in text:
        text = text.replace(ARABIC_DECIMAL, options.decimal_char)
    if options.group and ARABIC_GROUP in text:
        text = text.replace(ARABIC_GROUP, options.group)
    return text


def parens_to_sign(text: str, options: MaskOptions) -> str:
    """Rewrite a parenthesised negative being edited (``(1,2345``) as ``-1,2345``.

    Only a leading opening glyph counts; the first closing glyph after it is dropped
    wherever the caret left it.
    """
    if options.negative_style != NegativeStyle.PARENS:
        return text
    body = text.lstrip()
    if not body.startswith(options.paren_open):
        return text
    body = body[len(options.paren_open):].replace(options.paren_close, "", 1)
    return "-" + body.lstrip()


def signed_prefix_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(r"^([+-])\s*" + re.escape(prefix))


def strip_prefix(text: str, options: MaskOptions) -> str:
    """Remove the prefix, keeping a sign typed in front of it (``-€ 12`` -> ``-12``)."""
    prefix = options.prefix
    if not prefix:
        return text
    if text.startswith(prefix):
        return text[len(prefix):]
    match = signed_prefix_pattern(prefix).match(text)
    if match:
        return match.group(1) + text[match.end():]
    return text


def strip_suffix(text: str, options: MaskOptions) -> str:
    if options.suffix and text.endswith(options.suffix):
        return text[: -len(options.suffix)]
    return text


def strip_decorations(text: str, options: MaskOptions) -> str:
    return strip_suffix(strip_prefix(text, options), options)


def detect_unit_scale(text: str) -> float:
    """Scale implied by an explicit unit token: ``%`` 0.01, ``‰`` 0.001, ``bp`` 0.0001."""
    lowered = str(text).lower()
    if _PERMILLE_RE.search(lowered):
        return 0.001
    if _BASIS_POINT_RE.search(lowered):
        return 0.0001
    if _PERCENT_RE.search(lowered):
        return 0.01
    return 1.0


def has_unit_token(text: str) -> bool:
    return bool(_UNIT_TOKEN_RE.search(str(text).lower()))


def count_digits(text: str) -> int:
    return sum(1 for ch in text if "0" <= ch <= "9")
