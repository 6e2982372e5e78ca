"""Grouping of integer digit runs: standard thousands, Indian lakh/crore, custom patterns."""

from __future__ import annotations

import re
from typing import Sequence

from ..models.options import GroupStyle, MaskOptions

_THOUSANDS = re.compile(r"\B(?=(\d{3})+(?!\d))")


def group_by_pattern(core: str, separator: str, pattern: Sequence[int]) -> str:
    """Group *core* right-to-left by *pattern*; the last size repeats.

    >>> group_by_pattern("1234567", ",", [3, 2])
    '12,34,567'
    """
    chunks: list[str] = []
    end = len(core)
    index = 0
    while end > 0:
        size = pattern[min(index, len(pattern) - 1)]
        start = max(0, end - size)
        chunks.append(core[start:end])
        end = start
        index += 1
    return separator.join(reversed(chunks))


def group_integer(int_part: str, options: MaskOptions) -> str:
    """Insert grouping separators into an integer digit string (an ASCII sign is kept)."""
    if not options.group:
        return int_part
    sign = ""
    core = int_part or ""
    if core[:1] in ("-", "+"):
        sign, core = core[0], core[1:]
    if not core:
        return sign
    if options.group_pattern:
        return sign + group_by_pattern(core, options.group, options.group_pattern)
    if options.group_style == GroupStyle.INDIAN:
        if len(core) <= 3:
            return sign + core
        head = group_by_pattern(core[:-3], options.group, (2,))
        return sign + head + options.group + core[-3:]
    return sign + _THOUSANDS.sub(options.group, core)
