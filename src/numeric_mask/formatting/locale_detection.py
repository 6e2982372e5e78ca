"""Decimal/grouping separators for a locale via Babel (CLDR data)."""
from __future__ import annotations

import structlog
from babel import Locale, UnknownLocaleError
from babel.numbers import get_decimal_symbol, get_group_symbol

from ..models.locale import LocaleSeparators

logger = structlog.get_logger(__name__)

FALLBACK_LOCALE = "en_US"


def infer_separators(locale: str | None = None) -> LocaleSeparators:
    """Read the separators of *locale* (``it-IT``, ``de_CH``, ``hi``...).

    Unknown or malformed locale names fall back to ``en_US`` (``.`` / ``,``).
    """
    name = str(locale or FALLBACK_LOCALE).strip().replace("-", "_")
    try:
        parsed = Locale.parse(name)
        return LocaleSeparators(
            locale=str(parsed),
            decimal=get_decimal_symbol(parsed),
            group=get_group_symbol(parsed),
        )
    except (UnknownLocaleError, ValueError, TypeError) as exc:
        logger.debug("locale_detection_failed", locale=name, error=str(exc))
        return LocaleSeparators(locale=FALLBACK_LOCALE, decimal=".", group=",")
