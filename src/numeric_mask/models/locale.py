"""Locale-derived separator pair."""

from __future__ import annotations

from pydantic import BaseModel


class LocaleSeparators(BaseModel):
    """Decimal and grouping symbols reported for a locale."""

    locale: str = "en_US"
    decimal: str = "."
    group: str = ","
