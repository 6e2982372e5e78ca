"""Library configuration via environment variables with NUMERIC_MASK_ prefix."""

from __future__ import annotations

from typing import Any, Literal

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .formatting.locale_detection import infer_separators
from .models.options import MaskOptions, ParsePercent
from .models.presets import CURRENCY_PRESETS, PresetRegistry
from .numeric.rounding import RoundMode

logger = structlog.get_logger(__name__)


class Settings(BaseSettings):
    """Process-wide defaults for every numeric field.

    All settings are read from environment variables prefixed with
    ``NUMERIC_MASK_``. They only seed option resolution; a surface's own overrides
    always win.
    """

    model_config = SettingsConfigDict(env_prefix="NUMERIC_MASK_")

    # ── Logging ─────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True

    # ── Locale ──────────────────────────────────────────────────────────────
    decimal: str = ","
    group: str = "."
    # When enabled, separators come from Babel unless set explicitly
    detect_locale: bool = False
    locale: str = "en_US"

    # ── Numbers ─────────────────────────────────────────────────────────────
    digits: int = Field(default=0, ge=0)
    round_mode: RoundMode = RoundMode.HALF_UP
    math_engine: Literal["number", "decimal", "big"] = "number"
    parse_percent: ParsePercent = ParsePercent.SYMBOL_ONLY

    # ── Editing ─────────────────────────────────────────────────────────────
    history_limit: int = Field(default=50, ge=1)
    live_debounce_ms: int = Field(default=0, ge=0)

    def option_defaults(self) -> dict[str, Any]:
        """Defaults mapping fed to :func:`resolve_options`."""
        return {
            "decimal": self.decimal,
            "group": self.group,
            "digits": self.digits,
            "round_mode": str(self.round_mode),
            "math_engine": self.math_engine,
            "parse_percent": str(self.parse_percent),
            "history_limit": self.history_limit,
            "live_debounce_ms": self.live_debounce_ms,
        }


def resolve_options(
    defaults: dict[str, Any] | None = None,
    preset: str | None = None,
    currency: str | None = None,
    registry: PresetRegistry | None = None,
    locale: str | None = None,
    **overrides: Any,
) -> MaskOptions:
    """Merge defaults < preset < currency fill-ins < locale separators < overrides.

    A currency preset only fills fields the caller did not set explicitly. Locale
    separators are applied when *locale* is given and neither separator was
    overridden. An unknown preset name is ignored.
    """
    registry = registry or PresetRegistry()
    merged: dict[str, Any] = dict(defaults or {})

    if preset:
        values = registry.get(preset)
        if values is None:
            logger.warning("unknown_preset", preset=preset)
        else:
            merged.update(values)

    if currency:
        values = registry.get(currency) if currency.lower() in CURRENCY_PRESETS or currency in registry else None
        if values is None:
            logger.warning("unknown_preset", preset=currency)
        else:
            merged.update({k: v for k, v in values.items() if k not in overrides})

    if locale and "decimal" not in overrides and "group" not in overrides:
        separators = infer_separators(locale)
        merged["decimal"] = separators.decimal
        merged["group"] = separators.group

    merged.update(overrides)
    return MaskOptions(**merged)


def options_from_settings(settings: Settings | None = None, preset: str | None = None, **overrides: Any) -> MaskOptions:
    """Build options from environment settings, honouring locale detection."""
    settings = settings or Settings()
    return resolve_options(
        settings.option_defaults(),
        preset=preset,
        locale=settings.locale if settings.detect_locale else None,
        **overrides,
    )
