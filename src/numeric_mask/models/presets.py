"""Named option presets (currencies, percent, plain numbers) with a caller-owned registry."""
from __future__ import annotations

import copy

import structlog

logger = structlog.get_logger(__name__)

PRESETS: dict[str, dict] = {
    "eur": {"prefix": "€ ", "digits": 2, "decimal": ",", "group": ".", "group_style": "standard"},
    "per": {"suffix": "%", "digits": 0, "min": 0, "max": 100},
    "dec": {"digits": 2},
    "num": {"digits": 0},
    "usd": {"prefix": "$ ", "digits": 2, "decimal": ".", "group": ",", "group_style": "standard"},
    "inr": {"prefix": "₹ ", "digits": 2, "decimal": ".", "group": ",", "group_style": "indian"},
    "jpy": {"prefix": "¥ ", "digits": 0, "decimal": ".", "group": ",", "group_style": "standard"},
    "gbp": {"prefix": "£ ", "digits": 2, "decimal": ".", "group": ",", "group_style": "standard"},
    "chf": {"prefix": "CHF ", "digits": 2, "decimal": ".", "group": "'", "group_style": "standard"},
}

# Currency presets only fill fields the caller did not set explicitly.
CURRENCY_PRESETS = frozenset({"eur", "usd", "inr", "jpy", "gbp", "chf"})


class PresetRegistry:
    """Manages option presets by name.

    Built-in presets can be extended but never removed. Lookups always return a
    copy so callers cannot mutate the registry through a returned mapping.
    """

    def __init__(self, presets: dict[str, dict] | None = None):
        self._builtin = frozenset(PRESETS)
        self._presets: dict[str, dict] = copy.deepcopy(PRESETS)
        for name, values in (presets or {}).items():
            self.register(name, values)

    def register(self, name: str, values: dict) -> None:
        """Register or overwrite the preset *name*."""
        key = self._key(name)
        self._presets[key] = dict(values)
        logger.debug("preset_registered", preset=key, fields=sorted(values))

    def extend(self, name: str, base: str, **values) -> None:
        """Register *name* as a copy of preset *base* with *values* layered on top."""
        merged = self.get(base)
        if merged is None:
            raise KeyError(f"Unknown base preset: {base}")
        merged.update(values)
        self.register(name, merged)

    def unregister(self, name: str) -> bool:
        """Remove a user preset. Returns False for unknown or built-in names."""
        key = self._key(name)
        if key in self._builtin or key not in self._presets:
            return False
        del self._presets[key]
        return True

    def get(self, name: str | None) -> dict | None:
        if not name:
            return None
        values = self._presets.get(self._key(name))
        return dict(values) if values is not None else None

    def names(self) -> list[str]:
        return list(self._presets)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._presets

    @staticmethod
    def _key(name: str) -> str:
        key = str(name).strip().lower()
        if not key:
            raise ValueError("Preset name must not be empty")
        return key
