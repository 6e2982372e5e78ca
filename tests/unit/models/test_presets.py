"""Test the preset registry."""
import pytest

from numeric_mask.models.presets import CURRENCY_PRESETS, PRESETS, PresetRegistry


class TestBuiltins:
    def test_currencies_are_presets(self):
        assert CURRENCY_PRESETS <= set(PRESETS)

    def test_lookup_is_case_insensitive(self, preset_registry):
        assert preset_registry.get(" USD ")["prefix"] == "$ "
        assert "Eur" in preset_registry

    def test_unknown_and_empty(self, preset_registry):
        assert preset_registry.get("xyz") is None
        assert preset_registry.get(None) is None
        assert preset_registry.get("") is None
        assert 42 not in preset_registry

    def test_lookup_returns_copy(self, preset_registry):
        preset_registry.get("usd")["digits"] = 9
        assert preset_registry.get("usd")["digits"] == 2
        assert PRESETS["usd"]["digits"] == 2


class TestRegistration:
    def test_register_and_unregister(self, preset_registry):
        preset_registry.register("Qty", {"digits": 3})
        assert preset_registry.get("qty") == {"digits": 3}
        assert preset_registry.unregister("QTY") is True
        assert preset_registry.get("qty") is None

    def test_builtins_cannot_be_removed(self, preset_registry):
        assert preset_registry.unregister("usd") is False
        assert preset_registry.unregister("missing") is False

    def test_overwrite_builtin(self, preset_registry):
        preset_registry.register("num", {"digits": 1})
        assert preset_registry.get("num") == {"digits": 1}
        assert preset_registry.unregister("num") is False

    def test_extend(self, preset_registry):
        preset_registry.extend("usd0", "usd", digits=0)
        values = preset_registry.get("usd0")
        assert values["prefix"] == "$ "
        assert values["digits"] == 0

    def test_extend_unknown_base(self, preset_registry):
        with pytest.raises(KeyError):
            preset_registry.extend("x", "nope")

    def test_empty_name_rejected(self, preset_registry):
        with pytest.raises(ValueError):
            preset_registry.register("  ", {})

    def test_constructor_presets(self):
        registry = PresetRegistry({"pct1": {"suffix": "%", "digits": 1}})
        assert "pct1" in registry
        assert "pct1" in registry.names()

    def test_registries_are_independent(self):
        first = PresetRegistry()
        first.register("only-here", {"digits": 4})
        assert "only-here" not in PresetRegistry()
