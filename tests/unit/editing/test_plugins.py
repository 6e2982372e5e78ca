"""Test the plugin registry and hook runner."""
import pytest
from structlog.testing import capture_logs

from numeric_mask.editing.plugins import Hook, PluginRegistry
from tests.factories import make_plugin


class TestRegistration:
    def test_use_and_names(self, plugin_registry):
        plugin_registry.use(make_plugin("a"))
        plugin_registry.use(make_plugin("b"))
        assert plugin_registry.names() == ["a", "b"]
        assert len(plugin_registry) == 2

    def test_same_name_replaces_in_place(self, plugin_registry):
        first = make_plugin("a", version="1")
        second = make_plugin("a", version="2")
        plugin_registry.use(first)
        plugin_registry.use(make_plugin("b"))
        plugin_registry.use(second)
        assert plugin_registry.names() == ["a", "b"]
        assert plugin_registry.get("a") is second

    def test_name_required(self, plugin_registry):
        with pytest.raises(ValueError):
            plugin_registry.use(make_plugin(""))

    def test_remove(self, plugin_registry):
        plugin_registry.use(make_plugin("a"))
        assert plugin_registry.remove("a") is True
        assert plugin_registry.remove("a") is False
        assert not plugin_registry.has("a")

    def test_describe(self):
        registry = PluginRegistry([make_plugin("fmt", version="2", format_string=lambda **_: None)])
        assert registry.describe() == [{"name": "fmt", "version": "2", "hooks": ["format_string"]}]


class TestRun:
    def test_no_plugins_passthrough(self, plugin_registry):
        result = plugin_registry.run(Hook.STEP, base_step=1)
        assert result == {"base_step": 1, "changed": False}

    def test_results_merge_in_order(self):
        registry = PluginRegistry(
            [
                make_plugin("double", step=lambda base_step, **_: {"step": base_step * 2}),
                make_plugin("plus", step=lambda step=None, **_: {"step": step + 1}),
            ]
        )
        result = registry.run(Hook.STEP, base_step=5)
        assert result["step"] == 11
        assert result["changed"] is True

    def test_block_short_circuits(self):
        later = []
        registry = PluginRegistry(
            [
                make_plugin("guard", live_validate=lambda **_: {"block": True, "reason": "odd"}),
                make_plugin("later", live_validate=lambda **ctx: later.append(ctx)),
            ]
        )
        result = registry.run(Hook.LIVE_VALIDATE, value=3)
        assert result == {"block": True, "reason": "odd"}
        assert later == []

    def test_stop_short_circuits(self):
        registry = PluginRegistry(
            [
                make_plugin("stopper", format_string=lambda **_: {"stop": True, "string": "x"}),
                make_plugin("never", format_string=lambda **_: {"string": "y"}),
            ]
        )
        assert registry.run(Hook.FORMAT_STRING, string="1")["string"] == "x"

    def test_failing_hook_is_skipped(self):
        def boom(**_):
            raise RuntimeError("broken")

        registry = PluginRegistry(
            [make_plugin("bad", step=boom), make_plugin("good", step=lambda **_: {"step": 3})]
        )
        with capture_logs() as logs:
            result = registry.run(Hook.STEP, base_step=1)
        assert result["step"] == 3
        assert any(entry["event"] == "plugin_hook_failed" for entry in logs)

    def test_missing_hook_ignored(self):
        registry = PluginRegistry([make_plugin("other")])
        assert registry.run(Hook.BLUR_VALIDATE, value=1)["changed"] is False
