"""Test schema checks, the change gate and the ordered validation chain."""
import pytest

from numeric_mask.editing.plugins import PluginRegistry
from numeric_mask.editing.validation import ValidationChain, apply_before_change, validate_schema
from numeric_mask.errors import BlockReason, GateVetoed, HookRejected, SchemaViolation
from numeric_mask.models.options import SchemaRule
from tests.factories import make_options, make_plugin


class TestValidateSchema:
    def test_no_rule(self):
        assert validate_schema(5, make_options()) is None

    def test_allowed_range(self):
        opts = make_options(schema_rule=SchemaRule(allowed_range=(1, 10)))
        assert validate_schema(5, opts) is None
        assert validate_schema(0, opts) == "Invalid by schema"
        assert validate_schema(11, opts) is not None

    def test_open_ended_range(self):
        opts = make_options(schema_rule=SchemaRule(allowed_range=(None, 10)))
        assert validate_schema(-1000, opts) is None

    def test_multiple_of_with_tolerance(self):
        opts = make_options(digits=2, schema_rule=SchemaRule(multiple_of=0.05))
        assert validate_schema(0.15, opts) is None
        assert validate_schema(0.17, opts) is not None

    def test_custom_predicate_and_message(self):
        rule = SchemaRule(disallow=lambda v: v == 13, custom_message="Unlucky")
        opts = make_options(schema_rule=rule)
        assert validate_schema(13, opts) == "Unlucky"
        assert validate_schema(12, opts) is None

    def test_empty_commit_skipped(self):
        opts = make_options(schema_rule=SchemaRule(allowed_range=(1, 10)))
        assert validate_schema(None, opts) is None


class TestApplyBeforeChange:
    def test_no_gate(self):
        assert apply_before_change(None, 5, 1) == (True, 5)

    def test_true_and_none_accept(self):
        assert apply_before_change(lambda v, p: True, 5, 1) == (True, 5)
        assert apply_before_change(lambda v, p: None, 5, 1) == (True, 5)

    def test_false_vetoes(self):
        assert apply_before_change(lambda v, p: False, 5, 1) == (False, 1)
        assert apply_before_change(lambda v, p: {"ok": False}, 5, 1) == (False, 1)

    def test_substitute(self):
        assert apply_before_change(lambda v, p: {"value": 7}, 5, 1) == (True, 7)


class TestValidationChain:
    def test_schema_first(self):
        calls = []
        plugins = PluginRegistry([make_plugin("spy", blur_validate=lambda **ctx: calls.append(ctx))])
        opts = make_options(schema_rule=SchemaRule(allowed_range=(0, 10)), before_change=lambda v, p: calls.append(v))
        chain = ValidationChain(opts, plugins)
        with pytest.raises(SchemaViolation) as exc:
            chain.commit(20, None)
        assert exc.value.reason == BlockReason.SCHEMA
        assert calls == []

    def test_hook_blocks_before_gate(self):
        gate_calls = []
        plugins = PluginRegistry([make_plugin("guard", blur_validate=lambda **_: {"block": True})])
        opts = make_options(before_change=lambda v, p: gate_calls.append(v))
        with pytest.raises(HookRejected) as exc:
            ValidationChain(opts, plugins).commit(5, None)
        assert exc.value.reason == BlockReason.PLUGIN
        assert gate_calls == []

    def test_hook_reason_forwarded(self):
        plugins = PluginRegistry([make_plugin("guard", live_validate=lambda **_: {"block": True, "reason": "odd"})])
        with pytest.raises(HookRejected) as exc:
            ValidationChain(make_options(), plugins).live(3)
        assert exc.value.reason == "odd"

    def test_hook_substitutes_value(self):
        plugins = PluginRegistry([make_plugin("cap", blur_validate=lambda value, **_: {"value": min(value, 50)})])
        assert ValidationChain(make_options(), plugins).commit(80, None) == 50

    def test_gate_veto(self):
        opts = make_options(before_change=lambda v, p: v < 100)
        chain = ValidationChain(opts)
        assert chain.commit(50, None) == 50
        with pytest.raises(GateVetoed) as exc:
            chain.commit(500, 50)
        assert exc.value.reason == BlockReason.BEFORE_CHANGE
        assert exc.value.attempted == 500

    def test_gate_exception_is_veto(self):
        def broken(value, previous):
            raise RuntimeError("nope")

        with pytest.raises(GateVetoed):
            ValidationChain(make_options(before_change=broken)).gate(1, 0)

    def test_failing_schema_predicate_is_violation(self):
        def broken(value):
            raise ValueError("bad predicate")

        opts = make_options(schema_rule=SchemaRule(disallow=broken))
        with pytest.raises(SchemaViolation) as exc:
            ValidationChain(opts).schema(1)
        assert str(exc.value) == "bad predicate"

    def test_live_does_not_run_gate(self):
        opts = make_options(before_change=lambda v, p: False)
        assert ValidationChain(opts).live(5) == 5
