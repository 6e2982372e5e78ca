"""Validation chain: schema -> plugin hook -> before-change gate.

Each stage raises a :class:`~numeric_mask.errors.MaskViolation` on rejection; the
first failure wins. The pipeline catches violations at its entry points.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from ..errors import BlockReason, GateVetoed, HookRejected, SchemaViolation
from ..models.options import MaskOptions
from ..numeric.engines import MathEngine, get_engine
from ..numeric.rounding import is_finite_number
from .plugins import Hook, PluginRegistry

logger = structlog.get_logger(__name__)

DEFAULT_SCHEMA_MESSAGE = "Invalid by schema"


def validate_schema(value, options: MaskOptions, engine: MathEngine | None = None) -> str | None:
    """Return the failure message when *value* breaks the schema rule, else ``None``.

    Non-numeric values (an empty commit) are never checked.
    """
    rule = options.schema_rule
    if rule is None or not is_finite_number(value):
        return None
    message = rule.custom_message or DEFAULT_SCHEMA_MESSAGE
    if rule.allowed_range is not None:
        low, high = rule.allowed_range
        if is_finite_number(low) and value < low:
            return message
        if is_finite_number(high) and value > high:
            return message
    if rule.multiple_of is not None:
        engine = engine or get_engine(options.math_engine)
        if not engine.is_multiple(value, rule.multiple_of):
            return message
    if rule.disallow is not None and rule.disallow(value):
        return message
    return None


def apply_before_change(hook: Callable[..., Any] | None, value, previous) -> tuple[bool, Any]:
    """Evaluate the change gate.

    ``True``/``None`` accept, ``False`` or ``{"ok": False}`` veto (the previous
    value is returned), ``{"value": x}`` accepts ``x`` instead.
    """
    if hook is None:
        return True, value
    result = hook(value, previous)
    if result is False:
        return False, previous
    if isinstance(result, dict):
        if result.get("ok") is False:
            return False, previous
        return True, result.get("value", value)
    return True, value


class ValidationChain:
    """Ordered checks bound to one options snapshot."""

    def __init__(
        self,
        options: MaskOptions,
        plugins: PluginRegistry | None = None,
        engine: MathEngine | None = None,
    ):
        self.options = options
        self.plugins = plugins or PluginRegistry()
        self.engine = engine or get_engine(options.math_engine)

    def schema(self, value) -> None:
        try:
            message = validate_schema(value, self.options, self.engine)
        except Exception as e:
            logger.warning("schema_predicate_failed", error=str(e))
            message = str(e) or DEFAULT_SCHEMA_MESSAGE
        if message is not None:
            raise SchemaViolation(attempted=value, message=message)

    def hook(self, hook: Hook, value, **context: Any):
        """Run a validation hook; returns the (possibly substituted) value."""
        result = self.plugins.run(hook, value=value, options=self.options, **context)
        if result.get("block"):
            raise HookRejected(attempted=value, reason=result.get("reason") or BlockReason.PLUGIN)
        substituted = result.get("value")
        return value if substituted is None else substituted

    def gate(self, value, previous):
        try:
            ok, gated = apply_before_change(self.options.before_change, value, previous)
        except Exception as e:
            logger.warning("before_change_failed", error=str(e))
            raise GateVetoed(attempted=value) from e
        if not ok:
            raise GateVetoed(attempted=value)
        return gated

    def live(self, value, **context: Any):
        """Typing-stage schema and ``live_validate`` hook."""
        self.schema(value)
        return self.hook(Hook.LIVE_VALIDATE, value, phase="live", **context)

    def commit(self, value, previous, phase: str = "blur", **context: Any):
        """Full chain for blur, paste and programmatic commits."""
        self.schema(value)
        value = self.hook(Hook.BLUR_VALIDATE, value, phase=phase, **context)
        return self.gate(value, previous)
