"""Caller-owned ordered registry of named policy hooks."""
from __future__ import annotations

from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)


class Hook(StrEnum):
    LIVE_VALIDATE = "live_validate"
    BLUR_VALIDATE = "blur_validate"
    FORMAT_STRING = "format_string"
    STEP = "step"
    TRANSFORM_PASTE_TEXT = "transform_paste_text"


@runtime_checkable
class MaskPlugin(Protocol):
    """A named object implementing any subset of the :class:`Hook` methods.

    Each hook receives the accumulated context as keyword arguments and may return
    ``None`` (pass through) or a mapping such as ``{"block": True, "reason": ...}``,
    ``{"value": ...}``, ``{"string": ...}``, ``{"step": ...}`` or ``{"text": ...}``.
    """

    name: str


class PluginRegistry:
    """Runs hooks over registered plugins in registration order.

    Results are merged into the context seen by later plugins. A result carrying
    ``block`` or ``stop`` ends the run and is returned as-is.
    """

    def __init__(self, plugins: list[MaskPlugin] | None = None):
        self._plugins: list[MaskPlugin] = []
        for plugin in plugins or []:
            self.use(plugin)

    def use(self, plugin: MaskPlugin) -> None:
        """Register *plugin*, replacing one with the same name in place."""
        name = getattr(plugin, "name", None)
        if not name:
            raise ValueError("Plugins need a non-empty 'name'")
        for idx, existing in enumerate(self._plugins):
            if existing.name == name:
                self._plugins[idx] = plugin
                return
        self._plugins.append(plugin)

    def remove(self, name: str) -> bool:
        before = len(self._plugins)
        self._plugins = [p for p in self._plugins if p.name != name]
        return len(self._plugins) != before

    def names(self) -> list[str]:
        return [p.name for p in self._plugins]

    def get(self, name: str) -> MaskPlugin | None:
        return next((p for p in self._plugins if p.name == name), None)

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "name": p.name,
                "version": getattr(p, "version", None),
                "hooks": [h.value for h in Hook if callable(getattr(p, h.value, None))],
            }
            for p in self._plugins
        ]

    def run(self, hook: Hook | str, **context: Any) -> dict[str, Any]:
        """Invoke *hook* on every plugin implementing it.

        Returns the merged context plus ``changed`` (whether any plugin returned a
        result), or the first blocking/stopping result unchanged.
        """
        acc = dict(context)
        changed = False
        for plugin in self._plugins:
            fn = getattr(plugin, str(hook), None)
            if not callable(fn):
                continue
            try:
                result = fn(**acc)
            except Exception as e:
                logger.warning("plugin_hook_failed", plugin=plugin.name, hook=str(hook), error=str(e))
                continue
            if not result:
                continue
            if result.get("stop") is True or result.get("block") is True:
                return dict(result)
            acc.update(result)
            changed = True
        acc["changed"] = changed
        return acc

    def __len__(self) -> int:
        return len(self._plugins)
