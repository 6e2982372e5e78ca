"""Test data factories for building options, pipelines and fake collaborators."""
from types import SimpleNamespace

from numeric_mask.editing.pipeline import LiveEditPipeline
from numeric_mask.editing.plugins import PluginRegistry
from numeric_mask.models.options import MaskOptions


def make_options(**overrides) -> MaskOptions:
    return MaskOptions(**overrides)


def make_usd_options(**overrides) -> MaskOptions:
    values = {"prefix": "$ ", "digits": 2, "decimal": ".", "group": ","}
    values.update(overrides)
    return MaskOptions(**values)


def make_pipeline(plugins=None, clock=None, coarse_pointer=False, **overrides) -> LiveEditPipeline:
    kwargs = {"plugins": plugins, "coarse_pointer": coarse_pointer}
    if clock is not None:
        kwargs["clock"] = clock
    return LiveEditPipeline(make_options(**overrides), **kwargs)


def make_plugin(name: str, **hooks):
    """A plugin object exposing the given hook callables."""
    return SimpleNamespace(name=name, **hooks)


def make_registry(*plugins) -> PluginRegistry:
    return PluginRegistry(list(plugins))


def attach(pipeline: LiveEditPipeline, text: str = ""):
    """Initialize then focus, returning the focused result."""
    result = pipeline.initialize(text)
    return pipeline.on_focus(result.state, result.text)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects scheduled callbacks; ``flush`` runs the ones still pending."""

    def __init__(self):
        self.handles: list[FakeHandle] = []
        self.delays: list[float] = []

    def __call__(self, delay_s, callback):
        handle = FakeHandle(callback)
        self.handles.append(handle)
        self.delays.append(delay_s)
        return handle

    def flush(self) -> int:
        fired = 0
        for handle in list(self.handles):
            if not handle.cancelled:
                handle.cancelled = True
                handle.callback()
                fired += 1
        return fired
