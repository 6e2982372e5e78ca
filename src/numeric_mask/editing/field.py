"""One attached numeric input surface.

``NumericField`` owns the visible text, caret/selection and :class:`FieldState` of a
single surface and feeds surface events through a :class:`LiveEditPipeline`. It is
the seam a UI adapter talks to: the adapter forwards events and mirrors ``text`` and
``caret`` back into the real widget, observers subscribe to notifications.
"""

from __future__ import annotations

import itertools
import time
from typing import Any, Callable

import structlog

from ..config import resolve_options
from ..models.options import MaskOptions
from ..models.presets import PresetRegistry
from ..models.state import EditResult, FieldState, KeyPress, Notification, NotificationKind
from ..numeric.engines import MathEngine
from ..numeric.rounding import is_finite_number
from ..utils.logging import field_context
from .debounce import LiveNotifier, Scheduler
from .pipeline import LiveEditPipeline
from .plugins import PluginRegistry

logger = structlog.get_logger(__name__)

Listener = Callable[[Notification], None]

_ids = itertools.count(1)


class NumericField:
    """Stateful wrapper around the pure pipeline transitions."""

    def __init__(
        self,
        text: str = "",
        *,
        defaults: dict[str, Any] | None = None,
        preset: str | None = None,
        currency: str | None = None,
        registry: PresetRegistry | None = None,
        plugins: PluginRegistry | None = None,
        engine: MathEngine | None = None,
        coarse_pointer: bool = False,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Scheduler | None = None,
        locale: str | None = None,
        field_id: str | None = None,
        **overrides: Any,
    ):
        self.field_id = field_id or f"field-{next(_ids)}"
        self._defaults = dict(defaults or {})
        self._preset = preset
        self._currency = currency
        self._registry = registry or PresetRegistry()
        self._locale = locale
        self._overrides = dict(overrides)
        self._plugins = plugins or PluginRegistry()
        self._engine = engine
        self._coarse_pointer = coarse_pointer
        self._clock = clock
        self._scheduler = scheduler
        self._listeners: list[Listener] = []

        self.text = ""
        self.caret = 0
        self.selection: tuple[int, int] | None = None
        self.state = FieldState()
        self.attached = True

        self.options = self._resolve()
        self._rebuild()
        with field_context(self.field_id):
            self._apply(self.pipeline.initialize(text))
            logger.debug("field_attached", text=self.text)

    # ── Wiring ──────────────────────────────────────────────────────────────

    def _resolve(self) -> MaskOptions:
        return resolve_options(
            self._defaults,
            preset=self._preset,
            currency=self._currency,
            registry=self._registry,
            locale=self._locale,
            **self._overrides,
        )

    def _rebuild(self) -> None:
        self.pipeline = LiveEditPipeline(
            self.options,
            plugins=self._plugins,
            engine=self._engine,
            coarse_pointer=self._coarse_pointer,
            clock=self._clock,
        )
        previous = getattr(self, "_notifier", None)
        if previous is not None:
            previous.cancel()
        self._notifier = LiveNotifier(self.options.live_debounce_ms, self._emit, self._scheduler)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for every notification; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, notification: Notification) -> None:
        for listener in list(self._listeners):
            listener(notification)

    def _apply(self, result: EditResult) -> EditResult:
        self.text = result.text
        self.caret = result.caret
        self.selection = result.selection
        self.state = result.state
        for notification in result.notifications:
            if notification.kind == NotificationKind.LIVE:
                self._notifier.schedule(notification)
            else:
                self._emit(notification)
        return result

    def _run(self, transition: Callable[..., EditResult], *args: Any) -> EditResult:
        with field_context(self.field_id):
            return self._apply(transition(self.state, *args))

    # ── Surface events ──────────────────────────────────────────────────────

    def focus(self) -> EditResult:
        return self._run(self.pipeline.on_focus, self.text)

    def blur(self) -> EditResult:
        return self._run(self.pipeline.on_blur, self.text)

    def edit(self, text: str, caret: int | None = None, deletion: bool = False) -> EditResult:
        """The surface text changed to *text* with the caret at *caret*."""
        caret = len(text) if caret is None else caret
        return self._run(self.pipeline.on_text_changed, text, caret, deletion)

    def insert(self, chars: str) -> EditResult:
        """Type *chars* at the caret, replacing the current selection."""
        start, end = self.selection or (self.caret, self.caret)
        text = self.text[:start] + chars + self.text[end:]
        return self.edit(text, start + len(chars))

    def delete_backward(self) -> EditResult:
        start, end = self.selection or (max(0, self.caret - 1), self.caret)
        text = self.text[:start] + self.text[end:]
        return self.edit(text, start, deletion=True)

    def compose_start(self) -> EditResult:
        return self._run(self.pipeline.on_composition_start, self.text, self.caret)

    def compose_end(self, text: str | None = None, caret: int | None = None) -> EditResult:
        text = self.text if text is None else text
        caret = len(text) if caret is None else caret
        return self._run(self.pipeline.on_composition_end, text, caret)

    def key_down(self, key: KeyPress | str, **modifiers: Any) -> EditResult:
        press = key if isinstance(key, KeyPress) else KeyPress(key=key, **modifiers)
        return self._run(self.pipeline.on_key_down, self.text, self.caret, press)

    def key_up(self, key: KeyPress | str) -> EditResult:
        return self._run(self.pipeline.on_key_up, self.text, self.caret, key)

    def wheel(self, delta_y: float, shift: bool = False) -> EditResult:
        return self._run(self.pipeline.on_wheel, self.text, self.caret, delta_y, shift)

    def paste(self, pasted: str) -> EditResult:
        return self._run(self.pipeline.on_paste, self.text, self.caret, pasted)

    def copy(self) -> str | None:
        """Text for the clipboard when ``copy_raw`` is on, else ``None``."""
        return self._run(self.pipeline.on_copy, self.text, self.caret).clipboard

    # ── Programmatic API ────────────────────────────────────────────────────

    @property
    def value(self):
        return self.pipeline.get_value(self.state, self.text)

    def set_value(self, value) -> EditResult:
        return self._run(self.pipeline.set_value, self.text, value)

    def undo(self) -> EditResult:
        return self._run(self.pipeline.undo, self.text, self.caret)

    def redo(self) -> EditResult:
        return self._run(self.pipeline.redo, self.text, self.caret)

    def lock(self) -> EditResult:
        return self._run(self.pipeline.lock, self.text)

    def unlock(self) -> EditResult:
        return self._run(self.pipeline.unlock, self.text)

    def update(self, **overrides: Any) -> EditResult:
        """Layer *overrides* onto the declared ones and re-render silently."""
        self._overrides.update(overrides)
        return self.refresh()

    def refresh(self, defaults: dict[str, Any] | None = None) -> EditResult:
        """Recompute options from (new) defaults plus this field's declared overrides."""
        if defaults is not None:
            self._defaults = dict(defaults)
        # read with the old separators before they change
        value = self.value
        self.options = self._resolve()
        self._rebuild()
        text = self.pipeline.format(value) if is_finite_number(value) and self.text.strip() else self.text
        with field_context(self.field_id):
            logger.debug("field_refreshed", overrides=sorted(self._overrides))
            return self._apply(self.pipeline.reformat(self.state, text))

    def detach(self) -> None:
        """Drop pending live notifications and every listener."""
        self._notifier.cancel()
        self._listeners.clear()
        self.attached = False
        logger.debug("field_detached", field_id=self.field_id)
