"""Live-edit pipeline: one surface event in, next text/caret/state out.

Every public entry point is a transition ``(FieldState, input) -> EditResult``. The
incoming state is never mutated; each transition works on a deep copy. Violations
raised by the validation chain are caught here and turned into ``blocked``
notifications, so no exception escapes to the caller.

States: ``idle`` (blurred, showing the committed value) -> ``composing`` (IME open,
text passed through untouched) -> ``editing`` (focused, every change reprocessed)
-> ``committing`` (blur or explicit set) -> ``idle``.
"""

from __future__ import annotations

import math
import re
import time
from typing import Callable

import structlog

from ..errors import (
    BlockReason,
    HookRejected,
    LockedSurface,
    MaskViolation,
    ParseRejected,
    RangeViolation,
)
from ..formatting.normalization import (
    SPACE_VARIANTS,
    has_unit_token,
    normalize_digits,
    normalize_punctuation,
    parens_to_sign,
    strip_decorations,
)
from ..formatting.number_format import compose, format_number, plain_digits
from ..formatting.number_parsing import apply_alternate_decimal, parse_number
from ..formatting.grouping import group_integer
from ..models.options import (
    ClampMode,
    EmptyValue,
    LiveMinStrategy,
    MaskOptions,
    MinusBehavior,
    SignPosition,
    ValidationMode,
)
from ..models.state import (
    EditPhase,
    EditResult,
    FieldState,
    History,
    HistoryEntry,
    KeyPress,
    Notification,
    NotificationKind,
    RawContext,
)
from ..numeric.engines import MathEngine, get_engine
from ..numeric.rounding import is_finite_number, step_decimals
from .caret import (
    content_end,
    count_logical_before,
    map_logical_to_index,
    numeric_start,
    sign_in_view,
    wants_preserve_caret,
)
from .plugins import Hook, PluginRegistry
from .validation import ValidationChain

logger = structlog.get_logger(__name__)

_MARK = "\x00"
_NOT_LIVE = re.compile(r"[^\d\x00+-]")
_LATE_SIGNS = re.compile(r"(?!^)[+-]")
_LEADING_ZEROS = re.compile(r"^([+-]?)0+(?=\d)")

ARROW_KEYS = ("ArrowUp", "ArrowDown")
PAGE_KEYS = ("PageUp", "PageDown")

# (held longer than ms, step multiplier), checked in order
ACCELERATION = ((1500, 10), (800, 5), (300, 2))
PAGE_MULTIPLIER = 10
SHIFT_MULTIPLIER = 10
RAW_MIN_DIGITS = 4


def raw_number_text(value) -> str:
    """Plain ``repr``-style text for clipboard export (``1234.0`` -> ``1234``)."""
    if value is None or value == "":
        return ""
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


class LiveEditPipeline:
    """Transition functions for one options snapshot.

    Holds only immutable configuration, the plugin registry, the math engine and a
    clock; all per-surface data travels in :class:`FieldState`.
    """

    def __init__(
        self,
        options: MaskOptions,
        plugins: PluginRegistry | None = None,
        engine: MathEngine | None = None,
        coarse_pointer: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.options = options
        self.plugins = plugins or PluginRegistry()
        self.engine = engine or get_engine(options.math_engine)
        self.chain = ValidationChain(options, self.plugins, self.engine)
        self.coarse_pointer = coarse_pointer
        self.clock = clock

    # ── Rendering helpers ───────────────────────────────────────────────────

    def format(self, value) -> str:
        return format_number(value, self.options, self.engine)

    def parse(self, text) -> float | None:
        return parse_number(text, self.options)

    def render(self, value, phase: str | None = None) -> str:
        """Final text for a committed value (blank-if-zero, ``format_string`` hook)."""
        if value is None or (self.options.blank_if_zero and value == 0):
            out = ""
        else:
            out = self.format(value)
        if phase is not None:
            refined = self.plugins.run(Hook.FORMAT_STRING, string=out, options=self.options, phase=phase)
            if refined.get("string") is not None:
                out = refined["string"]
        return out

    def _round(self, value):
        """Round so the stored value matches what the field displays."""
        o = self.options
        if o.unit_factor == 1 or not is_finite_number(value):
            return self.engine.round(value, o.digits, o.round_mode)
        shown = self.engine.round(value / o.unit_factor, o.digits, o.round_mode)
        # trim float noise from scaling back to value units
        return self.engine.round(shown * o.unit_factor, o.digits + step_decimals(o.unit_factor), o.round_mode)

    def _clamp(self, value):
        return self.engine.clamp(value, self.options.min, self.options.max)

    def _snap(self, value):
        o = self.options
        if is_finite_number(o.step) and o.step > 0:
            return self.engine.round_to_step(value, o.step, o.min, o.round_mode)
        return value

    def _live_digits(self, state: FieldState) -> int:
        if state.raw_context is not None:
            return state.raw_context.digits
        return self.options.digits

    def _fallback_text(self, state: FieldState) -> str:
        """Last accepted value, else the formatted zero/empty fallback."""
        o = self.options
        if state.has_accepted and state.last_accepted is not None:
            return self.render(state.last_accepted)
        if o.keep_empty or o.blank_if_zero:
            return ""
        return self.format(0)

    def _caret_after_revert(self, text: str, logical: int) -> int:
        if wants_preserve_caret(self.options, self.coarse_pointer):
            return map_logical_to_index(text, self.options)(max(0, logical))
        return len(text)

    # ── Notification helpers ────────────────────────────────────────────────

    def _blocked(self, state: FieldState, violation: MaskViolation) -> Notification:
        state.invalid = True
        logger.debug("edit_blocked", reason=violation.reason, attempted=violation.attempted)
        return Notification(
            kind=NotificationKind.BLOCKED,
            reason=violation.reason,
            attempted=violation.attempted if is_finite_number(violation.attempted) else None,
            message=self.options.error_message or str(violation),
            note=self.options.note,
        )

    def _changed(self, value, formatted: str, previous) -> Notification:
        logger.debug("value_committed", value=value, previous=previous)
        return Notification(
            kind=NotificationKind.CHANGED,
            value=value if is_finite_number(value) else None,
            formatted=formatted,
            previous=previous,
        )

    @staticmethod
    def _live(value, formatted: str) -> Notification:
        return Notification(kind=NotificationKind.LIVE, value=value, formatted=formatted)

    def _push_history(self, state: FieldState, text: str, value, caret: int, label: str) -> None:
        if not self.options.history:
            return
        if state.history.limit != self.options.history_limit:
            state.history.limit = self.options.history_limit
        state.history.push(
            HistoryEntry(
                text=text,
                value=value if is_finite_number(value) else None,
                caret=caret,
                timestamp=self.clock(),
                label=label,
            )
        )

    def _locked(self, state: FieldState, text: str, caret: int) -> EditResult:
        notice = self._blocked(state, LockedSurface())
        return EditResult(text=text, caret=caret, state=state, notifications=[notice], handled=True)

    # ── Attach / focus ──────────────────────────────────────────────────────

    def new_state(self) -> FieldState:
        return FieldState(history=History(limit=self.options.history_limit))

    def initialize(self, text: str = "", state: FieldState | None = None) -> EditResult:
        """Render the initial text of a freshly attached surface (silently)."""
        state = self.new_state() if state is None else state.model_copy(deep=True)
        o = self.options
        text = str(text or "")
        empty = text.strip() == ""
        notifications: list[Notification] = []
        if not empty:
            self._push_history(state, text, self.parse(text), len(text), "attach-pre")

        if empty and o.format_empty_on_init and o.empty_value == EmptyValue.ZERO and not o.keep_empty:
            n = self._round(self._snap(self._clamp(0.0)) if o.snap_to_step_on_blur else self._clamp(0.0))
            out = self.render(n)
            state.last_ok = out
            state.accept(n)
        else:
            committed = self._commit(state, text, silent=True)
            state, out, notifications = committed.state, committed.text, committed.notifications
            if not state.has_accepted:
                parsed = self.parse(text)
                if parsed is not None:
                    state.accept(parsed)

        state.phase = EditPhase.IDLE
        self._push_history(state, out, state.last_accepted, len(out), "attach-init")
        return EditResult(text=out, caret=len(out), state=state, notifications=notifications)

    def reformat(self, state: FieldState, text: str) -> EditResult:
        """Silent re-commit after an options change."""
        return self._commit(state.model_copy(deep=True), text, silent=True)

    def on_focus(self, state: FieldState, text: str) -> EditResult:
        state = state.model_copy(deep=True)
        if state.locked:
            return EditResult(text=text, caret=len(text), state=state)
        o = self.options
        state.phase = EditPhase.EDITING
        notifications: list[Notification] = []
        if o.note:
            notifications.append(Notification(kind=NotificationKind.NOTE, note=o.note))
        wants_select = o.select_on_focus or (o.select_on_focus_once and not state.selected_once)
        if wants_select and o.select_on_focus_once:
            state.selected_once = True

        out = text
        if o.raw_on_focus:
            n = state.last_raw if state.last_raw is not None else self.parse(text)
            n = 0.0 if n is None else n
            digits = o.raw_digits if o.raw_digits is not None else max(step_decimals(o.step), o.digits, RAW_MIN_DIGITS)
            state.raw_context = RawContext(digits=digits)
            out = self._plain_view(n, digits)
        elif o.unformat_on_focus:
            n = self.parse(text)
            accepted_zero = (state.last_accepted or 0) == 0
            if n is None and not (o.blank_if_zero and accepted_zero):
                n = 0.0
            if o.blank_if_zero and (n or 0) == 0:
                state.last_ok = ""
                return EditResult(text=text, caret=len(text), state=state, notifications=notifications)
            out = self._plain_view(n, o.digits)

        state.last_ok = out
        selection = self._focus_selection(out) if wants_select else None
        return EditResult(
            text=out,
            caret=selection[1] if selection else len(out),
            selection=selection,
            state=state,
            notifications=notifications,
        )

    def _plain_view(self, value: float, digits: int) -> str:
        """Ungrouped, undecorated text in display units."""
        display = value / self.options.unit_factor
        display = self.engine.round(display, digits, self.options.round_mode)
        sign = "-" if display < 0 else ""
        return sign + plain_digits(display, digits, self.options.decimal_char)

    def _focus_selection(self, text: str) -> tuple[int, int]:
        o = self.options
        if o.select_decimals_only:
            idx = text.rfind(o.decimal_char)
            if idx >= 0:
                return idx + 1, content_end(text, o)
        return 0, len(text)

    # ── Typing ──────────────────────────────────────────────────────────────

    def on_composition_start(self, state: FieldState, text: str, caret: int) -> EditResult:
        state = state.model_copy(deep=True)
        state.phase = EditPhase.COMPOSING
        return EditResult(text=text, caret=caret, state=state)

    def on_composition_end(self, state: FieldState, text: str, caret: int) -> EditResult:
        state = state.model_copy(deep=True)
        state.phase = EditPhase.EDITING
        return self.on_text_changed(state, text, caret)

    def on_text_changed(self, state: FieldState, text: str, caret: int, deletion: bool = False) -> EditResult:
        """Reprocess the visible text after a mutation (the live pipeline)."""
        state = state.model_copy(deep=True)
        text = str(text or "")
        if state.locked:
            notice = self._blocked(state, LockedSurface())
            return EditResult(
                text=state.last_ok,
                caret=min(caret, len(state.last_ok)),
                state=state,
                notifications=[notice],
                handled=True,
            )
        if state.composing:
            return EditResult(text=text, caret=caret, state=state)
        if state.phase == EditPhase.IDLE:
            state.phase = EditPhase.EDITING

        o = self.options
        dec = o.decimal_char
        live_digits = self._live_digits(state)
        decorated = state.raw_context is None
        old = state.last_ok
        preserve = wants_preserve_caret(o, self.coarse_pointer)
        logical_before = count_logical_before(text, caret, o, live_digits) if preserve else 0

        raw = parens_to_sign(normalize_punctuation(normalize_digits(text), o), o)
        if raw.strip() == "":
            wants_empty = o.keep_empty or o.empty_value != EmptyValue.ZERO
            out = "" if wants_empty or o.blank_if_zero else self.format(0)
            if out == old:
                return EditResult(text=out, caret=self._caret_after_revert(out, logical_before), state=state)
            state.last_ok = out
            return EditResult(text=out, caret=len(out), state=state)

        raw = strip_decorations(raw, o)
        if o.accept_both_decimal and live_digits > 0 and not deletion:
            raw = apply_alternate_decimal(
                raw, o, unit_hint=has_unit_token(raw), max_fraction_digits=live_digits
            )
        if o.group:
            raw = raw.replace(o.group, "")
        raw = _LATE_SIGNS.sub("", _NOT_LIVE.sub("", raw.replace(dec, _MARK)))
        if not o.allow_negative:
            raw = raw.replace("-", "")
        has_decimal = _MARK in raw and live_digits > 0
        raw = re.sub(_MARK + "+", dec if has_decimal else "", raw)

        int_part, fraction = raw, ""
        if has_decimal:
            int_part, _, fraction = raw.partition(dec)
            fraction = fraction.replace(dec, "")[:live_digits]
        int_part = _LEADING_ZEROS.sub(r"\1", int_part)

        try:
            candidate = float(int_part + ("." + fraction if has_decimal else ""))
        except ValueError:
            candidate = None

        if state.pending_negative and candidate is not None and candidate != 0 and o.allow_negative:
            candidate = -abs(candidate)
            int_part = "-" + int_part.lstrip("+-")
            state.pending_negative = False

        value = candidate * o.unit_factor if candidate is not None and o.unit_factor != 1 else candidate
        notifications: list[Notification] = []
        if (
            value is not None
            and is_finite_number(o.min)
            and o.live_min_strategy == LiveMinStrategy.LENIENT
            and value < o.min
        ):
            notifications.append(Notification(kind=NotificationKind.BELOW_MIN, attempted=value, value=o.min))

        try:
            if value is not None:
                self._check_live(state, value, text, caret, int_part)
        except MaskViolation as violation:
            notifications.append(self._blocked(state, violation))
            if o.validation_mode == ValidationMode.SOFT:
                state.last_ok = text
                return EditResult(text=text, caret=caret, state=state, notifications=notifications)
            return EditResult(
                text=old,
                caret=self._caret_after_revert(old, logical_before),
                state=state,
                notifications=notifications,
                handled=True,
            )

        sign = int_part[0] if int_part[:1] in ("-", "+") else ""
        core = int_part[1:] if sign else int_part
        sign_out = o.neg_symbol if sign == "-" else o.pos_symbol if sign == "+" else ""
        only_sign = bool(sign) and not core and not has_decimal
        group_live = o.group_while_typing and decorated
        out_core = "" if only_sign else (group_integer(core, o) if group_live else core) or "0"
        refined = self.plugins.run(Hook.FORMAT_STRING, string=out_core, options=o, phase="live")
        if refined.get("string") is not None:
            out_core = refined["string"]
        if has_decimal:
            out_core += dec + fraction
        out = compose(sign_out, out_core, o, decorated=decorated)

        state.last_ok = out
        state.invalid = False
        live_value = self.parse(out)
        if preserve:
            new_caret = map_logical_to_index(out, o)(max(0, logical_before))
        else:
            new_caret = content_end(out, o)
        notifications.append(self._live(live_value, out))
        return EditResult(text=out, caret=new_caret, state=state, notifications=notifications)

    def _check_live(self, state: FieldState, value: float, text: str, caret: int, int_part: str) -> None:
        """Schema, live hook, live maximum, strict minimum and the optional live gate."""
        o = self.options
        value = self.chain.live(value)
        if o.enforce_max_while_typing and is_finite_number(o.max) and value > o.max:
            raise RangeViolation(attempted=value, reason=BlockReason.MAX)
        if is_finite_number(o.min) and o.live_min_strategy == LiveMinStrategy.STRICT and value < o.min:
            if not (o.min > 0 and self._typing_toward_min(text, caret, int_part)):
                raise RangeViolation(attempted=value, reason=BlockReason.MIN)
        if o.enforce_before_change_while_typing:
            self.chain.gate(value, state.last_accepted)

    def _typing_toward_min(self, text: str, caret: int, int_part: str) -> bool:
        """Digits typed at the tail while fewer integer digits exist than the minimum needs."""
        o = self.options
        min_display = o.min / o.unit_factor
        needed = len(str(int(math.floor(abs(min_display)))))
        typed = len(int_part.lstrip("+-"))
        at_tail = caret >= len(text) - len(o.suffix)
        return at_tail and typed < needed

    # ── Keys / wheel ────────────────────────────────────────────────────────

    def on_key_down(self, state: FieldState, text: str, caret: int, key: KeyPress | str) -> EditResult:
        press = key if isinstance(key, KeyPress) else KeyPress(key=key)
        state = state.model_copy(deep=True)
        text = str(text or "")
        if state.locked:
            return self._locked(state, text, caret)
        o = self.options

        if press.command:
            lowered = press.key.lower()
            if lowered == "z" and not press.shift:
                return self._replay(state, text, caret, undo=True, handled=True)
            if lowered == "y" or (lowered == "z" and press.shift):
                return self._replay(state, text, caret, undo=False, handled=True)

        if press.key == "Home":
            view = sign_in_view(text, o)
            return EditResult(
                text=text, caret=numeric_start(o, view.present, view.symbol), state=state, handled=True
            )
        if press.key == "End":
            return EditResult(text=text, caret=content_end(text, o), state=state, handled=True)

        if self._live_digits(state) > 0 and self._is_decimal_key(press):
            return self._decimal_key(state, text, caret)

        if len(press.key) == 1 and "0" <= press.key <= "9":
            replaced = self._digit_on_zero(state, text, caret, press.key)
            if replaced is not None:
                return replaced

        if press.key == "-" or press.code in ("Minus", "NumpadSubtract"):
            return self._minus_key(state, text, caret)
        if press.key == "+" or press.code == "NumpadAdd":
            return self._plus_key(state, text, caret)

        if press.key in PAGE_KEYS:
            base = self._step_base(press.key)
            multiplier = PAGE_MULTIPLIER * (SHIFT_MULTIPLIER if press.shift else 1)
            direction = 1 if press.key == "PageUp" else -1
            return self._step(state, text, caret, direction * base * multiplier, "key-page")

        if press.key in ARROW_KEYS:
            if o.hold_accel:
                if state.hold_started_at is None:
                    state.hold_started_at = self.clock()
            else:
                state.hold_started_at = None
            base = self._step_base(press.key)
            multiplier = self.acceleration(state) * (SHIFT_MULTIPLIER if press.shift else 1)
            direction = 1 if press.key == "ArrowUp" else -1
            return self._step(state, text, caret, direction * base * multiplier, "key-arrow", holding=o.hold_accel)

        return EditResult(text=text, caret=caret, state=state)

    def on_key_up(self, state: FieldState, text: str, caret: int, key: KeyPress | str) -> EditResult:
        press = key if isinstance(key, KeyPress) else KeyPress(key=key)
        state = state.model_copy(deep=True)
        if press.key in ARROW_KEYS:
            state.hold_started_at = None
        return EditResult(text=text, caret=caret, state=state)

    def on_wheel(self, state: FieldState, text: str, caret: int, delta_y: float, shift: bool = False) -> EditResult:
        state = state.model_copy(deep=True)
        if state.locked:
            return EditResult(text=text, caret=caret, state=state, handled=True)
        if not self.options.allow_wheel or not state.focused:
            return EditResult(text=text, caret=caret, state=state)
        direction = 1 if (delta_y or 0) < 0 else -1
        delta = direction * self.options.default_step * (SHIFT_MULTIPLIER if shift else 1)
        return self._step(state, text, caret, delta, "wheel")

    def acceleration(self, state: FieldState) -> int:
        """Step multiplier for a held arrow key."""
        if not self.options.hold_accel or state.hold_started_at is None:
            return 1
        held_ms = (self.clock() - state.hold_started_at) * 1000
        for threshold, factor in ACCELERATION:
            if held_ms > threshold:
                return factor
        return 1

    def _step_base(self, key: str) -> float:
        base = self.options.default_step
        override = self.plugins.run(Hook.STEP, base_step=base, key=key, options=self.options)
        if is_finite_number(override.get("step")):
            base = override["step"]
        return base

    def _step(
        self, state: FieldState, text: str, caret: int, delta: float, label: str, holding: bool = False
    ) -> EditResult:
        """Add *delta* to the visible value and commit immediately."""
        o = self.options
        n = self.parse(text)
        n = (0.0 if n is None else n) + delta
        if holding and o.snap_while_holding:
            n = self._snap(n)
        if o.clamp_mode == ClampMode.ALWAYS:
            n = self._clamp(n)
        if not o.allow_negative and not is_finite_number(o.min) and n < 0:
            n = 0.0
        n = self._round(n)
        return self._commit_value(state, text, caret, n, label, phase="key", gate_only=True)

    def _commit_value(
        self,
        state: FieldState,
        text: str,
        caret: int,
        n,
        label: str,
        phase: str,
        gate_only: bool = False,
        silent: bool = False,
    ) -> EditResult:
        """Validate and accept *n*; on rejection the text is left as it was."""
        previous = state.last_accepted
        try:
            if gate_only:
                n = self.chain.gate(n, previous)
            else:
                n = self.chain.commit(n, previous, phase=phase)
        except MaskViolation as violation:
            notice = self._blocked(state, violation)
            return EditResult(text=text, caret=caret, state=state, notifications=[notice], handled=True)
        out = self.render(n, phase=phase)
        state.last_ok = out
        state.accept(n)
        state.invalid = False
        new_caret = content_end(out, self.options)
        self._push_history(state, out, n, new_caret, label)
        notifications = [] if silent else [self._changed(n, out, previous)]
        return EditResult(text=out, caret=new_caret, state=state, notifications=notifications, handled=True)

    def _is_decimal_key(self, press: KeyPress) -> bool:
        dec = self.options.decimal_char
        numpad = press.code == "NumpadDecimal" or press.key in ("Decimal", "Separator")
        alternate = press.key in (".", ",") and press.key != dec
        return press.key == dec or numpad or (self.options.accept_both_decimal and alternate)

    def _decimal_key(self, state: FieldState, text: str, caret: int) -> EditResult:
        o = self.options
        dec = o.decimal_char
        decorated = state.raw_context is None
        low = len(o.prefix) if decorated and text.startswith(o.prefix) else 0
        high = content_end(text, o) if decorated else len(text)
        pos = min(max(caret, low), high)
        if dec not in text:
            text = text[:pos] + dec + text[pos:]
            pos += 1
        else:
            pos = text.index(dec) + 1
        result = self.on_text_changed(state, text, pos)
        return result.model_copy(update={"handled": True})

    def _signed_zero_view(self, symbol: str) -> str:
        o = self.options
        base = self.format(0)
        if o.sign_position == SignPosition.BEFORE_PREFIX or not o.prefix:
            return symbol + base
        return o.prefix + symbol + base[len(o.prefix):]

    def _digit_on_zero(self, state: FieldState, text: str, caret: int, digit: str) -> EditResult | None:
        """Replace the zero of a (signed) zero view with the typed digit."""
        o = self.options
        view = sign_in_view(text, o)
        zero_view = self._signed_zero_view(view.symbol) if view.present else self.format(0)
        blank = o.blank_if_zero and text == ""
        is_zero_view = text == zero_view or blank
        at_start = caret == numeric_start(o, view.present, view.symbol) or (blank and caret == 0)
        if not (is_zero_view and at_start):
            return None

        live_digits = self._live_digits(state)
        core = digit + (o.decimal_char + "0" * live_digits if live_digits > 0 else "")
        force_negative = state.pending_negative and not o.show_zero_sign and o.allow_negative
        use_sign = force_negative or view.present
        symbol = o.neg_symbol if force_negative else view.symbol
        out = compose(symbol if use_sign else "", core, o)
        state.last_ok = out
        if force_negative:
            state.pending_negative = False
        new_caret = map_logical_to_index(out, o)(2 if use_sign else 1)
        notice = self._live(self.parse(out), out)
        return EditResult(text=out, caret=new_caret, state=state, notifications=[notice], handled=True)

    def _minus_key(self, state: FieldState, text: str, caret: int) -> EditResult:
        o = self.options
        if not o.allow_negative:
            return EditResult(text=text, caret=caret, state=state, handled=True)
        n = self.parse(text)
        n = 0.0 if n is None else n
        if n == 0:
            if not o.show_zero_sign:
                state.pending_negative = True
                out = self.format(0)
                state.last_ok = out
                return EditResult(text=out, caret=numeric_start(o, False), state=state, handled=True)
            out = self._signed_zero_view(o.neg_symbol)
            state.last_ok = out
            return EditResult(text=out, caret=numeric_start(o, True, o.neg_symbol), state=state, handled=True)
        n = -n if o.minus_behavior == MinusBehavior.TOGGLE else -abs(n)
        return self._commit_value(state, text, caret, n, "toggle-sign", phase="key", gate_only=True)

    def _plus_key(self, state: FieldState, text: str, caret: int) -> EditResult:
        n = self.parse(text)
        n = 0.0 if n is None else n
        state.pending_negative = False
        n = 0.0 if n == 0 else abs(n)
        result = self._commit_value(state, text, caret, n, "toggle-sign", phase="key", gate_only=True)
        if n == 0 and not result.state.invalid:
            return result.model_copy(update={"caret": numeric_start(self.options, False)})
        return result

    # ── Paste / copy ────────────────────────────────────────────────────────

    def on_paste(self, state: FieldState, text: str, caret: int, pasted: str) -> EditResult:
        state = state.model_copy(deep=True)
        if state.locked:
            return self._locked(state, text, caret)
        o = self.options
        clip = str(pasted or "").strip()
        if not clip:
            return EditResult(text=text, caret=caret, state=state)

        try:
            transformed = self.plugins.run(Hook.TRANSFORM_PASTE_TEXT, text=clip, options=o)
            if transformed.get("block"):
                raise HookRejected(reason=transformed.get("reason") or BlockReason.PLUGIN)
            clip = str(transformed.get("text") or clip)
            normalized = SPACE_VARIANTS.sub(" ", normalize_digits(clip))
            # the field's own suffix is not a unit signal
            hint = has_unit_token(strip_decorations(normalize_punctuation(normalized, o), o))
            normalized = apply_alternate_decimal(normalized, o, unit_hint=hint, paste=True)
            n = self.parse(normalized)
            if n is None:
                raise ParseRejected()
        except MaskViolation as violation:
            notice = self._blocked(state, violation)
            return EditResult(text=text, caret=caret, state=state, notifications=[notice], handled=True)

        state.last_raw = n
        if o.clamp_on_paste:
            n = self._clamp(n)
        n = self._round(n)
        return self._commit_value(state, text, caret, n, "paste", phase="paste")

    def on_copy(self, state: FieldState, text: str, caret: int = 0) -> EditResult:
        """With ``copy_raw`` the clipboard receives the plain numeric value."""
        state = state.model_copy(deep=True)
        if not self.options.copy_raw:
            return EditResult(text=text, caret=caret, state=state)
        value = self.get_value(state, text)
        if value is None or value == "":
            return EditResult(text=text, caret=caret, state=state)
        return EditResult(text=text, caret=caret, state=state, handled=True, clipboard=raw_number_text(value))

    # ── Blur / commit ───────────────────────────────────────────────────────

    def on_blur(self, state: FieldState, text: str) -> EditResult:
        return self._commit(state.model_copy(deep=True), str(text or ""), silent=False)

    def _commit(self, state: FieldState, text: str, silent: bool) -> EditResult:
        o = self.options
        state.raw_context = None
        state.pending_negative = False
        state.hold_started_at = None
        state.phase = EditPhase.COMMITTING

        if text.strip() == "" and (o.keep_empty or o.empty_value != EmptyValue.ZERO):
            state.last_ok = ""
            state.phase = EditPhase.IDLE
            return EditResult(text="", caret=0, state=state)

        n = self.parse(text)
        state.last_raw = n
        if n is None:
            n = None if o.keep_empty else 0.0
        if n is not None:
            if o.snap_to_step_on_blur:
                n = self._snap(n)
            n = self._round(self._clamp(n))

        previous = state.last_accepted
        try:
            n = self.chain.commit(n, previous, phase="blur")
        except MaskViolation as violation:
            notice = self._blocked(state, violation)
            state.phase = EditPhase.IDLE
            if o.validation_mode == ValidationMode.SOFT:
                state.last_ok = text
                return EditResult(text=text, caret=len(text), state=state, notifications=[notice])
            back = self._fallback_text(state)
            state.last_ok = back
            return EditResult(text=back, caret=len(back), state=state, notifications=[notice])

        state.accept(n)
        state.invalid = False
        out = self.render(n, phase="blur")
        state.last_ok = out
        state.phase = EditPhase.IDLE
        if silent:
            return EditResult(text=out, caret=len(out), state=state)
        self._push_history(state, out, n, len(out), "blur-accept")
        return EditResult(text=out, caret=len(out), state=state, notifications=[self._changed(n, out, previous)])

    # ── Programmatic access ─────────────────────────────────────────────────

    def get_value(self, state: FieldState, text: str):
        """Numeric value of *text*, honouring the empty-value policy for blank text."""
        o = self.options
        if str(text or "").strip() == "":
            if o.blank_if_zero and state.has_accepted and state.last_accepted == 0:
                return 0.0
            if o.empty_value == EmptyValue.NULL:
                return None
            if o.empty_value == EmptyValue.EMPTY:
                return ""
            return 0.0
        return self.parse(text)

    def set_value(self, state: FieldState, text: str, value) -> EditResult:
        """Drive *value* through snap, clamp, round and the commit chain, silently."""
        state = state.model_copy(deep=True)
        if state.locked:
            return self._locked(state, text, len(text))
        try:
            n = float(value)
        except (TypeError, ValueError):
            n = 0.0
        if not math.isfinite(n):
            n = 0.0
        state.last_raw = n
        if self.options.snap_to_step_on_blur:
            n = self._snap(n)
        n = self._round(self._clamp(n))
        return self._commit_value(state, text, len(text), n, "set-value", phase="set", silent=True)

    def undo(self, state: FieldState, text: str, caret: int = 0) -> EditResult:
        return self._replay(state.model_copy(deep=True), text, caret, undo=True)

    def redo(self, state: FieldState, text: str, caret: int = 0) -> EditResult:
        return self._replay(state.model_copy(deep=True), text, caret, undo=False)

    def _replay(self, state: FieldState, text: str, caret: int, undo: bool, handled: bool = False) -> EditResult:
        entry = state.history.undo() if undo else state.history.redo()
        if entry is None:
            return EditResult(text=text, caret=caret, state=state, handled=handled)
        logger.debug("history_undo" if undo else "history_redo", index=state.history.index, label=entry.label)
        state.last_ok = entry.text
        state.accept(entry.value)
        return EditResult(
            text=entry.text, caret=min(entry.caret, len(entry.text)), state=state, handled=handled
        )

    def lock(self, state: FieldState, text: str) -> EditResult:
        state = state.model_copy(deep=True)
        state.locked = True
        state.hold_started_at = None
        return EditResult(text=text, caret=len(text), state=state)

    def unlock(self, state: FieldState, text: str) -> EditResult:
        state = state.model_copy(deep=True)
        state.locked = False
        return EditResult(text=text, caret=len(text), state=state)
