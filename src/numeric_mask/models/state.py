"""Per-surface mutable state, edit history and transition results."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class EditPhase(StrEnum):
    IDLE = "idle"
    COMPOSING = "composing"
    EDITING = "editing"
    COMMITTING = "committing"


class RawContext(BaseModel):
    """Active only while the raw focus view is shown."""

    digits: int = 0


class HistoryEntry(BaseModel):
    text: str
    value: float | None = None
    caret: int = 0
    timestamp: float = 0.0
    label: str = ""


class History(BaseModel):
    """Bounded undo/redo stack with a cursor.

    Pushing while the cursor is not at the top discards the entries above it; the
    oldest entry is evicted once ``limit`` is exceeded.
    """

    entries: list[HistoryEntry] = Field(default_factory=list)
    index: int = -1
    limit: int = Field(default=50, ge=1)

    def push(self, entry: HistoryEntry) -> None:
        if self.index < len(self.entries) - 1:
            del self.entries[self.index + 1:]
        self.entries.append(entry)
        if len(self.entries) > self.limit:
            del self.entries[: len(self.entries) - self.limit]
        self.index = len(self.entries) - 1

    def undo(self) -> HistoryEntry | None:
        if self.index <= 0:
            return None
        self.index -= 1
        return self.entries[self.index]

    def redo(self) -> HistoryEntry | None:
        if self.index >= len(self.entries) - 1:
            return None
        self.index += 1
        return self.entries[self.index]

    @property
    def current(self) -> HistoryEntry | None:
        if 0 <= self.index < len(self.entries):
            return self.entries[self.index]
        return None


class FieldState(BaseModel):
    """Everything the pipeline needs to remember about one surface between events."""

    phase: EditPhase = EditPhase.IDLE
    last_ok: str = ""
    last_accepted: float | None = None
    has_accepted: bool = False
    last_raw: float | None = None
    raw_context: RawContext | None = None
    pending_negative: bool = False
    selected_once: bool = False
    hold_started_at: float | None = None
    invalid: bool = False
    locked: bool = False
    history: History = Field(default_factory=History)

    @property
    def composing(self) -> bool:
        return self.phase == EditPhase.COMPOSING

    @property
    def focused(self) -> bool:
        return self.phase in (EditPhase.EDITING, EditPhase.COMPOSING)

    def accept(self, value: float | None) -> None:
        self.last_accepted = value
        self.has_accepted = True


class NotificationKind(StrEnum):
    BLOCKED = "blocked"
    CHANGED = "changed"
    LIVE = "live"
    BELOW_MIN = "below_min"
    NOTE = "note"


class Notification(BaseModel):
    """Structured payload for observers (UI, telemetry)."""

    kind: NotificationKind
    reason: str | None = None
    attempted: float | None = None
    value: float | None = None
    formatted: str | None = None
    previous: float | None = None
    message: str | None = None
    note: str | None = None


class EditResult(BaseModel):
    """Outcome of one pipeline transition."""

    text: str
    caret: int
    selection: tuple[int, int] | None = None
    state: FieldState
    notifications: list[Notification] = Field(default_factory=list)
    handled: bool = False
    clipboard: str | None = None

    def of_kind(self, kind: NotificationKind | str) -> list[Notification]:
        return [n for n in self.notifications if n.kind == kind]

    @property
    def blocked(self) -> Notification | None:
        found = self.of_kind(NotificationKind.BLOCKED)
        return found[0] if found else None


class KeyPress(BaseModel):
    """A key-down/key-up input as reported by the surface."""

    key: str
    code: str = ""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False

    @property
    def command(self) -> bool:
        return self.ctrl or self.meta
