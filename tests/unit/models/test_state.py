"""Test edit history, field state and transition results."""
from numeric_mask.models.state import (
    EditPhase,
    EditResult,
    FieldState,
    History,
    HistoryEntry,
    KeyPress,
    Notification,
    NotificationKind,
)


def entry(text: str) -> HistoryEntry:
    return HistoryEntry(text=text, value=float(text) if text else None, caret=len(text))


class TestHistory:
    def test_empty(self):
        history = History()
        assert history.undo() is None
        assert history.redo() is None
        assert history.current is None

    def test_undo_redo(self):
        history = History()
        for text in ("1", "2", "3"):
            history.push(entry(text))
        assert history.undo().text == "2"
        assert history.undo().text == "1"
        assert history.undo() is None
        assert history.redo().text == "2"
        assert history.current.text == "2"

    def test_push_discards_redo_branch(self):
        history = History()
        for text in ("1", "2", "3"):
            history.push(entry(text))
        history.undo()
        history.undo()
        history.push(entry("9"))
        assert [e.text for e in history.entries] == ["1", "9"]
        assert history.redo() is None

    def test_limit_evicts_oldest(self):
        history = History(limit=2)
        for text in ("1", "2", "3"):
            history.push(entry(text))
        assert [e.text for e in history.entries] == ["2", "3"]
        assert history.index == 1


class TestFieldState:
    def test_phase_flags(self):
        state = FieldState()
        assert not state.focused
        state.phase = EditPhase.COMPOSING
        assert state.composing
        assert state.focused

    def test_accept(self):
        state = FieldState()
        state.accept(None)
        assert state.has_accepted
        assert state.last_accepted is None

    def test_deep_copy_isolates_history(self):
        state = FieldState()
        clone = state.model_copy(deep=True)
        clone.history.push(entry("1"))
        assert state.history.entries == []


class TestEditResult:
    def test_blocked_lookup(self):
        result = EditResult(
            text="",
            caret=0,
            state=FieldState(),
            notifications=[
                Notification(kind=NotificationKind.LIVE, value=1),
                Notification(kind=NotificationKind.BLOCKED, reason="max"),
            ],
        )
        assert result.blocked.reason == "max"
        assert len(result.of_kind("live")) == 1

    def test_not_blocked(self):
        assert EditResult(text="", caret=0, state=FieldState()).blocked is None


class TestKeyPress:
    def test_command(self):
        assert KeyPress(key="z", ctrl=True).command
        assert KeyPress(key="z", meta=True).command
        assert not KeyPress(key="z", shift=True).command
