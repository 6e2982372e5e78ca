"""Test the live notification debouncer."""
import threading

from numeric_mask.editing.debounce import LiveNotifier, timer_scheduler


class TestLiveNotifier:
    def test_zero_delay_is_synchronous(self, fake_scheduler):
        seen = []
        notifier = LiveNotifier(0, seen.append, fake_scheduler)
        notifier.schedule("a")
        assert seen == ["a"]
        assert fake_scheduler.handles == []

    def test_only_last_payload_fires(self, fake_scheduler):
        seen = []
        notifier = LiveNotifier(200, seen.append, fake_scheduler)
        notifier.schedule("a")
        notifier.schedule("b")
        notifier.schedule("c")
        assert notifier.pending
        assert fake_scheduler.flush() == 1
        assert seen == ["c"]
        assert not notifier.pending
        assert fake_scheduler.delays == [0.2, 0.2, 0.2]

    def test_cancel(self, fake_scheduler):
        seen = []
        notifier = LiveNotifier(50, seen.append, fake_scheduler)
        assert notifier.cancel() is False
        notifier.schedule("a")
        assert notifier.cancel() is True
        assert fake_scheduler.flush() == 0
        assert seen == []

    def test_superseded_timer_firing_late_is_dropped(self, fake_scheduler):
        seen = []
        notifier = LiveNotifier(100, seen.append, fake_scheduler)
        notifier.schedule("a")
        notifier.schedule("b")
        fake_scheduler.handles[0].callback()
        assert seen == []
        assert notifier.pending
        notifier.schedule("c")
        assert fake_scheduler.flush() == 1
        assert seen == ["c"]

    def test_negative_delay_clamped(self, fake_scheduler):
        assert LiveNotifier(-5, print, fake_scheduler).delay_ms == 0


class TestTimerScheduler:
    def test_fires_on_daemon_thread(self):
        fired = threading.Event()
        timer = timer_scheduler(0.01, fired.set)
        assert timer.daemon
        assert fired.wait(2)
