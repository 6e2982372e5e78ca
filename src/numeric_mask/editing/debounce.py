"""Per-surface debounce for live value notifications."""
from __future__ import annotations

import threading
from typing import Any, Callable, Protocol

import structlog

logger = structlog.get_logger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def timer_scheduler(delay_s: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay_s, callback)
    timer.daemon = True
    timer.start()
    return timer


class LiveNotifier:
    """Delivers the most recent scheduled payload once the window has passed.

    Every ``schedule`` cancels the pending delivery. With a zero delay payloads are
    delivered synchronously.
    """

    def __init__(
        self,
        delay_ms: int,
        callback: Callable[[Any], None],
        scheduler: Scheduler | None = None,
    ):
        self.delay_ms = max(0, int(delay_ms or 0))
        self._callback = callback
        self._scheduler = scheduler or timer_scheduler
        self._pending: Cancellable | None = None
        self._generation = 0
        self._lock = threading.Lock()

    def schedule(self, payload: Any) -> None:
        self.cancel()
        if self.delay_ms <= 0:
            self._callback(payload)
            return
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._pending = self._scheduler(self.delay_ms / 1000.0, lambda: self._fire(generation, payload))

    def _fire(self, generation: int, payload: Any) -> None:
        # a timer already running when it was superseded must not deliver
        with self._lock:
            if generation != self._generation:
                return
            self._pending = None
        self._callback(payload)

    def cancel(self) -> bool:
        """Cancel the pending delivery; returns whether one was pending."""
        with self._lock:
            pending, self._pending = self._pending, None
            self._generation += 1
        if pending is None:
            return False
        pending.cancel()
        logger.debug("live_notification_superseded")
        return True

    @property
    def pending(self) -> bool:
        return self._pending is not None
