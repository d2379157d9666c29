"""Battle Timer: cooperative countdown driven by an external tick source."""

import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class TimerView:
    """Snapshot of the countdown for renderers."""

    def __init__(self, remaining_seconds: float, is_expired: bool, is_paused: bool = False):
        self.remaining_seconds = remaining_seconds
        self.is_expired = is_expired
        self.is_paused = is_paused

    def to_dict(self) -> dict:
        return {
            "remaining_seconds": self.remaining_seconds,
            "is_expired": self.is_expired,
            "is_paused": self.is_paused,
        }


class BattleTimer:
    """Countdown with pause/resume and time bonuses/penalties.

    The timer never reads a clock: whoever drives the battle calls
    ``tick(delta_seconds)`` once per frame. Remaining time never goes below
    zero, and once expired nothing but ``start()`` changes the timer.
    """

    def __init__(self, max_seconds: Optional[float] = None):
        self.max_seconds = max_seconds
        self.remaining_seconds = 0.0
        self.is_paused = False
        self.is_expired = False
        self._running = False
        self._callbacks: List[Callable[[], None]] = []

    @property
    def is_running(self) -> bool:
        return self._running and not self.is_paused and not self.is_expired

    def on_expire(self, callback: Callable[[], None]):
        self._callbacks.append(callback)

    def start(self, seconds: float):
        if seconds <= 0:
            raise ValueError(f"Timer must start with a positive duration, got {seconds}")
        self.remaining_seconds = float(seconds)
        self.is_paused = False
        self.is_expired = False
        self._running = True
        logger.debug(f"Timer started at {seconds}s")

    def pause(self):
        if self.is_expired or not self._running:
            return
        self.is_paused = True

    def resume(self):
        if self.is_expired or not self._running:
            return
        self.is_paused = False

    def add_time(self, delta: float):
        if self.is_expired or not self._running:
            return
        self.remaining_seconds += delta
        if self.max_seconds is not None:
            self.remaining_seconds = min(self.remaining_seconds, float(self.max_seconds))

    def subtract_time(self, delta: float):
        """Apply a penalty, even while paused. Reaching zero expires at once."""
        if self.is_expired or not self._running:
            return
        self.remaining_seconds = max(self.remaining_seconds - delta, 0.0)
        if self.remaining_seconds <= 0:
            self._expire()

    def tick(self, delta_seconds: float) -> TimerView:
        if self.is_running and delta_seconds > 0:
            self.remaining_seconds = max(self.remaining_seconds - delta_seconds, 0.0)
            if self.remaining_seconds <= 0:
                self._expire()
        return self.view()

    def stop(self):
        """Stop counting without expiring. Used when a battle ends or is aborted."""
        self._running = False
        self.is_paused = False

    def release(self):
        """Stop and drop every expiry callback."""
        self.stop()
        self._callbacks.clear()

    def view(self) -> TimerView:
        return TimerView(self.remaining_seconds, self.is_expired, self.is_paused)

    def _expire(self):
        self.remaining_seconds = 0.0
        self.is_expired = True
        self._running = False
        logger.info("Timer expired")
        for callback in list(self._callbacks):
            callback()
