"""Combo Tracker: consecutive-correct streak and its score multiplier."""

import logging
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# (minimum streak, multiplier)
DEFAULT_BREAKPOINTS = ((3, 1.5), (5, 2.0), (7, 2.5), (10, 3.0))


class ComboTracker:
    """Tracks the current streak and the session high-water mark."""

    def __init__(self, breakpoints: Optional[Iterable[Tuple[int, float]]] = None):
        self._breakpoints = self._validate(DEFAULT_BREAKPOINTS if breakpoints is None else breakpoints)
        self.streak = 0
        self._max_streak = 0
        self.shield = False

    @staticmethod
    def _validate(breakpoints) -> List[Tuple[int, float]]:
        steps = sorted((int(streak), float(mult)) for streak, mult in breakpoints)
        previous = 1.0
        for streak, mult in steps:
            if streak < 0:
                raise ValueError(f"Combo breakpoint streak must be >= 0, got {streak}")
            if mult < previous:
                raise ValueError("Combo multipliers must be >= 1 and non-decreasing in streak")
            previous = mult
        return steps

    def grant_shield(self):
        """Protect the streak from the next wrong answer (one use)."""
        self.shield = True

    def on_answer(self, is_correct: bool) -> int:
        if is_correct:
            self.streak += 1
            self._max_streak = max(self._max_streak, self.streak)
        elif self.shield:
            self.shield = False
            logger.info(f"Streak shield used; combo stays at {self.streak}")
        else:
            if self.streak > 0:
                logger.debug(f"Combo broken at {self.streak}")
            self.streak = 0
        return self.streak

    def multiplier(self) -> float:
        value = 1.0
        for streak, mult in self._breakpoints:
            if self.streak >= streak:
                value = mult
        return value

    def max_reached(self) -> int:
        return self._max_streak

    def reset(self):
        """Start a new session: clears the streak, the high-water mark and any shield."""
        self.streak = 0
        self._max_streak = 0
        self.shield = False
