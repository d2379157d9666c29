"""Scoring Policy: points awarded when a battle is won."""

import logging

import numpy as np

logger = logging.getLogger(__name__)


class ScoringPolicy:
    """Converts end-of-battle statistics into points.

    points = correct * base_points * difficulty_weight
           + max_combo * base_points * combo_bonus_rate
           + speed bonus (scaled by how far under target the average answer was)
           + perfect bonus (every question answered correctly)
    """

    def __init__(self, base_points: int = 10, speed_multiplier: float = 1.2,
                 perfect_multiplier: float = 2.0, combo_bonus_rate: float = 0.5):
        if base_points < 0 or speed_multiplier < 1 or perfect_multiplier < 1 or combo_bonus_rate < 0:
            raise ValueError("Scoring multipliers must be >= 1 and rates/points >= 0")
        self.base_points = base_points
        self.speed_multiplier = speed_multiplier
        self.perfect_multiplier = perfect_multiplier
        self.combo_bonus_rate = combo_bonus_rate

    def compute_final_score(self, correct_answers: int, total_questions: int, max_combo: int,
                            average_answer_time_seconds: float, target_time_per_question: float,
                            difficulty_weight: float = 1.0) -> int:
        if total_questions < 0 or not 0 <= correct_answers <= total_questions:
            raise ValueError(f"Invalid answer counts: {correct_answers}/{total_questions}")
        if max_combo < 0 or target_time_per_question <= 0 or difficulty_weight <= 0:
            raise ValueError("max_combo must be >= 0; target time and difficulty weight must be positive")

        base = correct_answers * self.base_points
        points = base * difficulty_weight
        points += round(max_combo * self.base_points * self.combo_bonus_rate)

        speed_factor = float(np.clip(1.0 - average_answer_time_seconds / target_time_per_question, 0.0, 1.0))
        points += base * (self.speed_multiplier - 1) * speed_factor

        if total_questions > 0 and correct_answers == total_questions:
            points += base * (self.perfect_multiplier - 1)

        final = max(int(round(points)), 0)
        logger.debug(
            f"Scored {final} points: {correct_answers}/{total_questions} correct, "
            f"max combo {max_combo}, avg time {average_answer_time_seconds:.1f}s"
        )
        return final


def average_answer_time(answer_times, default: float) -> float:
    """Mean of the recorded answer times, or ``default`` when none exist."""
    if not answer_times:
        return default
    return float(np.mean(answer_times))
