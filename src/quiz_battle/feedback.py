"""Feedback Generator: battle messages built from engine results."""

import logging
import random

from .battle_engine import AnswerResult, FinalResult, Phase
from .models import QuestionType, QuestionView

logger = logging.getLogger(__name__)

CORRECT_TEMPLATES = [
    "Correct! You deal {damage} damage!",
    "Great hit! {damage} damage to the enemy!",
    "Right on! The enemy takes {damage} damage!",
]

WRONG_TEMPLATES = [
    "Wrong! The enemy hits you for {damage} damage.",
    "Not quite. You take {damage} damage.",
    "Missed! The enemy strikes back for {damage} damage.",
]


class FeedbackGenerator:
    """Turns answer results and final results into short messages."""

    def __init__(self, rng=None):
        self._rng = rng or random.Random()

    def answer_feedback(self, result: AnswerResult) -> str:
        if not result.accepted:
            return "Answer not accepted right now."
        if result.is_correct:
            text = self._rng.choice(CORRECT_TEMPLATES).format(damage=result.damage_dealt)
            if result.multiplier > 1:
                text += f" ({result.multiplier:g}x Combo!)"
            return text
        text = self._rng.choice(WRONG_TEMPLATES).format(damage=result.damage_taken)
        if result.slot_results:
            wrong = [str(i + 1) for i, ok in enumerate(result.slot_results) if not ok]
            text += f" Check slot{'s' if len(wrong) > 1 else ''} {', '.join(wrong)}."
        return text

    def question_intro(self, question: QuestionView, question_num: int) -> str:
        lines = [f"Question {question_num} [{question.topic}, intensity {question.intensity_tier}]",
                 question.prompt]
        if question.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
            lines += [f"  {i + 1}. {option}" for i, option in enumerate(question.options)]
            lines.append("Answer with the option number.")
        elif question.type == QuestionType.DRAG_AND_DROP:
            lines += [f"  {i + 1}. {block}" for i, block in enumerate(question.blocks)]
            lines.append(f"Arrange {question.slot_count} blocks: give block numbers in order, e.g. 2 3 1.")
        else:
            lines.append("Type the missing word.")
        return "\n".join(lines)

    def battle_summary(self, result: FinalResult) -> str:
        total = result.total_questions
        pct = (result.correct_answers / total * 100) if total > 0 else 0
        if result.phase == Phase.VICTORY:
            headline = "Victory! The enemy is defeated."
        else:
            headline = "Defeat. Regroup and try again."
        summary = (
            f"{headline} You answered {total} questions: "
            f"{result.correct_answers} correct and {result.wrong_answers} wrong. "
            f"Best combo: {result.max_combo}. Points earned: {result.score}. "
        )
        if pct >= 80:
            summary += "Outstanding performance!"
        elif pct >= 60:
            summary += "Good work! Keep practicing."
        else:
            summary += "Keep studying, you'll improve with practice!"
        return summary
