"""Tests for the FeedbackGenerator module."""
import random

import pytest
from quiz_battle.battle_engine import AnswerResult, FinalResult, Phase
from quiz_battle.feedback import FeedbackGenerator
from quiz_battle.models import QuestionType, QuestionView


@pytest.fixture
def feedback():
    return FeedbackGenerator(rng=random.Random(0))


def answer(is_correct=True, accepted=True, multiplier=1.0, slots=None):
    return AnswerResult(is_correct, accepted, player_hp=85, enemy_hp=70, combo_count=3,
                        phase=Phase.QUESTION_ACTIVE, damage_dealt=15, damage_taken=15,
                        multiplier=multiplier, slot_results=slots)


def final(phase=Phase.VICTORY, correct=4, wrong=1):
    return FinalResult(phase=phase, correct_answers=correct, wrong_answers=wrong, max_combo=4,
                       score=120, average_answer_time=3.0, player_hp=85)


def test_correct_feedback_mentions_damage(feedback):
    assert "15" in feedback.answer_feedback(answer())


def test_combo_feedback(feedback):
    assert "(1.5x Combo!)" in feedback.answer_feedback(answer(multiplier=1.5))
    assert "Combo" not in feedback.answer_feedback(answer(multiplier=1.0))


def test_wrong_feedback_points_at_slots(feedback):
    text = feedback.answer_feedback(answer(is_correct=False, slots=[True, False, False]))
    assert "slots 2, 3" in text


def test_rejected_answer(feedback):
    assert feedback.answer_feedback(answer(is_correct=None, accepted=False)) == "Answer not accepted right now."


def test_question_intro_lists_options(feedback):
    view = QuestionView(id="q1", type=QuestionType.MULTIPLE_CHOICE, prompt="Pick one",
                        topic="python", intensity_tier=1, options=["def", "func"])
    text = feedback.question_intro(view, 2)
    assert "Question 2" in text
    assert "  1. def" in text
    assert "  2. func" in text


def test_question_intro_drag_and_drop(feedback):
    view = QuestionView(id="q2", type=QuestionType.DRAG_AND_DROP, prompt="Order",
                        topic="python", intensity_tier=2, blocks=["b", "a"], slot_count=2)
    assert "Arrange 2 blocks" in feedback.question_intro(view, 1)


def test_battle_summary(feedback):
    text = feedback.battle_summary(final())
    assert text.startswith("Victory!")
    assert "Points earned: 120" in text
    assert "Outstanding" in text
    assert feedback.battle_summary(final(phase=Phase.DEFEAT, correct=1, wrong=4)).startswith("Defeat.")
