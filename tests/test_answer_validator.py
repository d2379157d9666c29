"""Tests for the answer validator."""
import pytest
from quiz_battle import answer_validator
from quiz_battle.answer_validator import (
    check_choice,
    check_drag_and_drop,
    check_fill_in_blank,
    is_correct,
    normalize,
    slot_results,
)
from quiz_battle.models import Question


MC_QUESTION = Question.from_dict({
    "topic": "python", "intensity": 1, "type": "multiple-choice",
    "question": "Which keyword defines a function?",
    "options": ["func", "def", "function"], "correct_index": 1,
})

TF_QUESTION = Question.from_dict({
    "topic": "python", "intensity": 1, "question": "Lists are mutable.", "correctAnswer": True,
})

FILL_QUESTION = Question.from_dict({
    "topic": "python", "intensity": 3, "type": "fill-in-blank",
    "question": "Complexity of a linear scan?", "correct_answers": ["o(n)", "O(n)"],
})

DND_QUESTION = Question.from_dict({
    "topic": "python", "intensity": 3, "type": "drag-and-drop",
    "question": "Arrange the blocks.", "blocks": ["block0", "block1", "block2"],
    "correct_order": [2, 0, 1],
})


def test_normalize():
    assert normalize("  O(N) ") == "o(n)"


def test_multiple_choice():
    assert check_choice(MC_QUESTION, 1) is True
    assert check_choice(MC_QUESTION, 0) is False


def test_choice_rejects_non_integer_responses():
    assert check_choice(MC_QUESTION, "1") is False
    assert check_choice(MC_QUESTION, True) is False
    assert check_choice(MC_QUESTION, None) is False


def test_true_false():
    assert is_correct(TF_QUESTION, 0) is True
    assert is_correct(TF_QUESTION, 1) is False


def test_fill_in_blank_normalized():
    assert check_fill_in_blank(FILL_QUESTION, " o(N) ") is True
    assert check_fill_in_blank(FILL_QUESTION, "O(n^2)") is False


@pytest.mark.parametrize("blank", ["", "   ", "\t\n", None, 3])
def test_fill_in_blank_blank_is_incorrect(blank):
    assert check_fill_in_blank(FILL_QUESTION, blank) is False


def test_drag_and_drop_exact_order():
    assert check_drag_and_drop(DND_QUESTION, ["block2", "block0", "block1"]) is True


@pytest.mark.parametrize("order", [
    ["block0", "block2", "block1"],
    ["block2", "block1", "block0"],
    ["block1", "block0", "block2"],
])
def test_drag_and_drop_any_swap_fails(order):
    assert check_drag_and_drop(DND_QUESTION, order) is False


def test_drag_and_drop_length_must_match():
    assert check_drag_and_drop(DND_QUESTION, ["block2", "block0"]) is False
    assert check_drag_and_drop(DND_QUESTION, ["block2", "block0", "block1", "block1"]) is False
    assert check_drag_and_drop(DND_QUESTION, "block2 block0 block1") is False


def test_slot_results_flags_wrong_slots():
    assert slot_results(DND_QUESTION, ["block2", "block1", "block0"]) == [True, False, False]
    assert slot_results(DND_QUESTION, ["block2"]) == [True, False, False]


def test_validation_is_deterministic():
    cases = [
        (MC_QUESTION, 1), (MC_QUESTION, 2), (TF_QUESTION, 1),
        (FILL_QUESTION, "O(N)"), (DND_QUESTION, ["block2", "block0", "block1"]),
    ]
    for question, response in cases:
        results = {is_correct(question, response) for _ in range(10)}
        assert len(results) == 1


def test_expected_blocks():
    assert answer_validator.expected_blocks(DND_QUESTION) == ["block2", "block0", "block1"]
