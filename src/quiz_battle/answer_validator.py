"""Answer Validator: decides correctness for each question type.

Every function here is pure: the same question and response always give the
same result.
"""

import logging
from typing import Any, List, Sequence

from .models import Question, QuestionType

logger = logging.getLogger(__name__)


def normalize(text: str) -> str:
    """Trim surrounding whitespace and case-fold."""
    return text.strip().casefold()


def is_blank(response: Any) -> bool:
    return not isinstance(response, str) or not response.strip()


def check_choice(question: Question, submitted_index: Any) -> bool:
    """Multiple-choice and true/false: the selected index must match."""
    if isinstance(submitted_index, bool) or not isinstance(submitted_index, int):
        return False
    return submitted_index == question.correct_index


def check_fill_in_blank(question: Question, submitted: Any) -> bool:
    if is_blank(submitted):
        return False
    answer = normalize(submitted)
    return any(answer == normalize(expected) for expected in question.correct_answers)


def expected_blocks(question: Question) -> List[str]:
    return [question.blocks[i] for i in question.correct_order]


def slot_results(question: Question, user_order: Sequence[Any]) -> List[bool]:
    """Per-slot correctness for a drag-and-drop answer.

    Only used to highlight wrong slots; scoring stays all-or-nothing.
    Missing slots count as wrong.
    """
    expected = expected_blocks(question)
    placed = list(user_order or [])
    return [i < len(placed) and placed[i] == block for i, block in enumerate(expected)]


def check_drag_and_drop(question: Question, user_order: Any) -> bool:
    if isinstance(user_order, str) or not isinstance(user_order, (list, tuple)):
        return False
    expected = expected_blocks(question)
    return len(user_order) == len(expected) and all(
        placed == block for placed, block in zip(user_order, expected)
    )


def is_correct(question: Question, response: Any) -> bool:
    """Dispatch on the question type."""
    if question.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
        result = check_choice(question, response)
    elif question.type == QuestionType.FILL_IN_BLANK:
        result = check_fill_in_blank(question, response)
    else:
        result = check_drag_and_drop(question, response)
    logger.debug(f"Validated {question.type.value} answer for {question.id}: correct={result}")
    return result
