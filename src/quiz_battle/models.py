"""Question records and the sanitized view handed to renderers."""

import hashlib
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ContentError

logger = logging.getLogger(__name__)

TRUE_FALSE_OPTIONS = ("True", "False")


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    FILL_IN_BLANK = "fill-in-blank"
    DRAG_AND_DROP = "drag-and-drop"


# Aliases seen in older content files.
_TYPE_ALIASES = {
    "multiple-choice": QuestionType.MULTIPLE_CHOICE,
    "multiplechoice": QuestionType.MULTIPLE_CHOICE,
    "mcq": QuestionType.MULTIPLE_CHOICE,
    "true-false": QuestionType.TRUE_FALSE,
    "truefalse": QuestionType.TRUE_FALSE,
    "fill-in-blank": QuestionType.FILL_IN_BLANK,
    "fillinblank": QuestionType.FILL_IN_BLANK,
    "fill-in-the-blank": QuestionType.FILL_IN_BLANK,
    "drag-and-drop": QuestionType.DRAG_AND_DROP,
    "dragdrop": QuestionType.DRAG_AND_DROP,
    "codearrangement": QuestionType.DRAG_AND_DROP,
    "code-ordering": QuestionType.DRAG_AND_DROP,
}


def parse_question_type(value: Any) -> QuestionType:
    if isinstance(value, QuestionType):
        return value
    key = str(value or "").strip().lower().replace("_", "-")
    qtype = _TYPE_ALIASES.get(key) or _TYPE_ALIASES.get(key.replace("-", ""))
    if qtype is None:
        raise ContentError(f"Unknown question type: {value!r}")
    return qtype


def make_question_id(prompt: str) -> str:
    """Derive a stable id from the question text.

    Two records with the same prompt share an id, even across sources.
    """
    return hashlib.sha1(prompt.strip().encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class Question:
    """Immutable question record. Build with ``Question.from_dict``."""

    id: str
    type: QuestionType
    prompt: str
    topic: str
    intensity_tier: int
    options: Tuple[str, ...] = ()
    correct_index: Optional[int] = None
    correct_answers: Tuple[str, ...] = ()
    blocks: Tuple[str, ...] = ()
    correct_order: Tuple[int, ...] = ()
    explanation: str = ""

    @property
    def partition(self) -> Tuple[str, int, QuestionType]:
        return (self.topic, self.intensity_tier, self.type)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], topic: Optional[str] = None,
                  intensity_tier: Optional[int] = None,
                  question_type: Optional[Any] = None) -> "Question":
        """Validate a raw content record and build a Question.

        Legacy shapes are normalized here so nothing downstream has to sniff
        fields again: ``choices`` becomes ``options``, a boolean
        ``correctAnswer`` becomes a true/false question, and precedence-style
        ``dragItems``/``dropZones`` become ``blocks``/``correct_order``.
        """
        if not isinstance(data, dict):
            raise ContentError(f"Question record must be a mapping, got {type(data).__name__}")

        prompt = data.get("question") or data.get("prompt") or data.get("description")
        if not isinstance(prompt, str) or not prompt.strip():
            raise ContentError(f"Question record has no prompt text: {data!r}")

        topic = data.get("topic", topic)
        if not topic:
            raise ContentError(f"Question '{prompt[:40]}' has no topic")
        tier = data.get("intensity", data.get("intensity_tier", intensity_tier))
        try:
            tier = int(tier)
        except (TypeError, ValueError):
            raise ContentError(f"Question '{prompt[:40]}' has an invalid intensity tier: {tier!r}")

        raw_type = data.get("type", question_type)
        if raw_type is None:
            if isinstance(data.get("correctAnswer"), bool):
                raw_type = QuestionType.TRUE_FALSE
            elif "blocks" in data or isinstance(data.get("options"), dict):
                raw_type = QuestionType.DRAG_AND_DROP
            elif "correct_answers" in data or "correctAnswers" in data:
                raw_type = QuestionType.FILL_IN_BLANK
            else:
                raw_type = QuestionType.MULTIPLE_CHOICE
        qtype = parse_question_type(raw_type)
        # Boolean answers mark a true/false question even when filed as multiple choice.
        if qtype == QuestionType.MULTIPLE_CHOICE and isinstance(data.get("correctAnswer"), bool):
            qtype = QuestionType.TRUE_FALSE

        fields = dict(
            id=make_question_id(prompt),
            type=qtype,
            prompt=prompt.strip(),
            topic=str(topic),
            intensity_tier=tier,
            explanation=str(data.get("explanation", "") or ""),
        )
        if qtype == QuestionType.TRUE_FALSE:
            fields.update(_true_false_payload(data, prompt))
        elif qtype == QuestionType.MULTIPLE_CHOICE:
            fields.update(_multiple_choice_payload(data, prompt))
        elif qtype == QuestionType.FILL_IN_BLANK:
            fields.update(_fill_in_blank_payload(data, prompt))
        else:
            fields.update(_drag_and_drop_payload(data, prompt))
        return cls(**fields)

    def shuffled(self, rng) -> "Question":
        """Return a copy with options (or blocks) in random order.

        The correct index / order is recomputed on the copy. True/false
        questions keep their fixed layout. ``rng`` is a numpy Generator.
        """
        if self.type == QuestionType.MULTIPLE_CHOICE:
            perm = [int(i) for i in rng.permutation(len(self.options))]
            options = tuple(self.options[i] for i in perm)
            return replace(self, options=options, correct_index=perm.index(self.correct_index))
        if self.type == QuestionType.DRAG_AND_DROP:
            perm = [int(i) for i in rng.permutation(len(self.blocks))]
            blocks = tuple(self.blocks[i] for i in perm)
            new_position = {old: new for new, old in enumerate(perm)}
            order = tuple(new_position[i] for i in self.correct_order)
            return replace(self, blocks=blocks, correct_order=order)
        return self

    def to_view(self) -> "QuestionView":
        return QuestionView(
            id=self.id,
            type=self.type,
            prompt=self.prompt,
            topic=self.topic,
            intensity_tier=self.intensity_tier,
            options=list(self.options),
            blocks=list(self.blocks),
            slot_count=len(self.correct_order),
        )


@dataclass
class QuestionView:
    """What a renderer is allowed to see. Never carries the answer."""

    id: str
    type: QuestionType
    prompt: str
    topic: str
    intensity_tier: int
    options: List[str] = field(default_factory=list)
    blocks: List[str] = field(default_factory=list)
    slot_count: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "prompt": self.prompt,
            "topic": self.topic,
            "intensity_tier": self.intensity_tier,
            "options": list(self.options),
            "blocks": list(self.blocks),
            "slot_count": self.slot_count,
        }


def _string_list(values: Any, what: str, prompt: str) -> Tuple[str, ...]:
    if not isinstance(values, (list, tuple)) or not values:
        raise ContentError(f"Question '{prompt[:40]}' needs a non-empty list of {what}")
    if not all(isinstance(v, str) for v in values):
        raise ContentError(f"Question '{prompt[:40]}' has non-text {what}")
    return tuple(values)


def _index(value: Any, size: int, prompt: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < size:
        raise ContentError(f"Question '{prompt[:40]}' has an invalid correct index: {value!r}")
    return value


def _multiple_choice_payload(data: dict, prompt: str) -> dict:
    options = _string_list(data.get("options") or data.get("choices"), "options", prompt)
    if len(options) < 2:
        raise ContentError(f"Question '{prompt[:40]}' needs at least two options")
    if len(set(options)) != len(options):
        raise ContentError(f"Question '{prompt[:40]}' has duplicate options")
    raw_index = data.get("correct_index", data.get("correctIndex"))
    if raw_index is None and isinstance(data.get("answer"), str):
        if data["answer"] not in options:
            raise ContentError(f"Question '{prompt[:40]}' answer is not one of its options")
        raw_index = options.index(data["answer"])
    return {"options": options, "correct_index": _index(raw_index, len(options), prompt)}


def _true_false_payload(data: dict, prompt: str) -> dict:
    answer = data.get("correctAnswer", data.get("correct_answer"))
    if isinstance(answer, bool):
        correct_index = 0 if answer else 1
    else:
        correct_index = _index(data.get("correct_index", data.get("correctIndex")), 2, prompt)
    return {"options": TRUE_FALSE_OPTIONS, "correct_index": correct_index}


def _fill_in_blank_payload(data: dict, prompt: str) -> dict:
    answers = data.get("correct_answers", data.get("correctAnswers"))
    if isinstance(answers, str):
        answers = [answers]
    answers = _string_list(answers, "correct answers", prompt)
    if not any(a.strip() for a in answers):
        raise ContentError(f"Question '{prompt[:40]}' has only blank correct answers")
    return {"correct_answers": answers}


def _drag_and_drop_payload(data: dict, prompt: str) -> dict:
    legacy = data.get("options") if isinstance(data.get("options"), dict) else data
    if "dragItems" in legacy and "dropZones" in legacy:
        blocks, order = _from_drop_zones(legacy["dragItems"], legacy["dropZones"], prompt)
    else:
        blocks = _string_list(data.get("blocks"), "blocks", prompt)
        order = data.get("correct_order", data.get("correctOrder"))
        if not isinstance(order, (list, tuple)):
            raise ContentError(f"Question '{prompt[:40]}' has no correct order")
        order = tuple(_index(i, len(blocks), prompt) for i in order)
    if sorted(order) != list(range(len(blocks))):
        raise ContentError(f"Question '{prompt[:40]}' correct order must use every block exactly once")
    return {"blocks": blocks, "correct_order": tuple(order)}


def _from_drop_zones(items: Sequence[Any], zones: Sequence[Any], prompt: str):
    """Convert ``dragItems``/``dropZones`` content into blocks and an order."""
    if not isinstance(items, (list, tuple)) or not isinstance(zones, (list, tuple)) or not items:
        raise ContentError(f"Question '{prompt[:40]}' has malformed drag items")
    blocks = []
    ids = []
    for item in items:
        if isinstance(item, dict) and item.get("isDecoy"):
            continue
        if not isinstance(item, dict) or "text" not in item:
            raise ContentError(f"Question '{prompt[:40]}' has a drag item without text")
        blocks.append(str(item["text"]))
        ids.append(item.get("id"))
    order = []
    for zone in zones:
        wanted = zone.get("correctItemId") if isinstance(zone, dict) else None
        if wanted not in ids:
            raise ContentError(f"Question '{prompt[:40]}' drop zone points at an unknown item: {wanted!r}")
        order.append(ids.index(wanted))
    return tuple(blocks), tuple(order)
