"""Question Bank: Loads question content and selects unanswered questions."""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import yaml

from .errors import ContentError, PoolEmptyError
from .models import Question, QuestionType, parse_question_type

logger = logging.getLogger(__name__)

Partition = Tuple[str, int, QuestionType]


class AnsweredSet:
    """Question ids already presented in a session, kept per partition.

    A partition is (topic, intensity tier, question type).
    """

    def __init__(self):
        self._seen: Dict[Partition, set] = {}

    def mark(self, question: Question):
        self._seen.setdefault(question.partition, set()).add(question.id)

    def contains(self, question: Question) -> bool:
        return question.id in self._seen.get(question.partition, ())

    def count(self, partition: Partition) -> int:
        return len(self._seen.get(partition, ()))

    def clear(self, partition: Optional[Partition] = None):
        """Clear one partition, or everything when none is given."""
        if partition is None:
            self._seen.clear()
        else:
            self._seen.pop(partition, None)

    def export(self) -> List[dict]:
        return [
            {"topic": topic, "intensity_tier": tier, "type": qtype.value, "ids": sorted(ids)}
            for (topic, tier, qtype), ids in self._seen.items()
            if ids
        ]

    @classmethod
    def from_export(cls, entries: Iterable[dict]) -> "AnsweredSet":
        answered = cls()
        for entry in entries:
            key = (entry["topic"], int(entry["intensity_tier"]), parse_question_type(entry["type"]))
            answered._seen[key] = set(entry.get("ids", []))
        return answered

    def __len__(self):
        return sum(len(ids) for ids in self._seen.values())


class QuestionBank:
    """Holds validated questions grouped by topic, intensity tier and type.

    Content is validated once at load time; a malformed record aborts the
    whole load with ContentError, so a battle never sees a bad question.
    """

    def __init__(self, questions: Iterable[Question] = (),
                 tier_weights: Optional[Dict[int, Dict[str, float]]] = None,
                 seed: Optional[int] = None):
        self._pools: Dict[Partition, List[Question]] = {}
        self._tier_weights = self._parse_weights(tier_weights or {})
        self._rng = np.random.default_rng(seed)
        for question in questions:
            self._add(question)

    @classmethod
    def from_file(cls, path: str, **kwargs) -> "QuestionBank":
        """Load a bank from a JSON or YAML question file."""
        return cls(load_questions(path), **kwargs)

    @classmethod
    def from_records(cls, records, **kwargs) -> "QuestionBank":
        return cls(parse_records(records), **kwargs)

    def _add(self, question: Question):
        pool = self._pools.setdefault(question.partition, [])
        if any(q.id == question.id for q in pool):
            logger.warning(f"Duplicate question dropped: '{question.prompt[:60]}'")
            return
        pool.append(question)

    def _parse_weights(self, tier_weights: dict) -> Dict[int, Dict[QuestionType, float]]:
        parsed = {}
        for tier, weights in tier_weights.items():
            parsed[int(tier)] = {}
            for qtype, weight in (weights or {}).items():
                if float(weight) < 0:
                    raise ContentError(f"Negative weight for {qtype} at intensity {tier}")
                parsed[int(tier)][parse_question_type(qtype)] = float(weight)
        return parsed

    def topics(self) -> List[str]:
        return sorted({topic for topic, _, _ in self._pools})

    def types_in(self, topic: str, intensity_tier: int) -> List[QuestionType]:
        return [qtype for (t, tier, qtype) in self._pools
                if t == topic and tier == intensity_tier]

    def pool(self, topic: str, intensity_tier: int,
             question_type: Optional[QuestionType] = None) -> List[Question]:
        """Return the questions for a topic/tier, optionally for one type."""
        if question_type is not None:
            return list(self._pools.get((topic, intensity_tier, question_type), []))
        result = []
        for qtype in self.types_in(topic, intensity_tier):
            result.extend(self._pools[(topic, intensity_tier, qtype)])
        return result

    def has_pool(self, topic: str, intensity_tier: int) -> bool:
        return bool(self.types_in(topic, intensity_tier))

    def question_count(self) -> int:
        return sum(len(pool) for pool in self._pools.values())

    def select_question(self, topic: str, intensity_tier: int,
                        answered: AnsweredSet) -> Question:
        """Pick a random question the player has not seen yet.

        For tiers mixing question types, a type is drawn first using the tier
        weights. If that type is used up, the unanswered questions of every
        type in the tier are pooled together; only when the whole tier is used
        up is the chosen type's partition cleared and drawn from again.
        Selection never marks the question as answered; the caller does that
        once the question is actually presented.
        """
        types = self.types_in(topic, intensity_tier)
        if not types:
            raise PoolEmptyError(topic, intensity_tier)

        chosen = self._choose_type(intensity_tier, types)
        partition = (topic, intensity_tier, chosen)
        available = [q for q in self._pools[partition] if not answered.contains(q)]
        if available:
            return self._pick(available)

        combined = [q for q in self.pool(topic, intensity_tier) if not answered.contains(q)]
        if combined:
            logger.debug(f"{chosen.value} exhausted for {topic}/{intensity_tier}; drawing from combined tier pool")
            return self._pick(combined)

        logger.info(f"All {chosen.value} questions answered for {topic}/{intensity_tier}. Resetting pool.")
        answered.clear(partition)
        return self._pick(self._pools[partition])

    def _choose_type(self, intensity_tier: int, types: List[QuestionType]) -> QuestionType:
        if len(types) == 1:
            return types[0]
        configured = self._tier_weights.get(intensity_tier, {})
        weights = np.array([configured.get(qtype, 0.0 if configured else 1.0) for qtype in types])
        if weights.sum() <= 0:
            weights = np.ones(len(types))
        index = self._rng.choice(len(types), p=weights / weights.sum())
        return types[int(index)]

    def _pick(self, questions: List[Question]) -> Question:
        return questions[int(self._rng.integers(len(questions)))]


def load_questions(path: str) -> List[Question]:
    """Read a question file (.json, .yaml or .yml) and validate every record."""
    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            if file_path.suffix.lower() in (".yaml", ".yml"):
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
    except FileNotFoundError:
        raise ContentError(f"Question file not found: {path}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ContentError(f"Question file {path} could not be parsed: {e}")

    questions = parse_records(raw)
    logger.info(f"Loaded {len(questions)} questions from {path}")
    return questions


def parse_records(raw) -> List[Question]:
    """Validate raw content in either supported layout.

    Flat layout: a list of records, each carrying ``topic`` and
    ``intensity``. Nested layout: ``{topic: {"intensity2": {"dragDrop":
    [...]}}}``, where topic, tier and type come from the keys.
    """
    if raw is None:
        raise ContentError("Question content is empty")
    if isinstance(raw, dict) and "questions" in raw:
        raw = raw["questions"]
    if isinstance(raw, list):
        return [Question.from_dict(record) for record in raw]
    if not isinstance(raw, dict):
        raise ContentError(f"Unsupported question content: {type(raw).__name__}")

    questions = []
    for topic, tiers in raw.items():
        if not isinstance(tiers, dict):
            raise ContentError(f"Topic '{topic}' must map intensity keys to question groups")
        for tier_key, groups in tiers.items():
            tier = _tier_from_key(tier_key)
            if not isinstance(groups, dict):
                raise ContentError(f"{topic}/{tier_key} must map question types to lists")
            for type_key, records in groups.items():
                if not isinstance(records, list):
                    raise ContentError(f"{topic}/{tier_key}/{type_key} must be a list")
                for record in records:
                    questions.append(Question.from_dict(
                        record, topic=topic, intensity_tier=tier,
                        question_type=None if type_key == "multipleChoice" else type_key,
                    ))
    return questions


def _tier_from_key(key) -> int:
    text = str(key).lower().replace("intensity", "").strip("_- ")
    try:
        return int(text)
    except ValueError:
        raise ContentError(f"Unrecognized intensity key: {key!r}")
