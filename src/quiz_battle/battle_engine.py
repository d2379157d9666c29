"""Battle Engine: the state machine that runs one quiz battle.

The engine owns all battle state. Renderers read snapshots and subscribe to
events; they never mutate anything directly. Everything is driven by explicit
calls (``submit_answer``, ``tick``, the external-UI gate), so there is no
threading and each answer is fully resolved before the next is accepted.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from . import answer_validator
from .battle_timer import BattleTimer, TimerView
from .combo_tracker import ComboTracker
from .config import BattleConfig
from .errors import InvalidTransitionError, PoolEmptyError
from .models import Question, QuestionType, QuestionView
from .question_bank import AnsweredSet, QuestionBank
from .scoring_policy import ScoringPolicy, average_answer_time

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    AWAITING_START = "awaiting_start"
    QUESTION_ACTIVE = "question_active"
    RESOLVING = "resolving"
    VICTORY = "victory"
    DEFEAT = "defeat"
    ABORTED = "aborted"


TERMINAL_PHASES = (Phase.VICTORY, Phase.DEFEAT, Phase.ABORTED)


class BattleState:
    """Mutable battle state. Only BattleStateMachine writes to it."""

    def __init__(self, max_player_hp: int, max_enemy_hp: int, player_hp: Optional[int] = None,
                 intensity_tier: int = 1):
        self.max_player_hp = max_player_hp
        self.max_enemy_hp = max_enemy_hp
        self.player_hp = max_player_hp if player_hp is None else player_hp
        self.enemy_hp = max_enemy_hp
        self.intensity_tier = intensity_tier
        self.score = 0
        self.combo_count = 0
        self.max_combo_reached = 0
        self.correct_answers = 0
        self.wrong_answers = 0
        self.questions_asked = 0
        self.current_question_index = -1
        self.current_question_id: Optional[str] = None
        self.answer_times: List[float] = []
        self.phase = Phase.AWAITING_START
        self.battle_won = False

    def to_dict(self) -> dict:
        return {
            "player_hp": self.player_hp,
            "enemy_hp": self.enemy_hp,
            "intensity_tier": self.intensity_tier,
            "max_player_hp": self.max_player_hp,
            "max_enemy_hp": self.max_enemy_hp,
            "score": self.score,
            "combo_count": self.combo_count,
            "max_combo_reached": self.max_combo_reached,
            "correct_answers": self.correct_answers,
            "wrong_answers": self.wrong_answers,
            "questions_asked": self.questions_asked,
            "current_question_index": self.current_question_index,
            "current_question_id": self.current_question_id,
            "answer_times": list(self.answer_times),
            "phase": self.phase.value,
        }


class AnswerResult:
    """Outcome of one ``submit_answer`` call.

    ``accepted`` is False when the call was ignored (wrong phase, UI gate
    closed, blank text); the other fields then just echo the current state.
    """

    def __init__(self, is_correct: Optional[bool], accepted: bool, player_hp: int, enemy_hp: int,
                 combo_count: int, phase: Phase, damage_dealt: int = 0, damage_taken: int = 0,
                 multiplier: float = 1.0, slot_results: Optional[List[bool]] = None,
                 shield_used: bool = False, second_chance_used: bool = False):
        self.is_correct = is_correct
        self.accepted = accepted
        self.player_hp = player_hp
        self.enemy_hp = enemy_hp
        self.combo_count = combo_count
        self.phase = phase
        self.damage_dealt = damage_dealt
        self.damage_taken = damage_taken
        self.multiplier = multiplier
        self.slot_results = slot_results
        self.shield_used = shield_used
        self.second_chance_used = second_chance_used

    def to_dict(self) -> dict:
        return {
            "is_correct": self.is_correct,
            "accepted": self.accepted,
            "player_hp": self.player_hp,
            "enemy_hp": self.enemy_hp,
            "combo_count": self.combo_count,
            "phase": self.phase.value,
            "damage_dealt": self.damage_dealt,
            "damage_taken": self.damage_taken,
            "multiplier": self.multiplier,
            "slot_results": self.slot_results,
            "shield_used": self.shield_used,
            "second_chance_used": self.second_chance_used,
        }


class FinalResult:
    """End-of-battle summary. Only produced for Victory or Defeat."""

    def __init__(self, phase: Phase, correct_answers: int, wrong_answers: int, max_combo: int,
                 score: int, average_answer_time: float, player_hp: int):
        self.phase = phase
        self.correct_answers = correct_answers
        self.wrong_answers = wrong_answers
        self.max_combo = max_combo
        self.score = score
        self.average_answer_time = average_answer_time
        self.player_hp = player_hp

    @property
    def total_questions(self) -> int:
        return self.correct_answers + self.wrong_answers

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "correct_answers": self.correct_answers,
            "wrong_answers": self.wrong_answers,
            "max_combo": self.max_combo,
            "score": self.score,
            "average_answer_time": self.average_answer_time,
            "player_hp": self.player_hp,
        }


@dataclass(frozen=True)
class QuestionResolved:
    question_id: str
    is_correct: bool
    damage_dealt: int
    damage_taken: int
    player_hp: int
    enemy_hp: int
    combo_count: int
    multiplier: float


@dataclass(frozen=True)
class BattleEnded:
    phase: Phase
    final_result: Optional[FinalResult]


@dataclass(frozen=True)
class IntensityRaised:
    previous_tier: int
    intensity_tier: int
    correct_answers: int


EVENT_TYPES = (QuestionResolved, BattleEnded, IntensityRaised)


class BattleStateMachine:
    """Runs a single battle for one topic, starting at one intensity tier.

    Raises PoolEmptyError on construction when the bank has nothing for the
    configured topic/tier, so the caller can pick another topic before any
    battle state exists.
    """

    def __init__(self, bank: QuestionBank, config: BattleConfig,
                 answered: Optional[AnsweredSet] = None,
                 scoring: Optional[ScoringPolicy] = None,
                 seed: Optional[int] = None):
        if not bank.has_pool(config.topic, config.intensity_tier):
            raise PoolEmptyError(config.topic, config.intensity_tier)
        self.bank = bank
        self.config = config
        self.answered = answered if answered is not None else AnsweredSet()
        self.scoring = scoring or ScoringPolicy()
        self.combo = ComboTracker(config.combo_breakpoints)
        self.timer = self._new_timer()
        self._rng = np.random.default_rng(seed)
        self._subscribers: Dict[type, List[Callable]] = {event: [] for event in EVENT_TYPES}
        self.state = self._new_state()
        self._reset_flags()

    def _new_timer(self) -> BattleTimer:
        timer = BattleTimer(max_seconds=self.config.max_seconds)
        timer.on_expire(self._on_timer_expired)
        return timer

    def _new_state(self) -> BattleState:
        return BattleState(self.config.max_player_hp, self.config.max_enemy_hp,
                           player_hp=self.config.starting_player_hp,
                           intensity_tier=self.config.intensity_tier)

    def _reset_flags(self):
        self._ui_blocked = False
        self._expiry_pending = False
        self._active_question: Optional[Question] = None
        self._question_elapsed = 0.0
        self._final_result: Optional[FinalResult] = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def is_finished(self) -> bool:
        return self.state.phase in TERMINAL_PHASES

    @property
    def ui_blocked(self) -> bool:
        return self._ui_blocked

    # --- events ---

    def subscribe(self, event_type: type, handler: Callable):
        if event_type not in self._subscribers:
            raise ValueError(f"Unknown event type: {event_type!r}")
        self._subscribers[event_type].append(handler)

    def _emit(self, event):
        for handler in list(self._subscribers[type(event)]):
            try:
                handler(event)
            except Exception:
                logger.exception(f"{type(event).__name__} handler failed")

    # --- lifecycle ---

    def start_quiz(self) -> bool:
        if self.state.phase != Phase.AWAITING_START:
            self._ignore("start_quiz")
            return False
        logger.info(f"Battle started: {self.config.topic} intensity {self.config.intensity_tier}")
        self.timer.start(self.config.initial_seconds)
        self._present_next_question()
        if self._ui_blocked:
            self.timer.pause()
        return True

    def restart(self, clear_answered: bool = False):
        """Return to AwaitingStart with fresh HP, score, combo and timer.

        The answered set survives by default so a retry does not repeat the
        questions just seen.
        """
        self.timer.release()
        self.timer = self._new_timer()
        self.combo.reset()
        self.state = self._new_state()
        self._reset_flags()
        if clear_answered:
            self.answered.clear()
        logger.info(f"Battle restarted (answered set {'cleared' if clear_answered else 'kept'})")

    def abort(self) -> bool:
        """End the battle early without scoring it."""
        if self.is_finished:
            self._ignore("abort")
            return False
        self.timer.release()
        self._active_question = None
        self._set_phase(Phase.ABORTED)
        self._emit(BattleEnded(Phase.ABORTED, None))
        return True

    # --- external UI gate ---

    def pause_for_external_ui(self):
        """Block answers and freeze the countdown while a tutorial or picker is shown."""
        self._ui_blocked = True
        self.timer.pause()

    def resume_from_external_ui(self):
        if not self._ui_blocked:
            self._ignore("resume_from_external_ui")
            return
        self._ui_blocked = False
        if self.state.phase == Phase.QUESTION_ACTIVE:
            self.timer.resume()

    # --- power-ups ---

    def grant_streak_shield(self) -> bool:
        """Keep the combo through the next wrong answer."""
        if self.is_finished:
            self._ignore("grant_streak_shield")
            return False
        self.combo.grant_shield()
        return True

    # --- queries ---

    def get_current_question(self) -> Optional[QuestionView]:
        if self.state.phase != Phase.QUESTION_ACTIVE or self._active_question is None:
            return None
        return self._active_question.to_view()

    def get_final_result(self) -> Optional[FinalResult]:
        if self.state.phase not in (Phase.VICTORY, Phase.DEFEAT):
            self._ignore("get_final_result")
            return None
        return self._final_result

    def timer_view(self) -> TimerView:
        return self.timer.view()

    # --- answers and time ---

    def submit_answer(self, response: Any) -> AnswerResult:
        state = self.state
        if self._ui_blocked or state.phase != Phase.QUESTION_ACTIVE:
            self._ignore("submit_answer")
            return self._result(None, accepted=False)

        question = self._active_question
        if question.type == QuestionType.FILL_IN_BLANK and answer_validator.is_blank(response):
            logger.debug("Blank fill-in answer rejected")
            return self._result(None, accepted=False)

        self._set_phase(Phase.RESOLVING)
        self.timer.pause()

        is_correct = answer_validator.is_correct(question, response)
        state.answer_times.append(self._question_elapsed)

        shield_before = self.combo.shield
        self.combo.on_answer(is_correct)
        shield_used = shield_before and not self.combo.shield
        state.combo_count = self.combo.streak
        state.max_combo_reached = self.combo.max_reached()
        multiplier = self.combo.multiplier()

        dealt = taken = 0
        second_chance_used = False
        if is_correct:
            state.correct_answers += 1
            state.score += int(round(multiplier))
            dealt = self._attack_damage(multiplier)
            state.enemy_hp = _clamp(state.enemy_hp - dealt, state.max_enemy_hp)
            if state.enemy_hp <= 0:
                state.battle_won = True
            self.timer.add_time(self.config.correct_time_bonus)
        else:
            state.wrong_answers += 1
            second_chance_used = self._roll_second_chance()
            if second_chance_used:
                logger.info("Second chance: wrong answer deals no damage")
            else:
                taken = self.config.enemy_damage
                state.player_hp = _clamp(state.player_hp - taken, state.max_player_hp)
            self.timer.subtract_time(self.config.wrong_time_penalty)

        logger.info(
            f"Answer {'correct' if is_correct else 'wrong'}: enemy HP {state.enemy_hp}, "
            f"player HP {state.player_hp}, combo {state.combo_count}"
        )
        slots = None
        if question.type == QuestionType.DRAG_AND_DROP and isinstance(response, (list, tuple)):
            slots = answer_validator.slot_results(question, response)

        self._emit(QuestionResolved(
            question_id=question.id, is_correct=is_correct, damage_dealt=dealt, damage_taken=taken,
            player_hp=state.player_hp, enemy_hp=state.enemy_hp,
            combo_count=state.combo_count, multiplier=multiplier,
        ))
        # A handler may have aborted or restarted the battle.
        if self.state is state and state.phase == Phase.RESOLVING:
            self._after_resolution()
        return self._result(is_correct, accepted=True, damage_dealt=dealt, damage_taken=taken,
                            multiplier=multiplier, slot_results=slots,
                            shield_used=shield_used, second_chance_used=second_chance_used)

    def tick(self, delta_seconds: float) -> TimerView:
        if self.state.phase != Phase.QUESTION_ACTIVE or self._ui_blocked or delta_seconds <= 0:
            return self.timer.view()
        self._question_elapsed += min(delta_seconds, self.timer.remaining_seconds)
        return self.timer.tick(delta_seconds)

    def process_frame(self, delta_seconds: float,
                      responses: Sequence[Any] = ()) -> Tuple[List[AnswerResult], TimerView]:
        """Handle everything that arrived in one frame.

        Answers are resolved before the tick, so an answer that wins the
        battle in the same frame the clock runs out still counts as a victory.
        """
        results = [self.submit_answer(response) for response in responses]
        return results, self.tick(delta_seconds)

    # --- internals ---

    def _attack_damage(self, multiplier: float) -> int:
        if not self.config.apply_combo_to_damage:
            return self.config.base_damage
        return int(round(self.config.base_damage * multiplier))

    def _roll_second_chance(self) -> bool:
        chance = self.config.second_chance
        if chance <= 0:
            return False
        return chance >= 1 or float(self._rng.random()) < chance

    def _check_intensity_increase(self):
        """Move up one tier when enough correct answers are in and the tier has questions."""
        thresholds = self.config.intensity_thresholds
        if not thresholds:
            return
        state = self.state
        next_tier = state.intensity_tier + 1
        needed = thresholds.get(next_tier)
        if needed is None or state.correct_answers < needed:
            return
        if not self.bank.has_pool(self.config.topic, next_tier):
            logger.debug(f"No questions at intensity {next_tier}; staying at {state.intensity_tier}")
            return
        previous = state.intensity_tier
        state.intensity_tier = next_tier
        logger.info(f"Intensity raised to {next_tier} after {state.correct_answers} correct answers")
        self._emit(IntensityRaised(previous, next_tier, state.correct_answers))

    def _present_next_question(self):
        state = self.state
        self._check_intensity_increase()
        if self.state is not state or self.is_finished:
            return
        question = self.bank.select_question(self.config.topic, self.state.intensity_tier, self.answered)
        self.answered.mark(question)
        self._active_question = question.shuffled(self._rng)
        self._question_elapsed = 0.0
        self.state.current_question_id = question.id
        self.state.current_question_index = self.state.questions_asked
        self.state.questions_asked += 1
        self._set_phase(Phase.QUESTION_ACTIVE)

    def _after_resolution(self):
        state = self.state
        limit = self.config.max_questions
        if state.enemy_hp <= 0:
            self._finish(Phase.VICTORY)
        elif state.player_hp <= 0:
            self._finish(Phase.DEFEAT)
        elif self._expiry_pending:
            self._finish(Phase.DEFEAT)
        elif limit is not None and state.questions_asked >= limit:
            self._finish(Phase.VICTORY)
        else:
            self._present_next_question()
            if not self._ui_blocked:
                self.timer.resume()

    def _on_timer_expired(self):
        if self.state.battle_won or self.is_finished:
            logger.info("Timer expired after the battle was decided; keeping result")
            return
        if self.state.phase == Phase.RESOLVING:
            self._expiry_pending = True
            return
        logger.info("Time's up")
        self._finish(Phase.DEFEAT)

    def _finish(self, phase: Phase):
        state = self.state
        self.timer.stop()
        self._active_question = None
        self._set_phase(phase)
        avg_time = average_answer_time(state.answer_times, self.config.target_time_per_question)
        points = 0
        if phase == Phase.VICTORY:
            points = self.scoring.compute_final_score(
                correct_answers=state.correct_answers,
                total_questions=state.correct_answers + state.wrong_answers,
                max_combo=state.max_combo_reached,
                average_answer_time_seconds=avg_time,
                target_time_per_question=self.config.target_time_per_question,
                difficulty_weight=self.config.resolved_difficulty_weight,
            )
        self._final_result = FinalResult(
            phase=phase,
            correct_answers=state.correct_answers,
            wrong_answers=state.wrong_answers,
            max_combo=state.max_combo_reached,
            score=points,
            average_answer_time=avg_time,
            player_hp=state.player_hp,
        )
        logger.info(f"Battle ended in {phase.value}: {self._final_result.to_dict()}")
        self._emit(BattleEnded(phase, self._final_result))

    def _set_phase(self, phase: Phase):
        if phase != self.state.phase:
            logger.debug(f"Phase {self.state.phase.value} -> {phase.value}")
        self.state.phase = phase

    def _ignore(self, operation: str):
        logger.debug(f"Ignored: {InvalidTransitionError(operation, self.state.phase.value)}")

    def _result(self, is_correct: Optional[bool], accepted: bool, **extra) -> AnswerResult:
        state = self.state
        return AnswerResult(is_correct, accepted, state.player_hp, state.enemy_hp,
                            state.combo_count, state.phase, **extra)


def _clamp(value: int, maximum: int) -> int:
    return max(0, min(value, maximum))
