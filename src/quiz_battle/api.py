"""Function-style interface for presentation layers.

Each call takes the handle returned by ``init_battle``. The handle is the
battle's state machine; these wrappers exist so a renderer can depend on a
small fixed surface.
"""

import logging
from dataclasses import replace
from typing import Any, Optional

from .battle_engine import AnswerResult, BattleEnded, BattleStateMachine, FinalResult, Phase
from .battle_timer import TimerView
from .career_store import CareerStore
from .config import BattleConfig
from .models import QuestionView
from .question_bank import AnsweredSet, QuestionBank
from .scoring_policy import ScoringPolicy

logger = logging.getLogger(__name__)

BattleHandle = BattleStateMachine


def init_battle(bank: QuestionBank, config: BattleConfig,
                career: Optional[CareerStore] = None,
                answered: Optional[AnsweredSet] = None,
                scoring: Optional[ScoringPolicy] = None,
                seed: Optional[int] = None,
                start: bool = True) -> BattleHandle:
    """Create a battle and, by default, show its first question.

    With a career store, the player's stored HP is the starting HP and the
    final HP and result are written back when the battle ends. Raises
    PoolEmptyError if the topic/tier has no questions.
    """
    if career is not None and config.starting_player_hp is None:
        stored = career.get_player_hp()
        if stored <= 0:
            logger.info("Stored player HP was 0; starting with full HP")
            stored = config.max_player_hp
        config = replace(config, starting_player_hp=min(stored, config.max_player_hp))

    handle = BattleStateMachine(bank, config, answered=answered, scoring=scoring, seed=seed)
    if career is not None:
        handle.subscribe(BattleEnded, lambda event: _write_back(career, config, event))
    if start:
        handle.start_quiz()
    return handle


def _write_back(career: CareerStore, config: BattleConfig, event: BattleEnded):
    if event.final_result is None:
        return
    career.set_player_hp(event.final_result.player_hp)
    career.record_battle(config.topic, config.intensity_tier, event.final_result)


def get_current_question(handle: BattleHandle) -> Optional[QuestionView]:
    return handle.get_current_question()


def submit_answer(handle: BattleHandle, response: Any) -> AnswerResult:
    return handle.submit_answer(response)


def tick(handle: BattleHandle, delta_seconds: float) -> TimerView:
    return handle.tick(delta_seconds)


def pause_for_external_ui(handle: BattleHandle):
    handle.pause_for_external_ui()


def resume_from_external_ui(handle: BattleHandle):
    handle.resume_from_external_ui()


def get_final_result(handle: BattleHandle) -> Optional[FinalResult]:
    return handle.get_final_result()


def abort(handle: BattleHandle) -> bool:
    return handle.abort()


def get_phase(handle: BattleHandle) -> Phase:
    return handle.phase


def grant_streak_shield(handle: BattleHandle) -> bool:
    return handle.grant_streak_shield()
