"""Quiz battle engine: answer programming questions to defeat enemies."""

from .api import (
    BattleHandle,
    abort,
    get_current_question,
    get_final_result,
    grant_streak_shield,
    init_battle,
    pause_for_external_ui,
    resume_from_external_ui,
    submit_answer,
    tick,
)
from .battle_engine import BattleEnded, BattleStateMachine, IntensityRaised, Phase, QuestionResolved
from .config import BattleConfig
from .errors import ConfigError, ContentError, PoolEmptyError
from .models import Question, QuestionType, QuestionView
from .question_bank import AnsweredSet, QuestionBank

__version__ = "0.1.0"
