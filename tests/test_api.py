"""Tests for the function-style battle interface."""
import pytest
from quiz_battle import api
from quiz_battle.battle_engine import Phase
from quiz_battle.career_store import CareerStore
from quiz_battle.config import BattleConfig
from quiz_battle.errors import PoolEmptyError
from quiz_battle.question_bank import QuestionBank


SAMPLE_QUESTIONS = [
    {"topic": "python", "intensity": 1, "type": "multiple-choice", "question": f"Question {i}?",
     "options": ["a", "b", "c"], "correct_index": 1}
    for i in range(4)
]


@pytest.fixture
def bank():
    return QuestionBank.from_records(SAMPLE_QUESTIONS, seed=2)


@pytest.fixture
def career(tmp_path):
    return CareerStore(db_path=str(tmp_path / "career.db"))


def right(handle):
    return handle._active_question.correct_index


def wrong(handle):
    question = handle._active_question
    return (question.correct_index + 1) % len(question.options)


def test_init_battle_starts(bank):
    handle = api.init_battle(bank, BattleConfig(topic="python"))
    assert api.get_phase(handle) == Phase.QUESTION_ACTIVE
    assert api.get_current_question(handle).prompt.startswith("Question")


def test_init_battle_without_start(bank):
    handle = api.init_battle(bank, BattleConfig(topic="python"), start=False)
    assert api.get_phase(handle) == Phase.AWAITING_START
    assert api.get_current_question(handle) is None


def test_init_battle_empty_pool(bank):
    with pytest.raises(PoolEmptyError):
        api.init_battle(bank, BattleConfig(topic="python", intensity_tier=3))


def test_full_battle_through_api(bank):
    handle = api.init_battle(bank, BattleConfig(topic="python", max_enemy_hp=20, combo_breakpoints=[]))
    api.tick(handle, 2.0)
    assert api.submit_answer(handle, right(handle)).enemy_hp == 10
    api.submit_answer(handle, right(handle))
    final = api.get_final_result(handle)
    assert final.phase == Phase.VICTORY
    assert final.average_answer_time == 1.0


def test_final_result_none_while_running(bank):
    handle = api.init_battle(bank, BattleConfig(topic="python"))
    assert api.get_final_result(handle) is None


def test_pause_and_abort(bank):
    handle = api.init_battle(bank, BattleConfig(topic="python"))
    api.pause_for_external_ui(handle)
    assert api.submit_answer(handle, 0).accepted is False
    api.resume_from_external_ui(handle)
    assert api.abort(handle) is True
    assert api.get_phase(handle) == Phase.ABORTED


def test_career_hp_carries_into_battle(bank, career):
    career.set_player_hp(40)
    handle = api.init_battle(bank, BattleConfig(topic="python"), career=career)
    assert handle.state.player_hp == 40
    assert handle.state.max_player_hp == 100


def test_career_written_back_on_end(bank, career):
    handle = api.init_battle(bank, BattleConfig(topic="python", max_enemy_hp=10), career=career)
    api.submit_answer(handle, wrong(handle))
    api.submit_answer(handle, right(handle))
    assert career.get_player_hp() == 85
    history = career.get_history()
    assert len(history) == 1
    assert history[0]["phase"] == "victory"


def test_defeated_career_starts_at_full_hp(bank, career):
    career.set_player_hp(0)
    handle = api.init_battle(bank, BattleConfig(topic="python"), career=career)
    assert handle.state.player_hp == 100


def test_abort_is_not_recorded(bank, career):
    handle = api.init_battle(bank, BattleConfig(topic="python"), career=career)
    api.submit_answer(handle, wrong(handle))
    api.abort(handle)
    assert career.get_history() == []
    assert career.get_player_hp() == 100


def test_streak_shield_through_api(bank):
    handle = api.init_battle(bank, BattleConfig(topic="python"))
    api.submit_answer(handle, right(handle))
    assert api.grant_streak_shield(handle) is True
    result = api.submit_answer(handle, wrong(handle))
    assert result.shield_used is True
    assert result.combo_count == 1


def test_second_chance_through_api(bank):
    handle = api.init_battle(bank, BattleConfig(topic="python", second_chance=1.0))
    result = api.submit_answer(handle, wrong(handle))
    assert result.second_chance_used is True
    assert result.player_hp == 100
