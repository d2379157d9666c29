"""Tests for the CareerStore module."""
import sqlite3
from unittest.mock import MagicMock, patch

import pytest
from quiz_battle.battle_engine import FinalResult, Phase
from quiz_battle.career_store import CareerStore


@pytest.fixture
def store(tmp_path):
    return CareerStore(db_path=str(tmp_path / "career.db"), max_player_hp=100)


def result(phase=Phase.VICTORY, correct=4, wrong=1, combo=3, score=80, hp=70):
    return FinalResult(phase=phase, correct_answers=correct, wrong_answers=wrong, max_combo=combo,
                       score=score, average_answer_time=4.5, player_hp=hp)


def test_new_career_has_full_hp(store):
    assert store.get_player_hp() == 100


def test_set_player_hp_clamps(store):
    assert store.set_player_hp(150) == 100
    assert store.set_player_hp(-5) == 0
    assert store.get_player_hp() == 0
    assert store.reset_player_hp() == 100


def test_hp_persists_across_instances(tmp_path):
    db = str(tmp_path / "career.db")
    CareerStore(db_path=db).set_player_hp(40)
    assert CareerStore(db_path=db).get_player_hp() == 40


def test_record_and_history(store):
    assert store.record_battle("python", 1, result()) is True
    assert store.record_battle("c", 2, result(phase=Phase.DEFEAT, score=0, hp=0)) is True

    history = store.get_history()
    assert [h["topic"] for h in history] == ["c", "python"]
    assert history[0]["phase"] == "defeat"

    python_only = store.get_history(topic="python")
    assert len(python_only) == 1
    assert python_only[0]["score"] == 80


def test_summary(store):
    store.record_battle("python", 1, result(correct=4, wrong=1, combo=3, score=80))
    store.record_battle("python", 1, result(phase=Phase.DEFEAT, correct=1, wrong=4, combo=5, score=0))
    summary = store.get_summary()
    assert summary["battles"] == 2
    assert summary["victories"] == 1
    assert summary["defeats"] == 1
    assert summary["total_points"] == 80
    assert summary["accuracy"] == 0.5
    assert summary["best_combo"] == 5


def test_empty_summary(store):
    summary = store.get_summary()
    assert summary["battles"] == 0
    assert summary["accuracy"] == 0.0


def test_record_failure_is_reported(store):
    assert store.record_battle("python", 1, object()) is False


def test_record_failure_closes_connection(store):
    conn = MagicMock()
    conn.cursor.return_value.execute.side_effect = sqlite3.OperationalError("disk I/O error")
    with patch.object(store, "_connect", return_value=conn):
        assert store.record_battle("python", 1, result()) is False
    conn.close.assert_called_once()


def test_record_success_closes_connection(store):
    conn = MagicMock()
    with patch.object(store, "_connect", return_value=conn):
        assert store.record_battle("python", 1, result()) is True
    conn.commit.assert_called_once()
    conn.close.assert_called_once()
