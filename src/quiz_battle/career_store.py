"""Career Store: persists player HP and battle history in SQLite."""

import sqlite3
import time
import uuid
import logging
from typing import Optional, List, Dict

logger = logging.getLogger(__name__)


class CareerStore:
    """Keeps the player's HP between battles and records finished battles."""

    def __init__(self, db_path: str = "quiz_battle_career.db", max_player_hp: int = 100):
        self.db_path = db_path
        self.max_player_hp = max_player_hp
        self._init_db()

    def _connect(self):
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        """Initialize the SQLite database."""
        conn = self._connect()
        c = conn.cursor()
        c.execute("""
            CREATE TABLE IF NOT EXISTS player (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                hp INTEGER,
                max_hp INTEGER,
                updated_at REAL
            )
        """)
        c.execute("""
            CREATE TABLE IF NOT EXISTS battle_results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                battle_id TEXT,
                topic TEXT,
                intensity_tier INTEGER,
                phase TEXT,
                correct INTEGER,
                wrong INTEGER,
                max_combo INTEGER,
                score INTEGER,
                avg_answer_time REAL,
                player_hp INTEGER,
                timestamp REAL
            )
        """)
        c.execute(
            "INSERT OR IGNORE INTO player (id, hp, max_hp, updated_at) VALUES (1, ?, ?, ?)",
            (self.max_player_hp, self.max_player_hp, time.time()),
        )
        conn.commit()
        conn.close()
        logger.info(f"Career DB initialized at {self.db_path}")

    def get_player_hp(self) -> int:
        conn = self._connect()
        try:
            row = conn.execute("SELECT hp FROM player WHERE id = 1").fetchone()
        finally:
            conn.close()
        return int(row[0]) if row else self.max_player_hp

    def set_player_hp(self, hp: int) -> int:
        """Store HP clamped to [0, max]. Returns the stored value."""
        hp = max(0, min(int(hp), self.max_player_hp))
        conn = self._connect()
        try:
            conn.execute("UPDATE player SET hp = ?, max_hp = ?, updated_at = ? WHERE id = 1",
                         (hp, self.max_player_hp, time.time()))
            conn.commit()
        finally:
            conn.close()
        return hp

    def reset_player_hp(self) -> int:
        return self.set_player_hp(self.max_player_hp)

    def record_battle(self, topic: str, intensity_tier: int, final_result,
                      battle_id: Optional[str] = None) -> bool:
        """Save a finished battle. Persistence failures are logged, not raised."""
        conn = None
        try:
            conn = self._connect()
            c = conn.cursor()
            c.execute("""
                INSERT INTO battle_results
                (battle_id, topic, intensity_tier, phase, correct, wrong, max_combo,
                 score, avg_answer_time, player_hp, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                battle_id or str(uuid.uuid4()), topic, intensity_tier,
                final_result.phase.value, final_result.correct_answers,
                final_result.wrong_answers, final_result.max_combo, final_result.score,
                final_result.average_answer_time, final_result.player_hp, time.time(),
            ))
            conn.commit()
            return True
        except Exception as e:
            logger.error(f"Failed to save battle result: {e}")
            return False
        finally:
            if conn is not None:
                conn.close()

    def get_history(self, topic: Optional[str] = None, limit: int = 50) -> List[Dict]:
        """Most recent battles first."""
        query = ("SELECT battle_id, topic, intensity_tier, phase, correct, wrong, max_combo, "
                 "score, avg_answer_time, player_hp, timestamp FROM battle_results")
        params: list = []
        if topic:
            query += " WHERE topic = ?"
            params.append(topic)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)
        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        keys = ("battle_id", "topic", "intensity_tier", "phase", "correct", "wrong",
                "max_combo", "score", "avg_answer_time", "player_hp", "timestamp")
        return [dict(zip(keys, row)) for row in rows]

    def get_summary(self) -> dict:
        """Career totals across every recorded battle."""
        conn = self._connect()
        try:
            row = conn.execute("""
                SELECT COUNT(*),
                       COALESCE(SUM(CASE WHEN phase = 'victory' THEN 1 ELSE 0 END), 0),
                       COALESCE(SUM(score), 0),
                       COALESCE(SUM(correct), 0),
                       COALESCE(SUM(wrong), 0),
                       COALESCE(MAX(max_combo), 0)
                FROM battle_results
            """).fetchone()
        finally:
            conn.close()
        battles, victories, points, correct, wrong, best_combo = row
        answered = correct + wrong
        return {
            "battles": battles,
            "victories": victories,
            "defeats": battles - victories,
            "total_points": points,
            "accuracy": correct / answered if answered > 0 else 0.0,
            "best_combo": best_combo,
            "player_hp": self.get_player_hp(),
        }
