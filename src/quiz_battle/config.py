"""Configuration: battle, combo, scoring and content settings from YAML."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from .combo_tracker import DEFAULT_BREAKPOINTS
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY_WEIGHTS = {1: 1.0, 2: 1.5, 3: 2.0}


@dataclass
class BattleConfig:
    """Settings for one battle."""

    topic: str
    intensity_tier: int = 1
    max_player_hp: int = 100
    max_enemy_hp: int = 100
    base_damage: int = 10
    enemy_damage: int = 15
    initial_seconds: float = 30.0
    max_seconds: Optional[float] = None
    correct_time_bonus: float = 5.0
    wrong_time_penalty: float = 3.0
    max_questions: Optional[int] = None
    starting_player_hp: Optional[int] = None
    apply_combo_to_damage: bool = True
    combo_breakpoints: List[Tuple[int, float]] = field(default_factory=lambda: list(DEFAULT_BREAKPOINTS))
    target_time_per_question: float = 10.0
    difficulty_weight: Optional[float] = None
    second_chance: float = 0.0
    # tier -> correct answers needed to reach it during a battle
    intensity_thresholds: Optional[Dict[int, int]] = None

    def __post_init__(self):
        if not self.topic:
            raise ConfigError("A battle needs a topic")
        for name in ("max_player_hp", "max_enemy_hp"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        if self.base_damage < 0 or self.enemy_damage < 0:
            raise ConfigError("Damage values must be >= 0")
        if self.initial_seconds <= 0:
            raise ConfigError("initial_seconds must be positive")
        if self.max_seconds is not None and self.max_seconds < self.initial_seconds:
            raise ConfigError("max_seconds cannot be below initial_seconds")
        if self.correct_time_bonus < 0 or self.wrong_time_penalty < 0:
            raise ConfigError("Time bonus and penalty must be >= 0")
        if self.max_questions is not None and self.max_questions <= 0:
            raise ConfigError("max_questions must be positive when set")
        if self.starting_player_hp is not None and not 0 < self.starting_player_hp <= self.max_player_hp:
            raise ConfigError("starting_player_hp must be within (0, max_player_hp]")
        if self.target_time_per_question <= 0:
            raise ConfigError("target_time_per_question must be positive")
        if not 0.0 <= self.second_chance <= 1.0:
            raise ConfigError("second_chance must be a probability in [0, 1]")
        if self.intensity_thresholds:
            for tier, needed in self.intensity_thresholds.items():
                if needed < 0:
                    raise ConfigError(f"Intensity threshold for tier {tier} must be >= 0, got {needed}")

    @property
    def resolved_difficulty_weight(self) -> float:
        if self.difficulty_weight is not None:
            return self.difficulty_weight
        return DEFAULT_DIFFICULTY_WEIGHTS.get(self.intensity_tier, 1.0)

    @classmethod
    def from_dict(cls, data: dict, **overrides) -> "BattleConfig":
        values = {k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__}
        values.update({k: v for k, v in overrides.items() if v is not None})
        if "combo_breakpoints" in values:
            values["combo_breakpoints"] = [tuple(step) for step in values["combo_breakpoints"]]
        if values.get("intensity_thresholds"):
            values["intensity_thresholds"] = {int(k): int(v) for k, v in values["intensity_thresholds"].items()}
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigError(f"Invalid battle configuration: {e}")


@dataclass
class AppConfig:
    """Everything read from config.yaml."""

    battle: Dict = field(default_factory=dict)
    combo: Dict = field(default_factory=dict)
    scoring: Dict = field(default_factory=dict)
    bank: Dict = field(default_factory=dict)
    career: Dict = field(default_factory=dict)
    logging: Dict = field(default_factory=dict)

    def battle_config(self, **overrides) -> BattleConfig:
        battle = dict(self.battle)
        if "breakpoints" in self.combo:
            battle["combo_breakpoints"] = self.combo["breakpoints"]
        if "target_time_per_question" in self.scoring:
            battle["target_time_per_question"] = self.scoring["target_time_per_question"]
        weights = {int(k): float(v) for k, v in self.scoring.get("difficulty_weights", {}).items()}
        tier = int(overrides.get("intensity_tier") or battle.get("intensity_tier", 1))
        if tier in weights:
            battle["difficulty_weight"] = weights[tier]
        return BattleConfig.from_dict(battle, **overrides)

    def scoring_kwargs(self) -> dict:
        keys = ("base_points", "speed_multiplier", "perfect_multiplier", "combo_bonus_rate")
        return {k: self.scoring[k] for k in keys if k in self.scoring}

    @property
    def question_path(self) -> str:
        return self.bank.get("path", "data/questions.json")

    @property
    def tier_weights(self) -> dict:
        return self.bank.get("tier_weights", {})

    @property
    def db_path(self) -> str:
        return self.career.get("db_path", "quiz_battle_career.db")

    @property
    def log_level(self) -> str:
        return str(self.logging.get("level", "INFO")).upper()


def load_config(path: Optional[str]) -> AppConfig:
    """Read a YAML config file. A missing file yields all defaults."""
    if not path or not Path(path).exists():
        logger.debug(f"No config file at {path}; using defaults")
        return AppConfig()
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} could not be parsed: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    sections = {}
    for name in AppConfig.__dataclass_fields__:
        section = data.get(name, {})
        if not isinstance(section, dict):
            raise ConfigError(f"Config section '{name}' must be a mapping")
        sections[name] = section
    return AppConfig(**sections)
