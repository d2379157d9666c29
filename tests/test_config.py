"""Tests for configuration loading."""
import pytest
import yaml
from quiz_battle.combo_tracker import DEFAULT_BREAKPOINTS
from quiz_battle.config import AppConfig, BattleConfig, load_config
from quiz_battle.errors import ConfigError


SAMPLE_CONFIG = {
    "battle": {"topic": "python", "intensity_tier": 2, "max_enemy_hp": 50, "initial_seconds": 20},
    "combo": {"breakpoints": [[2, 1.5], [4, 2.0]]},
    "scoring": {"base_points": 20, "target_time_per_question": 8, "difficulty_weights": {1: 1.0, 2: 1.75}},
    "bank": {"path": "content/questions.yaml", "tier_weights": {2: {"drag-and-drop": 1.0}}},
    "career": {"db_path": "career.db"},
    "logging": {"level": "debug"},
}


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(SAMPLE_CONFIG))
    return str(path)


def test_defaults():
    config = BattleConfig(topic="python")
    assert config.max_player_hp == 100
    assert config.base_damage == 10
    assert config.enemy_damage == 15
    assert config.initial_seconds == 30
    assert config.combo_breakpoints == list(DEFAULT_BREAKPOINTS)
    assert config.resolved_difficulty_weight == 1.0


def test_difficulty_weight_by_tier():
    assert BattleConfig(topic="python", intensity_tier=3).resolved_difficulty_weight == 2.0
    assert BattleConfig(topic="python", difficulty_weight=1.2).resolved_difficulty_weight == 1.2


@pytest.mark.parametrize("overrides", [
    {"topic": ""},
    {"max_enemy_hp": 0},
    {"enemy_damage": -1},
    {"initial_seconds": 0},
    {"initial_seconds": 30, "max_seconds": 10},
    {"max_questions": 0},
    {"starting_player_hp": 150},
    {"target_time_per_question": 0},
])
def test_invalid_battle_config(overrides):
    values = {"topic": "python"}
    values.update(overrides)
    with pytest.raises(ConfigError):
        BattleConfig(**values)


def test_from_dict_ignores_unknown_keys_and_none_overrides():
    config = BattleConfig.from_dict({"topic": "python", "colour": "red", "max_enemy_hp": 40},
                                    max_enemy_hp=None, intensity_tier=2)
    assert config.max_enemy_hp == 40
    assert config.intensity_tier == 2


def test_from_dict_requires_topic():
    with pytest.raises(ConfigError):
        BattleConfig.from_dict({})


def test_load_config(config_file):
    config = load_config(config_file)
    assert config.question_path == "content/questions.yaml"
    assert config.db_path == "career.db"
    assert config.log_level == "DEBUG"
    assert config.scoring_kwargs() == {"base_points": 20}

    battle = config.battle_config()
    assert battle.intensity_tier == 2
    assert battle.max_enemy_hp == 50
    assert battle.combo_breakpoints == [(2, 1.5), (4, 2.0)]
    assert battle.target_time_per_question == 8
    assert battle.resolved_difficulty_weight == 1.75


def test_battle_config_overrides(config_file):
    battle = load_config(config_file).battle_config(topic="c", intensity_tier=1)
    assert battle.topic == "c"
    assert battle.resolved_difficulty_weight == 1.0


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    assert isinstance(config, AppConfig)
    assert config.question_path == "data/questions.json"
    assert config.log_level == "INFO"


def test_unparseable_config(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("battle: [unclosed")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_section_must_be_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"battle": ["not", "a", "mapping"]}))
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_power_up_and_intensity_defaults():
    config = BattleConfig(topic="python")
    assert config.second_chance == 0.0
    assert config.intensity_thresholds is None


@pytest.mark.parametrize("overrides", [
    {"second_chance": 1.5},
    {"second_chance": -0.1},
    {"intensity_thresholds": {2: -1}},
])
def test_invalid_power_up_settings(overrides):
    with pytest.raises(ConfigError):
        BattleConfig(topic="python", **overrides)


def test_intensity_thresholds_from_yaml_keys():
    config = BattleConfig.from_dict({"topic": "python", "intensity_thresholds": {"2": "5", 3: 10}})
    assert config.intensity_thresholds == {2: 5, 3: 10}
