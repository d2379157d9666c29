"""Tests for the command-line entry point."""
import json

from quiz_battle.cli import build_parser, main


def write_questions(tmp_path):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps([
        {"topic": "python", "intensity": 1, "type": "true-false",
         "question": "Tuples are immutable.", "correct_answer": True},
    ]))
    return str(path)


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.config == "config.yaml"
    assert args.topic is None
    assert args.no_career is False


def test_bad_config_exits_2(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("battle: [unclosed")
    assert main(["--config", str(config)]) == 2


def test_missing_questions_exits_1(tmp_path, capsys):
    code = main(["--config", str(tmp_path / "none.yaml"), "--questions", str(tmp_path / "missing.json"),
                 "--no-career"])
    assert code == 1
    assert "Questions could not be loaded" in capsys.readouterr().err


def test_unknown_topic_exits_1(tmp_path, capsys):
    code = main(["--config", str(tmp_path / "none.yaml"), "--questions", write_questions(tmp_path),
                 "--topic", "java", "--no-career"])
    assert code == 1
    assert "python" in capsys.readouterr().err
