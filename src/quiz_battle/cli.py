"""Command-line entry point for a console quiz battle."""

import argparse
import logging
import sys

from .api import init_battle
from .career_store import CareerStore
from .config import load_config
from .console import ConsoleBattle
from .errors import ConfigError, ContentError, PoolEmptyError
from .question_bank import QuestionBank
from .scoring_policy import ScoringPolicy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quiz Battle: fight enemies by answering programming questions")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--questions", default=None, help="Question bank path (JSON or YAML)")
    parser.add_argument("--topic", default=None, help="Question topic")
    parser.add_argument("--intensity", type=int, choices=[1, 2, 3], default=None, help="Intensity tier")
    parser.add_argument("--max-questions", type=int, default=None, help="End the battle after this many questions")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for question selection")
    parser.add_argument("--no-career", action="store_true", help="Do not read or save career HP and results")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2

    log_level = logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        bank = QuestionBank.from_file(args.questions or config.question_path,
                                      tier_weights=config.tier_weights, seed=args.seed)
        battle_config = config.battle_config(
            topic=args.topic or config.battle.get("topic") or (bank.topics() or [None])[0],
            intensity_tier=args.intensity,
            max_questions=args.max_questions,
        )
        career = None
        if not args.no_career:
            career = CareerStore(db_path=config.db_path, max_player_hp=battle_config.max_player_hp)
        battle = init_battle(bank, battle_config, career=career,
                             scoring=ScoringPolicy(**config.scoring_kwargs()),
                             seed=args.seed, start=False)
    except ContentError as e:
        logger.error(f"Question content failed to load: {e}")
        print("Questions could not be loaded. Returning to the menu.", file=sys.stderr)
        return 1
    except PoolEmptyError as e:
        print(f"{e}. Pick another topic: {', '.join(bank.topics())}", file=sys.stderr)
        return 1
    except (ConfigError, ValueError) as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2

    result = ConsoleBattle(battle).run()
    if career is not None:
        summary = career.get_summary()
        print(f"\nCareer: {summary['victories']}/{summary['battles']} victories, "
              f"{summary['total_points']} points, HP {summary['player_hp']}")
    return 0 if result is not None else 1


if __name__ == "__main__":
    sys.exit(main())
