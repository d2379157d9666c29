"""Console Battle: runs a battle in the terminal with typed answers."""

import logging
import time
from typing import Any, Callable, Optional

from .battle_engine import BattleStateMachine, Phase
from .feedback import FeedbackGenerator
from .models import QuestionType, QuestionView

logger = logging.getLogger(__name__)

QUIT_COMMANDS = ("quit", "exit", "stop")
PAUSE_COMMANDS = ("pause",)
RESUME_COMMANDS = ("resume", "continue")


class ConsoleBattle:
    """
    Text-mode front end for a BattleStateMachine.
    Shows each question, reads the answer, feeds elapsed wall time to the
    engine as ticks, and prints feedback and the final summary.
    """

    def __init__(
        self,
        battle: BattleStateMachine,
        feedback: Optional[FeedbackGenerator] = None,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.battle = battle
        self.feedback = feedback or FeedbackGenerator()
        self._input = input_fn
        self._output = output_fn
        self._clock = clock

    def say(self, text: str):
        self._output(text)

    def listen(self) -> Optional[str]:
        try:
            return self._input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            return None

    def handle_command(self, text: str) -> Optional[str]:
        """Recognize console commands. Returns 'quit', 'pause', 'resume' or None."""
        lower = text.lower().strip().rstrip(".!")
        if lower in QUIT_COMMANDS:
            return "quit"
        if lower in PAUSE_COMMANDS:
            return "pause"
        if lower in RESUME_COMMANDS:
            return "resume"
        return None

    def parse_response(self, question: QuestionView, text: str) -> Any:
        """Convert typed text into the response shape the engine expects.

        Raises ValueError for input that cannot be read for this question type.
        """
        if question.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
            number = int(text)
            if not 1 <= number <= len(question.options):
                raise ValueError(f"Choose a number between 1 and {len(question.options)}")
            return number - 1
        if question.type == QuestionType.DRAG_AND_DROP:
            numbers = [int(part) for part in text.replace(",", " ").split()]
            if any(not 1 <= n <= len(question.blocks) for n in numbers):
                raise ValueError(f"Block numbers go from 1 to {len(question.blocks)}")
            return [question.blocks[n - 1] for n in numbers]
        return text

    def wait_for_resume(self) -> bool:
        self.battle.pause_for_external_ui()
        self.say("Paused. Type 'resume' to continue.")
        while True:
            text = self.listen()
            if text is None:
                return False
            command = self.handle_command(text)
            if command == "resume":
                self.battle.resume_from_external_ui()
                return True
            if command == "quit":
                return False

    def run_question(self, question: QuestionView, question_num: int) -> bool:
        """Ask one question until an answer is accepted. Returns False to quit."""
        self.say(self.feedback.question_intro(question, question_num))
        self.say(f"[Time left: {self.battle.timer_view().remaining_seconds:.0f}s]")
        last = self._clock()

        while True:
            text = self.listen()
            now = self._clock()
            self.battle.tick(now - last)
            last = now

            if text is None:
                return False
            if self.battle.phase != Phase.QUESTION_ACTIVE:
                self.say("Time's up!")
                return True

            command = self.handle_command(text)
            if command == "quit":
                return False
            if command == "pause":
                if not self.wait_for_resume():
                    return False
                last = self._clock()
                continue
            if command == "resume":
                continue

            try:
                response = self.parse_response(question, text)
            except ValueError as e:
                self.say(f"Couldn't read that answer: {e}")
                continue

            result = self.battle.submit_answer(response)
            if not result.accepted:
                self.say("Please enter an answer.")
                continue
            self.say(self.feedback.answer_feedback(result))
            self.say(f"  [You: {result.player_hp} HP | Enemy: {result.enemy_hp} HP | Combo: {result.combo_count}]")
            return True

    def run(self):
        """Run the battle to the end. Returns the final result, or None if aborted."""
        if self.battle.phase == Phase.AWAITING_START:
            self.battle.start_quiz()
        self.say(f"A wild {self.battle.config.topic} enemy appears! Answer to attack.")

        question_num = 0
        while self.battle.phase == Phase.QUESTION_ACTIVE:
            question = self.battle.get_current_question()
            question_num += 1
            if not self.run_question(question, question_num):
                self.battle.abort()
                self.say("Battle abandoned.")
                return None

        result = self.battle.get_final_result()
        if result is not None:
            self.say(self.feedback.battle_summary(result))
            logger.info(f"Battle complete: {result.to_dict()}")
        return result
