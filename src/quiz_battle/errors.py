"""Exception types raised by the battle engine."""


class QuizBattleError(Exception):
    """Base class for all engine errors."""


class ContentError(QuizBattleError):
    """Question data is malformed or missing. Raised at load time only."""


class PoolEmptyError(QuizBattleError):
    """A topic/tier combination has no questions defined at all."""

    def __init__(self, topic: str, intensity_tier: int):
        super().__init__(f"No questions defined for topic '{topic}' at intensity {intensity_tier}")
        self.topic = topic
        self.intensity_tier = intensity_tier


class InvalidTransitionError(QuizBattleError):
    """An operation was requested that the current phase does not allow.

    The state machine creates these to describe ignored calls in its logs;
    they are never raised to callers of the public API.
    """

    def __init__(self, operation: str, phase):
        super().__init__(f"'{operation}' is not valid in phase {phase}")
        self.operation = operation
        self.phase = phase


class ConfigError(QuizBattleError):
    """Configuration file or values are invalid."""
