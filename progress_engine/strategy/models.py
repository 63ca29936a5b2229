"""
Learning strategy types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LearningStrategy(str, Enum):
    """Teaching strategies the tutoring agent can run."""

    LINEAR_BOOK = "LINEAR_BOOK"
    GAP_FILLING = "GAP_FILLING"
    REPETITION = "REPETITION"
    FREE_PRACTICE = "FREE_PRACTICE"
    PRONUNCIATION = "PRONUNCIATION"
    GRAMMAR_DRILL = "GRAMMAR_DRILL"
    VOCABULARY_BOOST = "VOCABULARY_BOOST"
    LISTENING = "LISTENING"
    ASSESSMENT = "ASSESSMENT"

    @classmethod
    def from_string(cls, value: str) -> LearningStrategy:
        """Parse a strategy name, defaulting to LINEAR_BOOK."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.LINEAR_BOOK


@dataclass(frozen=True)
class StrategyRecommendation:
    primary: LearningStrategy
    secondary: LearningStrategy
    reason: str


FALLBACK_RECOMMENDATION = StrategyRecommendation(
    primary=LearningStrategy.LINEAR_BOOK,
    secondary=LearningStrategy.REPETITION,
    reason="Continue with the course book",
)


@dataclass(frozen=True)
class StrategySignals:
    """Aggregate inputs of the strategy rule chain."""

    due_word_count: int
    due_rule_count: int
    weak_point_count: int
    vocab_sub_level: int
    grammar_sub_level: int
    days_since_pronunciation: int

    @property
    def due_count(self) -> int:
        return self.due_word_count + self.due_rule_count
