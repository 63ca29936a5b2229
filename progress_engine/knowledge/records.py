"""
Learner history records read by the snapshot and strategy layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Weighted pronunciation score:
# 0.3 intelligibility + 0.3 segmental + 0.15 stress + 0.15 intonation + 0.1 fluency
PRONUNCIATION_WEIGHTS = {
    "intelligibility": 0.3,
    "segmental_accuracy": 0.3,
    "stress": 0.15,
    "intonation": 0.15,
    "fluency": 0.1,
}


@dataclass
class UserProfile:
    id: str
    cefr_level: str = "A1"
    cefr_sub_level: int = 1


@dataclass
class SessionRecord:
    """A finished (or running) tutoring session."""

    id: str
    user_id: str
    started_at: datetime
    ended_at: datetime | None = None
    duration_minutes: int = 0
    strategies_used: list[str] = field(default_factory=list)
    summary: str = ""

    def used_strategy(self, name: str) -> bool:
        return any(s.upper() == name.upper() for s in self.strategies_used)


@dataclass
class PronunciationAttempt:
    """One evaluated pronunciation attempt with its sub-scores (0.0-1.0)."""

    id: str
    user_id: str
    word: str
    timestamp: datetime
    intelligibility: float = 0.0
    segmental_accuracy: float = 0.0
    stress_correct: bool = True
    intonation: float = 0.0
    fluency: float = 0.0
    problem_sounds: list[str] = field(default_factory=list)

    @property
    def weighted_score(self) -> float:
        w = PRONUNCIATION_WEIGHTS
        return (
            w["intelligibility"] * self.intelligibility
            + w["segmental_accuracy"] * self.segmental_accuracy
            + w["stress"] * (1.0 if self.stress_correct else 0.0)
            + w["intonation"] * self.intonation
            + w["fluency"] * self.fluency
        )


@dataclass
class BookPosition:
    """Where the learner is in the course book."""

    user_id: str
    current_chapter: int = 1
    current_lesson: int = 1
    total_chapters: int = 0
    completion_percentage: float = 0.0
    current_topic: str = ""
