"""
Weak point detection across vocabulary, grammar and pronunciation.

Weak point criteria:
    - Vocabulary: knowledge_level <= 2 AND times_seen >= 3
    - Grammar:    knowledge_level <= 2 AND times_practiced >= 3
    - Pronunciation: score < 0.5 after > 5 attempts, trend STABLE/DECLINING
"""

from __future__ import annotations

from dataclasses import dataclass

from progress_engine.knowledge.models import MAX_KNOWLEDGE_LEVEL, ItemKind
from progress_engine.knowledge.store import ProgressStore
from progress_engine.snapshot.pronunciation import PronunciationTrend, summarize_sounds

PRONUNCIATION_WEAK_SCORE = 0.5
PRONUNCIATION_MIN_ATTEMPTS = 5
PRONUNCIATION_HISTORY_LIMIT = 200


@dataclass(frozen=True)
class WeakPoint:
    identifier: str
    category: str
    severity: float
    description: str


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class WeakPointDetector:
    """Finds under-mastered items for a learner."""

    def __init__(self, store: ProgressStore, pronunciation_history: int = PRONUNCIATION_HISTORY_LIMIT):
        self.store = store
        self.pronunciation_history = pronunciation_history

    def detect(self, user_id: str, limit: int | None = None) -> list[WeakPoint]:
        """
        Collect weak points, most severe first.

        Args:
            user_id: Learner identifier
            limit: Optional cap on the number returned
        """
        points = (
            self._vocabulary(user_id)
            + self._grammar(user_id)
            + self._pronunciation(user_id)
        )
        points.sort(key=lambda p: (-p.severity, p.identifier))
        return points if limit is None else points[:limit]

    def _vocabulary(self, user_id: str) -> list[WeakPoint]:
        points = []
        for item in self.store.get_all_items(ItemKind.WORD, user_id):
            if not item.is_weak:
                continue
            severity = 1.0 - item.accuracy if item.accuracy > 0 else 1.0
            points.append(
                WeakPoint(
                    identifier=f"vocabulary:{item.subject_id}",
                    category="vocabulary",
                    severity=_clamp(severity),
                    description=(
                        f"Word {item.subject_id}: {item.times_incorrect} errors, "
                        f"{item.times_correct} correct"
                    ),
                )
            )
        return points

    def _grammar(self, user_id: str) -> list[WeakPoint]:
        points = []
        for item in self.store.get_all_items(ItemKind.RULE, user_id):
            if not item.is_weak:
                continue
            points.append(
                WeakPoint(
                    identifier=f"grammar:{item.subject_id}",
                    category="grammar",
                    severity=_clamp(1.0 - item.knowledge_level / MAX_KNOWLEDGE_LEVEL),
                    description=f"Rule {item.subject_id}: level {item.knowledge_level}/7",
                )
            )
        return points

    def _pronunciation(self, user_id: str) -> list[WeakPoint]:
        attempts = self.store.get_pronunciation_attempts(user_id, self.pronunciation_history)
        points = []
        for sound in summarize_sounds(attempts):
            if (
                sound.score < PRONUNCIATION_WEAK_SCORE
                and sound.attempts > PRONUNCIATION_MIN_ATTEMPTS
                and sound.trend is not PronunciationTrend.IMPROVING
            ):
                points.append(
                    WeakPoint(
                        identifier=f"pronunciation:{sound.sound}",
                        category="pronunciation",
                        severity=_clamp(1.0 - sound.score),
                        description=f"Sound '{sound.sound}': score {round(sound.score * 100)}%",
                    )
                )
        return points
