"""
Modified SM-2 Spaced Repetition Engine.

Quality scale:
    0 - complete failure, no recall
    1 - incorrect, but recognized after seeing the answer
    2 - incorrect, but the answer felt familiar
    3 - correct with significant difficulty
    4 - correct with minor hesitation
    5 - instant perfect recall

Interval progression (n = consecutive passed reviews, after this one):
    quality < 3          -> 0.5 days (short re-exposure)
    quality >= 3, n == 1 -> 1 day
    quality >= 3, n == 2 -> 3 days
    quality >= 3, n > 2  -> previous_interval * ease_factor
    last 3 grades all 5  -> interval * 1.5

Ease factor:
    EF' = max(1.3, EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))

Knowledge level moves one step up on a passed review and one step down
on a failed one, clamped to [0, 7].
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from loguru import logger

from progress_engine.errors import InvalidQualityError
from progress_engine.knowledge.models import (
    MAX_KNOWLEDGE_LEVEL,
    MIN_KNOWLEDGE_LEVEL,
    KnowledgeItem,
)

MIN_QUALITY = 0
MAX_QUALITY = 5


@dataclass(frozen=True)
class SrsConfig:
    """Configuration for the modified SM-2 algorithm."""

    default_ease_factor: float = 2.5
    min_ease_factor: float = 1.3
    failed_interval_days: float = 0.5
    first_interval_days: float = 1.0
    second_interval_days: float = 3.0
    boost_multiplier: float = 1.5
    boost_streak: int = 3
    passing_quality: int = 3

    @classmethod
    def from_settings(cls, settings) -> SrsConfig:
        return cls(
            default_ease_factor=settings.srs_default_ease_factor,
            min_ease_factor=settings.srs_min_ease_factor,
            failed_interval_days=settings.srs_failed_interval_days,
            first_interval_days=settings.srs_first_interval_days,
            second_interval_days=settings.srs_second_interval_days,
            boost_multiplier=settings.srs_boost_multiplier,
            boost_streak=settings.srs_boost_streak,
            passing_quality=settings.srs_passing_quality,
        )


def validate_quality(quality: object) -> int:
    """
    Reject grades outside the 0-5 scale.

    Callers run this before ``SrsEngine.advance``; the engine itself does
    not re-validate.
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


class SrsEngine:
    """
    Advances a knowledge item's review schedule after a graded review.

    Pure: returns a new item and leaves persistence and sync to the caller.
    A given item must not be advanced by two review events concurrently.
    """

    def __init__(self, config: SrsConfig | None = None):
        self.config = config or SrsConfig()

    def next_ease_factor(self, ease_factor: float, quality: int) -> float:
        miss = MAX_QUALITY - quality
        delta = 0.1 - miss * (0.08 + miss * 0.02)
        return max(self.config.min_ease_factor, ease_factor + delta)

    def next_interval(
        self,
        repetitions: int,
        quality: int,
        ease_factor: float,
        previous_interval: float,
    ) -> float:
        """Interval in days before boost; ``repetitions`` is post-increment."""
        if quality < self.config.passing_quality:
            return self.config.failed_interval_days
        if repetitions == 1:
            return self.config.first_interval_days
        if repetitions == 2:
            return self.config.second_interval_days
        return previous_interval * ease_factor

    def is_perfect_streak(self, qualities: tuple[int, ...]) -> bool:
        window = self.config.boost_streak
        return len(qualities) >= window and all(q == MAX_QUALITY for q in qualities[-window:])

    def advance(self, item: KnowledgeItem, quality: int, now: datetime) -> KnowledgeItem:
        """
        Apply one graded review to ``item``.

        Args:
            item: Current state (ease factor >= 1.3)
            quality: Grade in [0, 5], already validated
            now: Review timestamp

        Returns:
            Updated copy of the item
        """
        cfg = self.config
        passed = quality >= cfg.passing_quality

        ease_factor = self.next_ease_factor(item.ease_factor, quality)
        repetitions = item.repetitions + 1 if passed else 0
        interval = self.next_interval(repetitions, quality, ease_factor, item.interval_days)

        history = (item.recent_qualities + (quality,))[-cfg.boost_streak:]
        if self.is_perfect_streak(history):
            interval *= cfg.boost_multiplier

        step = 1 if passed else -1
        level = min(MAX_KNOWLEDGE_LEVEL, max(MIN_KNOWLEDGE_LEVEL, item.knowledge_level + step))

        updated = replace(
            item,
            knowledge_level=level,
            times_seen=item.times_seen + 1,
            times_correct=item.times_correct + (1 if passed else 0),
            times_incorrect=item.times_incorrect + (0 if passed else 1),
            repetitions=repetitions,
            recent_qualities=history,
            last_reviewed_at=now,
            last_correct_at=now if passed else item.last_correct_at,
            last_incorrect_at=item.last_incorrect_at if passed else now,
            next_review_at=now + timedelta(days=interval),
            interval_days=interval,
            ease_factor=ease_factor,
            contexts=list(item.contexts),
            mistakes=list(item.mistakes),
            updated_at=now,
        )

        logger.debug(
            "SRS advance {} {}: q={} level {}->{} interval={:.2f}d ef={:.2f}",
            item.kind.value,
            item.subject_id,
            quality,
            item.knowledge_level,
            level,
            interval,
            ease_factor,
        )
        return updated
