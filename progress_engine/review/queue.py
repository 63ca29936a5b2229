"""
Review Queue Builder.

Selects the due items for a session and orders them by urgency.

Priority buckets:
    CRITICAL:   level <= 2 AND overdue > 3 days
    IMPORTANT:  level 3-4
    SUPPORTING: level 5-6
    MASTERY:    everything else (level 7, and weak items not yet critical)

Sorted by bucket ascending, then overdue days descending.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from loguru import logger

from progress_engine.clock import Clock, SystemClock
from progress_engine.knowledge.models import ItemKind, KnowledgeItem
from progress_engine.knowledge.store import KnowledgeStore

# Fetch extra candidates so re-prioritization has headroom
CANDIDATE_MULTIPLIER = 2


class ReviewPriority(IntEnum):
    CRITICAL = 0
    IMPORTANT = 1
    SUPPORTING = 2
    MASTERY = 3


@dataclass(frozen=True)
class ReviewItem:
    item: KnowledgeItem
    priority: ReviewPriority
    overdue_days: int


@dataclass(frozen=True)
class ReviewQueueConfig:
    word_limit: int = 15
    rule_limit: int = 10
    phrase_limit: int = 5
    critical_overdue_days: int = 3

    @classmethod
    def from_settings(cls, settings) -> ReviewQueueConfig:
        return cls(
            word_limit=settings.review_limit_words,
            rule_limit=settings.review_limit_rules,
            phrase_limit=settings.review_limit_phrases,
            critical_overdue_days=settings.review_critical_overdue_days,
        )

    def limit_for(self, kind: ItemKind) -> int:
        return {
            ItemKind.WORD: self.word_limit,
            ItemKind.RULE: self.rule_limit,
            ItemKind.PHRASE: self.phrase_limit,
        }[kind]


def classify(item: KnowledgeItem, overdue_days: int, critical_overdue_days: int = 3) -> ReviewPriority:
    level = item.knowledge_level
    if level <= 2 and overdue_days > critical_overdue_days:
        return ReviewPriority.CRITICAL
    if 3 <= level <= 4:
        return ReviewPriority.IMPORTANT
    if 5 <= level <= 6:
        return ReviewPriority.SUPPORTING
    return ReviewPriority.MASTERY


class ReviewQueueBuilder:
    """Read-only: builds prioritized review queues from the store."""

    def __init__(
        self,
        store: KnowledgeStore,
        clock: Clock | None = None,
        config: ReviewQueueConfig | None = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.config = config or ReviewQueueConfig()

    def build_queue(
        self,
        user_id: str,
        limit: int | None = None,
        kind: ItemKind = ItemKind.WORD,
    ) -> list[ReviewItem]:
        """
        Build the ordered review queue for one item kind.

        Args:
            user_id: Learner identifier
            limit: Maximum items (defaults to the per-kind session limit)
            kind: Item kind to review

        Returns:
            Due items, most urgent first
        """
        if limit is None:
            limit = self.config.limit_for(kind)
        if limit <= 0:
            return []

        now = self.clock.now()
        candidates = self.store.get_due_items(kind, user_id, now, limit * CANDIDATE_MULTIPLIER)

        queue = []
        for item in candidates:
            if not item.needs_review(now):
                continue
            overdue = item.overdue_days(now)
            priority = classify(item, overdue, self.config.critical_overdue_days)
            queue.append(ReviewItem(item=item, priority=priority, overdue_days=overdue))

        queue.sort(key=lambda r: (r.priority, -r.overdue_days))
        queue = queue[:limit]

        logger.info(
            "Review queue for {} ({}): {} of {} candidates",
            user_id,
            kind.value,
            len(queue),
            len(candidates),
        )
        return queue
