"""
Knowledge item models.

A KnowledgeItem tracks one learner's mastery of one catalog subject
(a word, a grammar rule or a phrase). All three kinds share the same
shape and are told apart by ``kind``.

Knowledge levels (0-7):
    0 - never seen            4 - recalled (known)
    1 - seen                  5 - used in context (active)
    2 - recognized            6 - automatic
    3 - recalled with hint    7 - mastery
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

MIN_KNOWLEDGE_LEVEL = 0
MAX_KNOWLEDGE_LEVEL = 7

KNOWN_LEVEL = 4
ACTIVE_LEVEL = 5
WEAK_LEVEL = 2

PROBLEM_MIN_ATTEMPTS = 3

MAX_CONTEXTS = 10
MAX_MISTAKES = 20


class ItemKind(str, Enum):
    """Kind of catalog subject a knowledge item refers to."""

    WORD = "word"
    RULE = "rule"
    PHRASE = "phrase"


@dataclass(frozen=True)
class MistakeRecord:
    """A single recorded mistake."""

    expected: str
    actual: str
    timestamp: datetime
    context: str = ""


@dataclass(frozen=True)
class CatalogEntry:
    """
    A learnable subject from the course catalog.

    ``topic`` is the vocabulary topic for words and the category for
    grammar rules and phrases.
    """

    id: str
    kind: ItemKind
    text: str
    translation: str = ""
    topic: str = ""
    cefr_level: str = "A1"


@dataclass
class KnowledgeItem:
    """Per-learner SRS and mastery state for one subject."""

    id: str
    user_id: str
    subject_id: str
    kind: ItemKind = ItemKind.WORD

    # Mastery
    knowledge_level: int = 0
    times_seen: int = 0
    times_correct: int = 0
    times_incorrect: int = 0

    # Scheduling
    repetitions: int = 0  # Consecutive passed reviews, reset on failure
    recent_qualities: tuple[int, ...] = ()
    last_reviewed_at: datetime | None = None
    last_correct_at: datetime | None = None
    last_incorrect_at: datetime | None = None
    next_review_at: datetime | None = None
    interval_days: float = 0.0
    ease_factor: float = 2.5

    # Auxiliary
    contexts: list[str] = field(default_factory=list)
    mistakes: list[MistakeRecord] = field(default_factory=list)

    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_known(self) -> bool:
        return self.knowledge_level >= KNOWN_LEVEL

    @property
    def is_active(self) -> bool:
        return self.knowledge_level >= ACTIVE_LEVEL

    @property
    def is_mastered(self) -> bool:
        return self.knowledge_level == MAX_KNOWLEDGE_LEVEL

    @property
    def accuracy(self) -> float:
        """Correct / seen ratio, 0 when never seen."""
        if self.times_seen == 0:
            return 0.0
        return self.times_correct / self.times_seen

    @property
    def is_problem(self) -> bool:
        """More errors than successes after at least three encounters."""
        return self.times_incorrect > self.times_correct and self.times_seen >= PROBLEM_MIN_ATTEMPTS

    @property
    def is_weak(self) -> bool:
        return self.knowledge_level <= WEAK_LEVEL and self.times_seen >= PROBLEM_MIN_ATTEMPTS

    def needs_review(self, now: datetime) -> bool:
        """Check if the item is scheduled and due at ``now``."""
        return self.next_review_at is not None and self.next_review_at <= now

    def overdue_days(self, now: datetime) -> int:
        """Whole days past the scheduled review, 0 when not yet due."""
        if self.next_review_at is None or self.next_review_at > now:
            return 0
        return (now - self.next_review_at).days


def merge_context(contexts: list[str], context: str | None) -> list[str]:
    """Append a usage context, keeping the most recent distinct entries."""
    if not context:
        return list(contexts)
    merged = [c for c in contexts if c != context] + [context]
    return merged[-MAX_CONTEXTS:]


def merge_mistake(mistakes: list[MistakeRecord], mistake: MistakeRecord | None) -> list[MistakeRecord]:
    """Append a mistake record, keeping the most recent ones."""
    if mistake is None:
        return list(mistakes)
    return (list(mistakes) + [mistake])[-MAX_MISTAKES:]


def item_key(kind: ItemKind, user_id: str, subject_id: str) -> str:
    """Stable identifier for a learner's item; also the sync key."""
    return f"{kind.value}:{user_id}:{subject_id}"
