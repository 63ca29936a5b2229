"""
CEFR level determination.

For each level A1 -> C2:
    vocabulary_score = words at that level with knowledge_level >= 5 / words at that level
    grammar_score    = rules at that level with knowledge_level >= 4 / rules at that level
    The level is confirmed when vocabulary_score >= 0.7 AND grammar_score >= 0.6.

The sub-level (1-10) interpolates progress toward the first unconfirmed level.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from progress_engine.errors import KnowledgeNotFoundError
from progress_engine.knowledge.models import ItemKind, KnowledgeItem
from progress_engine.knowledge.store import ProgressStore

MIN_SUB_LEVEL = 1
MAX_SUB_LEVEL = 10


class CefrLevel(str, Enum):
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @property
    def order(self) -> int:
        return list(CefrLevel).index(self) + 1

    @classmethod
    def from_string(cls, value: str) -> CefrLevel:
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.A1


@dataclass(frozen=True)
class LevelThresholds:
    vocabulary: float = 0.7
    grammar: float = 0.6

    @classmethod
    def from_settings(cls, settings) -> LevelThresholds:
        return cls(vocabulary=settings.cefr_vocab_threshold, grammar=settings.cefr_grammar_threshold)


@dataclass(frozen=True)
class LevelAssessment:
    level: CefrLevel
    sub_level: int
    vocabulary_score: float  # Toward the next level
    grammar_score: float


@dataclass(frozen=True)
class LevelUpdateResult:
    previous_level: CefrLevel
    previous_sub_level: int
    new_level: CefrLevel
    new_sub_level: int
    level_changed: bool
    reason: str


def _share(catalog_ids: set[str], items: list[KnowledgeItem], min_level: int) -> float:
    if not catalog_ids:
        return 0.0
    hits = sum(1 for item in items if item.subject_id in catalog_ids and item.knowledge_level >= min_level)
    return hits / len(catalog_ids)


def sub_level_for(vocabulary_score: float, grammar_score: float, thresholds: LevelThresholds) -> int:
    progress = min(vocabulary_score / thresholds.vocabulary, grammar_score / thresholds.grammar)
    return max(MIN_SUB_LEVEL, min(MAX_SUB_LEVEL, int(progress * 10 + 0.5)))


def assess_level(
    store: ProgressStore,
    user_id: str,
    thresholds: LevelThresholds | None = None,
) -> LevelAssessment:
    """Determine the highest confirmed CEFR level and the sub-level toward the next."""
    thresholds = thresholds or LevelThresholds()
    words = store.get_all_items(ItemKind.WORD, user_id)
    rules = store.get_all_items(ItemKind.RULE, user_id)

    confirmed = CefrLevel.A1
    for level in CefrLevel:
        word_ids = {e.id for e in store.get_catalog_by_level(ItemKind.WORD, level.value)}
        rule_ids = {e.id for e in store.get_catalog_by_level(ItemKind.RULE, level.value)}
        vocabulary = _share(word_ids, words, min_level=5)
        grammar = _share(rule_ids, rules, min_level=4)

        if vocabulary >= thresholds.vocabulary and grammar >= thresholds.grammar:
            confirmed = level
            continue

        return LevelAssessment(
            level=confirmed,
            sub_level=sub_level_for(vocabulary, grammar, thresholds),
            vocabulary_score=vocabulary,
            grammar_score=grammar,
        )

    # Every level confirmed
    return LevelAssessment(level=confirmed, sub_level=MAX_SUB_LEVEL, vocabulary_score=1.0, grammar_score=1.0)


class UserLevelService:
    """Recomputes and persists a learner's CEFR level."""

    def __init__(self, store: ProgressStore, thresholds: LevelThresholds | None = None):
        self.store = store
        self.thresholds = thresholds or LevelThresholds()

    def recompute(self, user_id: str) -> LevelUpdateResult:
        profile = self.store.get_user(user_id)
        if profile is None:
            raise KnowledgeNotFoundError(f"User {user_id} not found")

        previous_level = CefrLevel.from_string(profile.cefr_level)
        previous_sub = profile.cefr_sub_level
        assessment = assess_level(self.store, user_id, self.thresholds)

        changed = assessment.level != previous_level or assessment.sub_level != previous_sub
        if changed:
            self.store.update_user_level(user_id, assessment.level.value, assessment.sub_level)
            logger.info(
                "User {} level {}.{} -> {}.{}",
                user_id,
                previous_level.value,
                previous_sub,
                assessment.level.value,
                assessment.sub_level,
            )

        if assessment.level.order > previous_level.order:
            reason = f"Level raised: vocabulary and grammar confirm {assessment.level.value}"
        elif assessment.level.order < previous_level.order:
            reason = "Level adjusted to current knowledge"
        elif assessment.sub_level > previous_sub:
            reason = f"Progress within {assessment.level.value}: sub-level {assessment.sub_level}/10"
        elif assessment.sub_level < previous_sub:
            reason = "Sub-level adjusted after recalculation"
        else:
            reason = f"Level confirmed: {assessment.level.value} ({assessment.sub_level}/10)"

        return LevelUpdateResult(
            previous_level=previous_level,
            previous_sub_level=previous_sub,
            new_level=assessment.level,
            new_sub_level=assessment.sub_level,
            level_changed=changed,
            reason=reason,
        )
