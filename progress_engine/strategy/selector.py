"""
Strategy Selector.

Picks the next teaching strategy from aggregate knowledge signals.

Priority checks (first match wins):
    1. SRS queue > threshold                     -> REPETITION
    2. Weak points > threshold                   -> GAP_FILLING
    3. Vocabulary/grammar sub-level gap > limit  -> VOCABULARY_BOOST or GRAMMAR_DRILL
    4. Days since pronunciation > threshold      -> PRONUNCIATION
    5. Default                                   -> LINEAR_BOOK

The sub-level conversion (score * 60) is a heuristic scale, not a
normative CEFR mapping.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from progress_engine.clock import Clock, SystemClock
from progress_engine.knowledge.models import ItemKind
from progress_engine.knowledge.store import ProgressStore
from progress_engine.strategy.models import (
    FALLBACK_RECOMMENDATION,
    LearningStrategy,
    StrategyRecommendation,
    StrategySignals,
)
from progress_engine.strategy.weak_points import WeakPointDetector

NO_PRONUNCIATION_HISTORY_DAYS = 999
RECENT_SESSIONS_SCANNED = 10


@dataclass(frozen=True)
class StrategyThresholds:
    srs_queue: int = 10
    weak_points: int = 5
    skill_gap: int = 2
    pronunciation_gap_days: int = 3
    sub_level_scale: int = 60

    @classmethod
    def from_settings(cls, settings) -> StrategyThresholds:
        return cls(
            srs_queue=settings.strategy_srs_queue_threshold,
            weak_points=settings.strategy_weak_points_threshold,
            skill_gap=settings.strategy_skill_gap_threshold,
            pronunciation_gap_days=settings.strategy_pronunciation_gap_days,
            sub_level_scale=settings.strategy_sub_level_scale,
        )

    def sub_level(self, score: float) -> int:
        """Round a 0-1 score to sub-level units (half up)."""
        return int(score * self.sub_level_scale + 0.5)


def decide(signals: StrategySignals, thresholds: StrategyThresholds | None = None) -> StrategyRecommendation:
    """Run the ordered rule chain over precomputed signals."""
    t = thresholds or StrategyThresholds()

    if signals.due_count > t.srs_queue:
        return StrategyRecommendation(
            primary=LearningStrategy.REPETITION,
            secondary=LearningStrategy.LINEAR_BOOK,
            reason=f"{signals.due_count} items are due for review",
        )

    if signals.weak_point_count > t.weak_points:
        return StrategyRecommendation(
            primary=LearningStrategy.GAP_FILLING,
            secondary=LearningStrategy.LINEAR_BOOK,
            reason=f"{signals.weak_point_count} weak points detected",
        )

    gap = abs(signals.vocab_sub_level - signals.grammar_sub_level)
    if gap > t.skill_gap:
        if signals.vocab_sub_level < signals.grammar_sub_level:
            return StrategyRecommendation(
                primary=LearningStrategy.VOCABULARY_BOOST,
                secondary=LearningStrategy.LINEAR_BOOK,
                reason=f"Vocabulary lags behind grammar by {gap} sub-levels",
            )
        return StrategyRecommendation(
            primary=LearningStrategy.GRAMMAR_DRILL,
            secondary=LearningStrategy.LINEAR_BOOK,
            reason=f"Grammar lags behind vocabulary by {gap} sub-levels",
        )

    if signals.days_since_pronunciation > t.pronunciation_gap_days:
        if signals.days_since_pronunciation >= NO_PRONUNCIATION_HISTORY_DAYS:
            reason = "Pronunciation has never been practiced"
        else:
            reason = f"Pronunciation not practiced for {signals.days_since_pronunciation} days"
        return StrategyRecommendation(
            primary=LearningStrategy.PRONUNCIATION,
            secondary=LearningStrategy.LINEAR_BOOK,
            reason=reason,
        )

    return FALLBACK_RECOMMENDATION


class StrategySelector:
    """
    Gathers strategy signals from the store and runs the rule chain.

    Selection never blocks a session: if gathering signals fails, the
    LINEAR_BOOK fallback is returned.
    """

    def __init__(
        self,
        store: ProgressStore,
        clock: Clock | None = None,
        thresholds: StrategyThresholds | None = None,
        weak_points: WeakPointDetector | None = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.thresholds = thresholds or StrategyThresholds()
        self.weak_points = weak_points or WeakPointDetector(store)

    def select(self, user_id: str) -> StrategyRecommendation:
        try:
            signals = self.gather_signals(user_id)
        except Exception:  # Intentionally broad - fall back to the safe default
            logger.exception("Strategy signals unavailable for {}; using fallback", user_id)
            return FALLBACK_RECOMMENDATION

        recommendation = decide(signals, self.thresholds)
        logger.info(
            "Strategy for {}: {} / {} ({})",
            user_id,
            recommendation.primary.value,
            recommendation.secondary.value,
            recommendation.reason,
        )
        return recommendation

    def gather_signals(self, user_id: str) -> StrategySignals:
        now = self.clock.now()
        return StrategySignals(
            due_word_count=self.store.count_due(ItemKind.WORD, user_id, now),
            due_rule_count=self.store.count_due(ItemKind.RULE, user_id, now),
            weak_point_count=len(self.weak_points.detect(user_id)),
            vocab_sub_level=self.thresholds.sub_level(self._known_share(ItemKind.WORD, user_id)),
            grammar_sub_level=self.thresholds.sub_level(self._known_share(ItemKind.RULE, user_id)),
            days_since_pronunciation=self.days_since_pronunciation(user_id),
        )

    def _known_share(self, kind: ItemKind, user_id: str) -> float:
        total = max(1, len(self.store.get_catalog(kind)))
        known = sum(1 for item in self.store.get_all_items(kind, user_id) if item.is_known)
        return known / total

    def days_since_pronunciation(self, user_id: str) -> int:
        """Whole days since the last session that used PRONUNCIATION."""
        sessions = self.store.get_recent_sessions(user_id, RECENT_SESSIONS_SCANNED)
        for session in sessions:
            if session.used_strategy(LearningStrategy.PRONUNCIATION.value):
                return max(0, (self.clock.now() - session.started_at).days)
        return NO_PRONUNCIATION_HISTORY_DAYS
