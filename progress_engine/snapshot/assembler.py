"""
Knowledge Snapshot Assembler.

Builds the complete knowledge snapshot handed to the tutoring agent at
session start. Read-only aggregation over the store; each dimension is an
independent sub-query, and assembly can be cancelled between them.

A new learner with no history gets zeroed/empty rollups, never an error.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date, timedelta
from statistics import fmean

from loguru import logger

from progress_engine.clock import Clock, SystemClock
from progress_engine.errors import AssemblyCancelledError
from progress_engine.knowledge.models import ItemKind
from progress_engine.knowledge.store import ProgressStore
from progress_engine.snapshot.levels import LevelThresholds, assess_level
from progress_engine.snapshot.models import (
    BookProgressSnapshot,
    GrammarSnapshot,
    KnowledgeSnapshot,
    KnownRuleInfo,
    LevelSnapshot,
    ProblemWordInfo,
    PronunciationSnapshot,
    RecommendationsSnapshot,
    SessionHistorySnapshot,
    TopicStats,
    VocabularySnapshot,
)
from progress_engine.snapshot.pronunciation import overall_score, overall_trend, summarize_sounds
from progress_engine.strategy.selector import StrategySelector
from progress_engine.strategy.weak_points import WeakPointDetector

MAX_FOCUS_AREAS = 3
SUGGESTED_SESSION_MINUTES = 30


@dataclass(frozen=True)
class SnapshotLimits:
    problem_words: int = 5
    known_rules: int = 10
    recent_new_words: int = 10
    recent_sessions: int = 5
    pronunciation_attempts: int = 50
    good_sound_threshold: float = 0.7

    @classmethod
    def from_settings(cls, settings) -> SnapshotLimits:
        return cls(
            problem_words=settings.snapshot_problem_words_limit,
            known_rules=settings.snapshot_known_rules_limit,
            recent_new_words=settings.snapshot_recent_new_words_limit,
            recent_sessions=settings.snapshot_recent_sessions,
            pronunciation_attempts=settings.snapshot_pronunciation_attempts,
            good_sound_threshold=settings.pronunciation_good_threshold,
        )


def _count_by_level(items) -> dict[int, int]:
    counts: dict[int, int] = {}
    for item in items:
        counts[item.knowledge_level] = counts.get(item.knowledge_level, 0) + 1
    return dict(sorted(counts.items()))


def _topic_stats(catalog, items) -> dict[str, TopicStats]:
    """Known/total per topic over the whole catalog, seen or not."""
    by_subject = {item.subject_id: item for item in items}
    known: dict[str, int] = {}
    total: dict[str, int] = {}
    for entry in catalog:
        topic = entry.topic or "general"
        total[topic] = total.get(topic, 0) + 1
        item = by_subject.get(entry.id)
        if item is not None and item.is_known:
            known[topic] = known.get(topic, 0) + 1
    return {topic: TopicStats(known=known.get(topic, 0), total=count) for topic, count in sorted(total.items())}


def compute_streak(session_days: list[date], today: date) -> int:
    """Consecutive days with a session, ending today (or yesterday if none today)."""
    days = set(session_days)
    expected = today if today in days else today - timedelta(days=1)
    streak = 0
    while expected in days:
        streak += 1
        expected -= timedelta(days=1)
    return streak


class KnowledgeSnapshotAssembler:
    """Aggregates store data into a KnowledgeSnapshot."""

    def __init__(
        self,
        store: ProgressStore,
        selector: StrategySelector,
        clock: Clock | None = None,
        limits: SnapshotLimits | None = None,
        level_thresholds: LevelThresholds | None = None,
        weak_points: WeakPointDetector | None = None,
    ):
        self.store = store
        self.selector = selector
        self.clock = clock or SystemClock()
        self.limits = limits or SnapshotLimits()
        self.level_thresholds = level_thresholds or LevelThresholds()
        self.weak_points = weak_points or selector.weak_points

    def assemble(self, user_id: str, cancel_event: threading.Event | None = None) -> KnowledgeSnapshot:
        """
        Build the snapshot for one learner.

        Args:
            user_id: Learner identifier
            cancel_event: Set by the caller to abandon assembly; checked
                between dimensions

        Raises:
            AssemblyCancelledError: If ``cancel_event`` was set
        """

        def checkpoint(stage: str) -> None:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Snapshot assembly for {} cancelled before {}", user_id, stage)
                raise AssemblyCancelledError(f"Snapshot assembly cancelled before {stage}")

        now = self.clock.now()

        checkpoint("vocabulary")
        vocabulary = self.build_vocabulary(user_id)
        checkpoint("grammar")
        grammar = self.build_grammar(user_id)
        checkpoint("pronunciation")
        pronunciation = self.build_pronunciation(user_id)
        checkpoint("level")
        level = self.build_level(user_id)
        checkpoint("book progress")
        book = self.build_book_progress(user_id)
        checkpoint("session history")
        history = self.build_session_history(user_id)
        checkpoint("weak points")
        weak_points = [p.identifier for p in self.weak_points.detect(user_id)]
        checkpoint("recommendations")
        recommendations = self.build_recommendations(user_id, vocabulary, grammar, pronunciation)

        snapshot = KnowledgeSnapshot(
            user_id=user_id,
            generated_at=now,
            vocabulary=vocabulary,
            grammar=grammar,
            pronunciation=pronunciation,
            level=level,
            book_progress=book,
            session_history=history,
            weak_points=weak_points,
            recommendations=recommendations,
        )
        logger.info(
            "Snapshot for {}: {} words, {} rules, {} weak points, strategy {}",
            user_id,
            vocabulary.total_words,
            grammar.total_rules,
            len(weak_points),
            recommendations.primary_strategy,
        )
        return snapshot

    # =========================================================================
    # Dimensions
    # =========================================================================

    def build_vocabulary(self, user_id: str) -> VocabularySnapshot:
        items = self.store.get_all_items(ItemKind.WORD, user_id)
        catalog = self.store.get_catalog(ItemKind.WORD)
        text_by_id = {entry.id: entry.text for entry in catalog}

        recent_new = sorted(
            (item for item in items if item.knowledge_level == 1),
            key=lambda item: item.created_at,
            reverse=True,
        )[: self.limits.recent_new_words]

        problems = sorted(
            (item for item in items if item.is_problem),
            key=lambda item: (item.accuracy, -item.times_incorrect),
        )[: self.limits.problem_words]

        return VocabularySnapshot(
            total_words=sum(1 for item in items if item.knowledge_level > 0),
            by_level=_count_by_level(items),
            by_topic=_topic_stats(catalog, items),
            recent_new_words=[text_by_id.get(item.subject_id, item.subject_id) for item in recent_new],
            problem_words=[
                ProblemWordInfo(
                    word=text_by_id.get(item.subject_id, item.subject_id),
                    level=item.knowledge_level,
                    attempts=item.times_seen,
                )
                for item in problems
            ],
            words_for_review_today=self.store.count_due(ItemKind.WORD, user_id, self.clock.now()),
        )

    def build_grammar(self, user_id: str) -> GrammarSnapshot:
        items = self.store.get_all_items(ItemKind.RULE, user_id)
        catalog = self.store.get_catalog(ItemKind.RULE)
        name_by_id = {entry.id: entry.text for entry in catalog}

        known = sorted(
            (item for item in items if item.is_known),
            key=lambda item: item.last_reviewed_at or item.created_at,
            reverse=True,
        )

        return GrammarSnapshot(
            total_rules=sum(1 for item in items if item.knowledge_level > 0),
            known_count=len(known),
            by_level=_count_by_level(items),
            by_category=_topic_stats(catalog, items),
            known_rules=[
                KnownRuleInfo(name=name_by_id.get(item.subject_id, item.subject_id), level=item.knowledge_level)
                for item in known[: self.limits.known_rules]
            ],
            problem_rules=[name_by_id.get(item.subject_id, item.subject_id) for item in items if item.is_weak],
            rules_for_review_today=self.store.count_due(ItemKind.RULE, user_id, self.clock.now()),
        )

    def build_pronunciation(self, user_id: str) -> PronunciationSnapshot:
        attempts = self.store.get_pronunciation_attempts(user_id, self.limits.pronunciation_attempts)
        sounds = summarize_sounds(attempts)
        threshold = self.limits.good_sound_threshold
        return PronunciationSnapshot(
            overall_score=round(overall_score(attempts), 4),
            attempts=len(attempts),
            problem_sounds=[s.sound for s in sounds if s.score < threshold],
            good_sounds=[s.sound for s in sounds if s.score >= threshold],
            trend=overall_trend(sounds).value,
        )

    def build_level(self, user_id: str) -> LevelSnapshot:
        assessment = assess_level(self.store, user_id, self.level_thresholds)
        return LevelSnapshot(cefr_level=assessment.level.value, sub_level=assessment.sub_level)

    def build_book_progress(self, user_id: str) -> BookProgressSnapshot:
        position = self.store.get_book_progress(user_id)
        if position is None:
            return BookProgressSnapshot()
        return BookProgressSnapshot(
            current_chapter=position.current_chapter,
            current_lesson=position.current_lesson,
            total_chapters=position.total_chapters,
            completion_percentage=position.completion_percentage,
            current_topic=position.current_topic,
        )

    def build_session_history(self, user_id: str) -> SessionHistorySnapshot:
        sessions = self.store.get_recent_sessions(user_id, self.limits.recent_sessions)
        if not sessions:
            return SessionHistorySnapshot()
        last = sessions[0]
        return SessionHistorySnapshot(
            last_session_at=last.started_at,
            last_session_summary=last.summary,
            average_session_minutes=int(fmean(s.duration_minutes for s in sessions)),
            streak_days=compute_streak(self.store.get_session_days(user_id), self.clock.now().date()),
            total_sessions=self.store.count_sessions(user_id),
        )

    def build_recommendations(
        self,
        user_id: str,
        vocabulary: VocabularySnapshot,
        grammar: GrammarSnapshot,
        pronunciation: PronunciationSnapshot,
    ) -> RecommendationsSnapshot:
        recommendation = self.selector.select(user_id)

        focus = []
        if vocabulary.words_for_review_today > 0:
            focus.append(f"Review {vocabulary.words_for_review_today} words")
        if grammar.problem_rules:
            focus.append("Problem rules: " + ", ".join(grammar.problem_rules[:3]))
        if pronunciation.problem_sounds:
            focus.append("Sounds: " + ", ".join(pronunciation.problem_sounds[:3]))

        return RecommendationsSnapshot(
            primary_strategy=recommendation.primary.value,
            secondary_strategy=recommendation.secondary.value,
            reason=recommendation.reason,
            focus_areas=focus[:MAX_FOCUS_AREAS],
            suggested_session_minutes=SUGGESTED_SESSION_MINUTES,
        )
