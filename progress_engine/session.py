"""
Session coordination.

Ties the read-side components together at session start and flushes
pending knowledge updates at session end.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from progress_engine.clock import Clock, SystemClock
from progress_engine.errors import AssemblyCancelledError
from progress_engine.knowledge.models import ItemKind
from progress_engine.review.queue import ReviewItem, ReviewQueueBuilder
from progress_engine.snapshot.assembler import KnowledgeSnapshotAssembler
from progress_engine.snapshot.models import KnowledgeSnapshot
from progress_engine.strategy.models import (
    FALLBACK_RECOMMENDATION,
    LearningStrategy,
    StrategyRecommendation,
)
from progress_engine.sync.queue import SyncBatchingQueue, SyncStatus


class SessionIdentity:
    """Holds the signed-in learner; callable as a sync identity provider."""

    def __init__(self, user_id: str | None = None):
        self._user_id = user_id
        self._lock = threading.Lock()

    @property
    def user_id(self) -> str | None:
        with self._lock:
            return self._user_id

    def sign_in(self, user_id: str) -> None:
        with self._lock:
            self._user_id = user_id

    def sign_out(self) -> None:
        with self._lock:
            self._user_id = None

    def __call__(self) -> str | None:
        return self.user_id


@dataclass
class SessionPlan:
    """What the tutoring agent starts a session with."""

    user_id: str
    started_at: datetime
    recommendation: StrategyRecommendation
    snapshot: KnowledgeSnapshot | None = None
    word_queue: list[ReviewItem] = field(default_factory=list)
    rule_queue: list[ReviewItem] = field(default_factory=list)
    phrase_queue: list[ReviewItem] = field(default_factory=list)

    @property
    def review_count(self) -> int:
        return len(self.word_queue) + len(self.rule_queue) + len(self.phrase_queue)


class SessionCoordinator:
    def __init__(
        self,
        assembler: KnowledgeSnapshotAssembler,
        queue_builder: ReviewQueueBuilder,
        sync_queue: SyncBatchingQueue,
        identity: SessionIdentity,
        clock: Clock | None = None,
    ):
        self.assembler = assembler
        self.queue_builder = queue_builder
        self.sync_queue = sync_queue
        self.identity = identity
        self.clock = clock or SystemClock()

    def start_session(self, user_id: str, cancel_event: threading.Event | None = None) -> SessionPlan:
        """
        Sign the learner in and prepare the session plan.

        A failed aggregation degrades to the LINEAR_BOOK fallback with no
        snapshot; only caller-requested cancellation propagates.
        """
        self.identity.sign_in(user_id)
        started_at = self.clock.now()

        try:
            snapshot = self.assembler.assemble(user_id, cancel_event)
            word_queue = self.queue_builder.build_queue(user_id, kind=ItemKind.WORD)
            rule_queue = self.queue_builder.build_queue(user_id, kind=ItemKind.RULE)
            phrase_queue = self.queue_builder.build_queue(user_id, kind=ItemKind.PHRASE)
        except AssemblyCancelledError:
            raise
        except Exception:  # Intentionally broad - a session must start even without a snapshot
            logger.exception("Session plan for {} degraded to fallback", user_id)
            return SessionPlan(user_id=user_id, started_at=started_at, recommendation=FALLBACK_RECOMMENDATION)

        recommendation = StrategyRecommendation(
            primary=LearningStrategy.from_string(snapshot.recommendations.primary_strategy),
            secondary=LearningStrategy.from_string(snapshot.recommendations.secondary_strategy),
            reason=snapshot.recommendations.reason,
        )
        plan = SessionPlan(
            user_id=user_id,
            started_at=started_at,
            recommendation=recommendation,
            snapshot=snapshot,
            word_queue=word_queue,
            rule_queue=rule_queue,
            phrase_queue=phrase_queue,
        )
        logger.info(
            "Session started for {}: {} ({} reviews queued)",
            user_id,
            recommendation.primary.value,
            plan.review_count,
        )
        return plan

    def end_session(self, timeout: float | None = None) -> SyncStatus:
        """Flush pending knowledge updates to the remote store."""
        status = self.sync_queue.flush(timeout)
        logger.info("Session ended for {}: sync {}", self.identity.user_id, status.value)
        return status
