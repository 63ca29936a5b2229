"""
Review recording.

Applies one graded review to a learner's item: runs the SRS step, merges
the optional usage context and mistake, persists the result and enqueues
it for cloud sync.
"""

from __future__ import annotations

from loguru import logger

from progress_engine.clock import Clock, SystemClock
from progress_engine.errors import KnowledgeNotFoundError
from progress_engine.knowledge.models import (
    ItemKind,
    KnowledgeItem,
    MistakeRecord,
    item_key,
    merge_context,
    merge_mistake,
)
from progress_engine.knowledge.serialization import to_sync_payload
from progress_engine.knowledge.store import KnowledgeStore
from progress_engine.srs.engine import SrsEngine, validate_quality
from progress_engine.sync.queue import SyncBatchingQueue


class KnowledgeUpdater:
    """Records reviews through the SRS engine into the store and sync queue."""

    def __init__(
        self,
        store: KnowledgeStore,
        engine: SrsEngine | None = None,
        sync_queue: SyncBatchingQueue | None = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.engine = engine or SrsEngine()
        self.sync_queue = sync_queue
        self.clock = clock or SystemClock()

    def record_review(
        self,
        user_id: str,
        kind: ItemKind,
        subject_id: str,
        quality: int,
        context: str | None = None,
        mistake: MistakeRecord | None = None,
    ) -> KnowledgeItem:
        """
        Grade one review and persist the new state.

        Raises:
            InvalidQualityError: If quality is not an integer in [0, 5]
            KnowledgeNotFoundError: If the subject is not in the catalog
        """
        quality = validate_quality(quality)
        if self.store.get_catalog_entry(kind, subject_id) is None:
            raise KnowledgeNotFoundError(f"No {kind.value} '{subject_id}' in the catalog")

        now = self.clock.now()
        current = self.store.get_item(kind, user_id, subject_id)
        if current is None:
            current = KnowledgeItem(
                id=item_key(kind, user_id, subject_id),
                user_id=user_id,
                subject_id=subject_id,
                kind=kind,
                ease_factor=self.engine.config.default_ease_factor,
                created_at=now,
                updated_at=now,
            )
            logger.debug("New {} item {} for {}", kind.value, subject_id, user_id)

        updated = self.engine.advance(current, quality, now)
        updated.contexts = merge_context(updated.contexts, context)
        updated.mistakes = merge_mistake(updated.mistakes, mistake)

        self.store.upsert_item(updated)
        if self.sync_queue is not None:
            self.sync_queue.enqueue(updated.id, to_sync_payload(updated))

        logger.info(
            "Review {} {} for {}: q={} level={} next={}",
            kind.value,
            subject_id,
            user_id,
            quality,
            updated.knowledge_level,
            updated.next_review_at.isoformat() if updated.next_review_at else None,
        )
        return updated
