"""
SQLAlchemy implementation of the progress store.

Implements both the knowledge and learner store interfaces, plus the
write-side helpers the CLI uses to seed users, catalog and history.
"""

from __future__ import annotations

from datetime import date, datetime

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from progress_engine.db.database import session_scope
from progress_engine.db.models import (
    BookProgress,
    CatalogRow,
    KnowledgeRow,
    LearningSession,
    PronunciationResult,
    User,
)
from progress_engine.knowledge.models import CatalogEntry, ItemKind, KnowledgeItem
from progress_engine.knowledge.records import (
    BookPosition,
    PronunciationAttempt,
    SessionRecord,
    UserProfile,
)
from progress_engine.knowledge.serialization import (
    decode_contexts,
    decode_mistakes,
    decode_qualities,
    decode_string_list,
    encode_mistakes,
    encode_qualities,
    encode_strings,
)


# ========================================
# Row <-> domain mapping
# ========================================


def _to_item(row: KnowledgeRow) -> KnowledgeItem:
    return KnowledgeItem(
        id=row.id,
        user_id=row.user_id,
        subject_id=row.subject_id,
        kind=ItemKind(row.kind),
        knowledge_level=row.knowledge_level,
        times_seen=row.times_seen,
        times_correct=row.times_correct,
        times_incorrect=row.times_incorrect,
        repetitions=row.repetitions,
        recent_qualities=decode_qualities(row.recent_qualities_json),
        last_reviewed_at=row.last_reviewed_at,
        last_correct_at=row.last_correct_at,
        last_incorrect_at=row.last_incorrect_at,
        next_review_at=row.next_review_at,
        interval_days=row.interval_days,
        ease_factor=row.ease_factor,
        contexts=decode_contexts(row.contexts_json),
        mistakes=decode_mistakes(row.mistakes_json),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply_item(row: KnowledgeRow, item: KnowledgeItem) -> None:
    row.user_id = item.user_id
    row.kind = item.kind.value
    row.subject_id = item.subject_id
    row.knowledge_level = item.knowledge_level
    row.times_seen = item.times_seen
    row.times_correct = item.times_correct
    row.times_incorrect = item.times_incorrect
    row.repetitions = item.repetitions
    row.recent_qualities_json = encode_qualities(item.recent_qualities)
    row.last_reviewed_at = item.last_reviewed_at
    row.last_correct_at = item.last_correct_at
    row.last_incorrect_at = item.last_incorrect_at
    row.next_review_at = item.next_review_at
    row.interval_days = item.interval_days
    row.ease_factor = item.ease_factor
    row.contexts_json = encode_strings(item.contexts)
    row.mistakes_json = encode_mistakes(item.mistakes)
    row.created_at = item.created_at
    row.updated_at = item.updated_at


def _to_entry(row: CatalogRow) -> CatalogEntry:
    return CatalogEntry(
        id=row.id,
        kind=ItemKind(row.kind),
        text=row.text,
        translation=row.translation,
        topic=row.topic,
        cefr_level=row.cefr_level,
    )


def _to_session(row: LearningSession) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        user_id=row.user_id,
        started_at=row.started_at,
        ended_at=row.ended_at,
        duration_minutes=row.duration_minutes,
        strategies_used=decode_string_list(row.strategies_json, "strategies"),
        summary=row.summary,
    )


def _to_attempt(row: PronunciationResult) -> PronunciationAttempt:
    return PronunciationAttempt(
        id=row.id,
        user_id=row.user_id,
        word=row.word,
        timestamp=row.timestamp,
        intelligibility=row.intelligibility,
        segmental_accuracy=row.segmental_accuracy,
        stress_correct=row.stress_correct,
        intonation=row.intonation,
        fluency=row.fluency,
        problem_sounds=decode_string_list(row.problem_sounds_json, "problem sounds"),
    )


class SqlProgressStore:
    """Progress store backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    # ========================================
    # Knowledge items
    # ========================================

    def _item_query(self, kind: ItemKind, user_id: str):
        return select(KnowledgeRow).where(KnowledgeRow.kind == kind.value, KnowledgeRow.user_id == user_id)

    def get_item(self, kind: ItemKind, user_id: str, subject_id: str) -> KnowledgeItem | None:
        with session_scope(self.session_factory) as session:
            row = session.scalars(
                self._item_query(kind, user_id).where(KnowledgeRow.subject_id == subject_id)
            ).first()
            return _to_item(row) if row is not None else None

    def get_all_items(self, kind: ItemKind, user_id: str) -> list[KnowledgeItem]:
        with session_scope(self.session_factory) as session:
            rows = session.scalars(self._item_query(kind, user_id).order_by(KnowledgeRow.subject_id))
            return [_to_item(row) for row in rows]

    def upsert_item(self, item: KnowledgeItem) -> None:
        with session_scope(self.session_factory) as session:
            row = session.get(KnowledgeRow, item.id)
            if row is None:
                row = KnowledgeRow(id=item.id)
                session.add(row)
            _apply_item(row, item)

    def get_due_items(self, kind: ItemKind, user_id: str, now: datetime, limit: int) -> list[KnowledgeItem]:
        """Due items, earliest scheduled first."""
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                self._item_query(kind, user_id)
                .where(KnowledgeRow.next_review_at.is_not(None), KnowledgeRow.next_review_at <= now)
                .order_by(KnowledgeRow.next_review_at, KnowledgeRow.subject_id)
                .limit(limit)
            )
            return [_to_item(row) for row in rows]

    def count_due(self, kind: ItemKind, user_id: str, now: datetime) -> int:
        with session_scope(self.session_factory) as session:
            return session.scalar(
                select(func.count())
                .select_from(KnowledgeRow)
                .where(
                    KnowledgeRow.kind == kind.value,
                    KnowledgeRow.user_id == user_id,
                    KnowledgeRow.next_review_at.is_not(None),
                    KnowledgeRow.next_review_at <= now,
                )
            ) or 0

    # ========================================
    # Catalog
    # ========================================

    def get_catalog(self, kind: ItemKind) -> list[CatalogEntry]:
        with session_scope(self.session_factory) as session:
            rows = session.scalars(select(CatalogRow).where(CatalogRow.kind == kind.value).order_by(CatalogRow.id))
            return [_to_entry(row) for row in rows]

    def get_catalog_by_level(self, kind: ItemKind, cefr_level: str) -> list[CatalogEntry]:
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                select(CatalogRow)
                .where(CatalogRow.kind == kind.value, CatalogRow.cefr_level == cefr_level)
                .order_by(CatalogRow.id)
            )
            return [_to_entry(row) for row in rows]

    def get_catalog_entry(self, kind: ItemKind, subject_id: str) -> CatalogEntry | None:
        with session_scope(self.session_factory) as session:
            row = session.get(CatalogRow, (kind.value, subject_id))
            return _to_entry(row) if row is not None else None

    def upsert_catalog_entry(self, entry: CatalogEntry) -> None:
        with session_scope(self.session_factory) as session:
            row = session.get(CatalogRow, (entry.kind.value, entry.id))
            if row is None:
                row = CatalogRow(kind=entry.kind.value, id=entry.id)
                session.add(row)
            row.text = entry.text
            row.translation = entry.translation
            row.topic = entry.topic
            row.cefr_level = entry.cefr_level

    # ========================================
    # Learner
    # ========================================

    def get_user(self, user_id: str) -> UserProfile | None:
        with session_scope(self.session_factory) as session:
            row = session.get(User, user_id)
            if row is None:
                return None
            return UserProfile(id=row.id, cefr_level=row.cefr_level, cefr_sub_level=row.cefr_sub_level)

    def upsert_user(self, user_id: str, name: str = "", cefr_level: str = "A1", sub_level: int = 1) -> None:
        with session_scope(self.session_factory) as session:
            row = session.get(User, user_id)
            if row is None:
                session.add(User(id=user_id, name=name, cefr_level=cefr_level, cefr_sub_level=sub_level))
                logger.debug("Created user {}", user_id)
                return
            row.name = name or row.name

    def update_user_level(self, user_id: str, cefr_level: str, sub_level: int) -> None:
        with session_scope(self.session_factory) as session:
            row = session.get(User, user_id)
            if row is None:
                logger.warning("Level update for unknown user {}", user_id)
                return
            row.cefr_level = cefr_level
            row.cefr_sub_level = sub_level

    def add_session(self, record: SessionRecord) -> None:
        with session_scope(self.session_factory) as session:
            session.merge(
                LearningSession(
                    id=record.id,
                    user_id=record.user_id,
                    started_at=record.started_at,
                    ended_at=record.ended_at,
                    duration_minutes=record.duration_minutes,
                    strategies_json=encode_strings(record.strategies_used),
                    summary=record.summary,
                )
            )

    def get_recent_sessions(self, user_id: str, limit: int) -> list[SessionRecord]:
        """Most recent sessions first."""
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                select(LearningSession)
                .where(LearningSession.user_id == user_id)
                .order_by(LearningSession.started_at.desc())
                .limit(limit)
            )
            return [_to_session(row) for row in rows]

    def count_sessions(self, user_id: str) -> int:
        with session_scope(self.session_factory) as session:
            return session.scalar(
                select(func.count()).select_from(LearningSession).where(LearningSession.user_id == user_id)
            ) or 0

    def get_session_days(self, user_id: str) -> list[date]:
        """Distinct UTC days with a session, newest first."""
        with session_scope(self.session_factory) as session:
            started = session.scalars(
                select(LearningSession.started_at).where(LearningSession.user_id == user_id)
            ).all()
        return sorted({ts.date() for ts in started}, reverse=True)

    def add_pronunciation_attempt(self, attempt: PronunciationAttempt) -> None:
        with session_scope(self.session_factory) as session:
            session.merge(
                PronunciationResult(
                    id=attempt.id,
                    user_id=attempt.user_id,
                    word=attempt.word,
                    timestamp=attempt.timestamp,
                    intelligibility=attempt.intelligibility,
                    segmental_accuracy=attempt.segmental_accuracy,
                    stress_correct=attempt.stress_correct,
                    intonation=attempt.intonation,
                    fluency=attempt.fluency,
                    problem_sounds_json=encode_strings(attempt.problem_sounds),
                )
            )

    def get_pronunciation_attempts(self, user_id: str, limit: int) -> list[PronunciationAttempt]:
        """The most recent ``limit`` attempts, oldest first."""
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                select(PronunciationResult)
                .where(PronunciationResult.user_id == user_id)
                .order_by(PronunciationResult.timestamp.desc())
                .limit(limit)
            ).all()
            return [_to_attempt(row) for row in reversed(rows)]

    def set_book_progress(self, position: BookPosition) -> None:
        with session_scope(self.session_factory) as session:
            session.merge(
                BookProgress(
                    user_id=position.user_id,
                    current_chapter=position.current_chapter,
                    current_lesson=position.current_lesson,
                    total_chapters=position.total_chapters,
                    completion_percentage=position.completion_percentage,
                    current_topic=position.current_topic,
                )
            )

    def get_book_progress(self, user_id: str) -> BookPosition | None:
        with session_scope(self.session_factory) as session:
            row = session.get(BookProgress, user_id)
            if row is None:
                return None
            return BookPosition(
                user_id=row.user_id,
                current_chapter=row.current_chapter,
                current_lesson=row.current_lesson,
                total_chapters=row.total_chapters,
                completion_percentage=row.completion_percentage,
                current_topic=row.current_topic,
            )
