"""
Table models for learner progress.

Auxiliary collections (contexts, mistakes, grade history, strategies,
problem sounds) are stored as JSON text and decoded fail-soft.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class UtcDateTime(TypeDecorator):
    """Timezone-aware datetimes stored as naive UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ========================================
# LEARNER
# ========================================


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, default="")
    cefr_level: Mapped[str] = mapped_column(String(2), default="A1")
    cefr_sub_level: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=_utcnow, onupdate=_utcnow)


class BookProgress(Base):
    __tablename__ = "book_progress"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    current_chapter: Mapped[int] = mapped_column(Integer, default=1)
    current_lesson: Mapped[int] = mapped_column(Integer, default=1)
    total_chapters: Mapped[int] = mapped_column(Integer, default=0)
    completion_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    current_topic: Mapped[str] = mapped_column(Text, default="")


class LearningSession(Base):
    __tablename__ = "learning_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    started_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(UtcDateTime)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0)
    strategies_json: Mapped[str] = mapped_column(Text, default="[]")
    summary: Mapped[str] = mapped_column(Text, default="")


class PronunciationResult(Base):
    __tablename__ = "pronunciation_attempts"
    __table_args__ = (Index("ix_pronunciation_user_time", "user_id", "timestamp"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    word: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    intelligibility: Mapped[float] = mapped_column(Float, default=0.0)
    segmental_accuracy: Mapped[float] = mapped_column(Float, default=0.0)
    stress_correct: Mapped[bool] = mapped_column(Boolean, default=True)
    intonation: Mapped[float] = mapped_column(Float, default=0.0)
    fluency: Mapped[float] = mapped_column(Float, default=0.0)
    problem_sounds_json: Mapped[str] = mapped_column(Text, default="[]")


# ========================================
# KNOWLEDGE
# ========================================


class CatalogRow(Base):
    """Words, rules and phrases available to learn."""

    __tablename__ = "catalog_entries"

    kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    translation: Mapped[str] = mapped_column(Text, default="")
    topic: Mapped[str] = mapped_column(Text, default="")
    cefr_level: Mapped[str] = mapped_column(String(2), default="A1", index=True)


class KnowledgeRow(Base):
    """Per-learner SRS and mastery state for a catalog entry."""

    __tablename__ = "knowledge_items"
    __table_args__ = (
        UniqueConstraint("user_id", "kind", "subject_id", name="uq_knowledge_subject"),
        Index("ix_knowledge_due", "user_id", "kind", "next_review_at"),
    )

    id: Mapped[str] = mapped_column(String(160), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False)

    knowledge_level: Mapped[int] = mapped_column(Integer, default=0)
    times_seen: Mapped[int] = mapped_column(Integer, default=0)
    times_correct: Mapped[int] = mapped_column(Integer, default=0)
    times_incorrect: Mapped[int] = mapped_column(Integer, default=0)

    repetitions: Mapped[int] = mapped_column(Integer, default=0)
    recent_qualities_json: Mapped[str] = mapped_column(Text, default="[]")
    last_reviewed_at: Mapped[datetime | None] = mapped_column(UtcDateTime)
    last_correct_at: Mapped[datetime | None] = mapped_column(UtcDateTime)
    last_incorrect_at: Mapped[datetime | None] = mapped_column(UtcDateTime)
    next_review_at: Mapped[datetime | None] = mapped_column(UtcDateTime)
    interval_days: Mapped[float] = mapped_column(Float, default=0.0)
    ease_factor: Mapped[float] = mapped_column(Float, default=2.5)

    contexts_json: Mapped[str] = mapped_column(Text, default="[]")
    mistakes_json: Mapped[str] = mapped_column(Text, default="[]")

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=_utcnow)


__all__ = [
    "Base",
    "BookProgress",
    "CatalogRow",
    "KnowledgeRow",
    "LearningSession",
    "PronunciationResult",
    "User",
]
