"""
Store interfaces consumed by the progress engine.

The engine only reads and writes through these protocols; the SQL
implementation lives in ``progress_engine.db.repository``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from progress_engine.knowledge.models import CatalogEntry, ItemKind, KnowledgeItem
from progress_engine.knowledge.records import (
    BookPosition,
    PronunciationAttempt,
    SessionRecord,
    UserProfile,
)


class KnowledgeStore(Protocol):
    """CRUD/query access to knowledge items and the subject catalog."""

    def get_item(self, kind: ItemKind, user_id: str, subject_id: str) -> KnowledgeItem | None: ...

    def get_all_items(self, kind: ItemKind, user_id: str) -> list[KnowledgeItem]: ...

    def upsert_item(self, item: KnowledgeItem) -> None: ...

    def get_due_items(
        self, kind: ItemKind, user_id: str, now: datetime, limit: int
    ) -> list[KnowledgeItem]: ...

    def count_due(self, kind: ItemKind, user_id: str, now: datetime) -> int: ...

    def get_catalog(self, kind: ItemKind) -> list[CatalogEntry]: ...

    def get_catalog_by_level(self, kind: ItemKind, cefr_level: str) -> list[CatalogEntry]: ...

    def get_catalog_entry(self, kind: ItemKind, subject_id: str) -> CatalogEntry | None: ...


class LearnerStore(Protocol):
    """Read access to the learner's profile and history."""

    def get_user(self, user_id: str) -> UserProfile | None: ...

    def update_user_level(self, user_id: str, cefr_level: str, sub_level: int) -> None: ...

    def get_recent_sessions(self, user_id: str, limit: int) -> list[SessionRecord]: ...

    def count_sessions(self, user_id: str) -> int: ...

    def get_session_days(self, user_id: str) -> list[date]: ...

    def get_pronunciation_attempts(self, user_id: str, limit: int) -> list[PronunciationAttempt]: ...

    def get_book_progress(self, user_id: str) -> BookPosition | None: ...


class ProgressStore(KnowledgeStore, LearnerStore, Protocol):
    """Both store interfaces on one object."""
