"""Knowledge items, learner records and the store interfaces."""

from progress_engine.knowledge.models import (
    CatalogEntry,
    ItemKind,
    KnowledgeItem,
    MistakeRecord,
    item_key,
)
from progress_engine.knowledge.records import (
    BookPosition,
    PronunciationAttempt,
    SessionRecord,
    UserProfile,
)
from progress_engine.knowledge.store import KnowledgeStore, LearnerStore, ProgressStore

__all__ = [
    "CatalogEntry",
    "ItemKind",
    "KnowledgeItem",
    "MistakeRecord",
    "item_key",
    # Learner history
    "BookPosition",
    "PronunciationAttempt",
    "SessionRecord",
    "UserProfile",
    # Store interfaces
    "KnowledgeStore",
    "LearnerStore",
    "ProgressStore",
]
