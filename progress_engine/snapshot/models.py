"""
Knowledge snapshot models.

The snapshot is built fresh at session start, serialized to JSON and
handed to the tutoring agent. Models are frozen once constructed.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TopicStats(_Frozen):
    """Known/total counts for a topic or category."""

    known: int = 0
    total: int = 0


class ProblemWordInfo(_Frozen):
    word: str
    level: int
    attempts: int


class KnownRuleInfo(_Frozen):
    name: str
    level: int


class VocabularySnapshot(_Frozen):
    total_words: int = 0
    by_level: dict[int, int] = Field(default_factory=dict)
    by_topic: dict[str, TopicStats] = Field(default_factory=dict)
    recent_new_words: list[str] = Field(default_factory=list)
    problem_words: list[ProblemWordInfo] = Field(default_factory=list)
    words_for_review_today: int = 0


class GrammarSnapshot(_Frozen):
    total_rules: int = 0
    known_count: int = 0
    by_level: dict[int, int] = Field(default_factory=dict)
    by_category: dict[str, TopicStats] = Field(default_factory=dict)
    known_rules: list[KnownRuleInfo] = Field(default_factory=list)
    problem_rules: list[str] = Field(default_factory=list)
    rules_for_review_today: int = 0


class PronunciationSnapshot(_Frozen):
    overall_score: float = 0.0
    attempts: int = 0
    problem_sounds: list[str] = Field(default_factory=list)
    good_sounds: list[str] = Field(default_factory=list)
    trend: str = "stable"


class LevelSnapshot(_Frozen):
    cefr_level: str = "A1"
    sub_level: int = 1


class BookProgressSnapshot(_Frozen):
    current_chapter: int = 1
    current_lesson: int = 1
    total_chapters: int = 0
    completion_percentage: float = 0.0
    current_topic: str = ""


class SessionHistorySnapshot(_Frozen):
    last_session_at: datetime | None = None
    last_session_summary: str = ""
    average_session_minutes: int = 0
    streak_days: int = 0
    total_sessions: int = 0


class RecommendationsSnapshot(_Frozen):
    primary_strategy: str = "LINEAR_BOOK"
    secondary_strategy: str = "REPETITION"
    reason: str = ""
    focus_areas: list[str] = Field(default_factory=list)
    suggested_session_minutes: int = 30


class KnowledgeSnapshot(_Frozen):
    """Everything the tutoring agent needs to know about the learner."""

    user_id: str
    generated_at: datetime
    vocabulary: VocabularySnapshot = Field(default_factory=VocabularySnapshot)
    grammar: GrammarSnapshot = Field(default_factory=GrammarSnapshot)
    pronunciation: PronunciationSnapshot = Field(default_factory=PronunciationSnapshot)
    level: LevelSnapshot = Field(default_factory=LevelSnapshot)
    book_progress: BookProgressSnapshot = Field(default_factory=BookProgressSnapshot)
    session_history: SessionHistorySnapshot = Field(default_factory=SessionHistorySnapshot)
    weak_points: list[str] = Field(default_factory=list)
    recommendations: RecommendationsSnapshot = Field(default_factory=RecommendationsSnapshot)
