"""
Configuration settings for the tutor progress engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///progress_engine.db",
        description="SQLAlchemy connection string for the local knowledge store",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # SRS (modified SM-2)
    # ========================================
    srs_default_ease_factor: float = Field(
        default=2.5,
        description="Ease factor assigned to newly created items",
    )
    srs_min_ease_factor: float = Field(
        default=1.3,
        description="Lower bound for the ease factor",
    )
    srs_failed_interval_days: float = Field(
        default=0.5,
        description="Interval after a failed review (quality < passing)",
    )
    srs_first_interval_days: float = Field(
        default=1.0,
        description="Interval after the first passed review",
    )
    srs_second_interval_days: float = Field(
        default=3.0,
        description="Interval after the second consecutive passed review",
    )
    srs_boost_multiplier: float = Field(
        default=1.5,
        description="Interval multiplier applied on a perfect-recall streak",
    )
    srs_boost_streak: int = Field(
        default=3,
        description="Number of consecutive quality=5 grades that trigger the boost",
    )
    srs_passing_quality: int = Field(
        default=3,
        description="Minimum quality counted as a correct answer",
    )

    # ========================================
    # Review Queue
    # ========================================
    review_limit_words: int = Field(default=15, description="Words per review session")
    review_limit_rules: int = Field(default=10, description="Grammar rules per review session")
    review_limit_phrases: int = Field(default=5, description="Phrases per review session")
    review_critical_overdue_days: int = Field(
        default=3,
        description="Overdue days after which a weak item becomes CRITICAL",
    )

    # ========================================
    # Strategy Selection
    # ========================================
    strategy_srs_queue_threshold: int = Field(
        default=10,
        description="Due words + rules above which REPETITION is chosen",
    )
    strategy_weak_points_threshold: int = Field(
        default=5,
        description="Weak points above which GAP_FILLING is chosen",
    )
    strategy_skill_gap_threshold: int = Field(
        default=2,
        description="Vocabulary/grammar sub-level gap that triggers a focused drill",
    )
    strategy_pronunciation_gap_days: int = Field(
        default=3,
        description="Days without pronunciation practice before PRONUNCIATION is chosen",
    )
    strategy_sub_level_scale: int = Field(
        default=60,
        description="Heuristic multiplier converting a 0-1 score into sub-level units",
    )

    # ========================================
    # CEFR Level
    # ========================================
    cefr_vocab_threshold: float = Field(
        default=0.7,
        description="Share of active words required to confirm a CEFR level",
    )
    cefr_grammar_threshold: float = Field(
        default=0.6,
        description="Share of known rules required to confirm a CEFR level",
    )

    # ========================================
    # Knowledge Snapshot
    # ========================================
    snapshot_problem_words_limit: int = Field(default=5)
    snapshot_known_rules_limit: int = Field(default=10)
    snapshot_recent_new_words_limit: int = Field(default=10)
    snapshot_recent_sessions: int = Field(default=5)
    snapshot_pronunciation_attempts: int = Field(default=50)
    pronunciation_good_threshold: float = Field(
        default=0.7,
        description="Sound score below which a sound is reported as a problem",
    )

    # ========================================
    # Remote Sync
    # ========================================
    remote_sync_url: str = Field(
        default="http://127.0.0.1:8080/v1",
        description="Base URL of the remote progress document store",
    )
    remote_sync_api_key: str | None = Field(
        default=None,
        description="Bearer token for the remote progress store",
    )
    sync_backend_max_batch: int = Field(
        default=500,
        description="Maximum writes the remote store accepts per batch commit",
    )
    sync_batch_safety_margin: int = Field(
        default=50,
        description="Writes kept in reserve below the backend batch limit",
    )
    sync_chunk_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for a single chunk commit",
    )
    sync_interval_seconds: int = Field(
        default=300,
        description="Background flush interval (0 to disable)",
    )

    @property
    def sync_chunk_size(self) -> int:
        """Entries per chunk commit."""
        return max(1, self.sync_backend_max_batch - self.sync_batch_safety_margin)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
