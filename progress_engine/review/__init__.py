"""Prioritized review queues."""

from progress_engine.review.queue import (
    ReviewItem,
    ReviewPriority,
    ReviewQueueBuilder,
    ReviewQueueConfig,
    classify,
)

__all__ = ["ReviewItem", "ReviewPriority", "ReviewQueueBuilder", "ReviewQueueConfig", "classify"]
