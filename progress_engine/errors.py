"""Exception types raised by the progress engine."""

from __future__ import annotations


class ProgressEngineError(Exception):
    """Base class for progress engine errors."""


class InvalidQualityError(ProgressEngineError, ValueError):
    """Raised when a review grade falls outside the 0-5 quality scale."""

    def __init__(self, quality: object):
        super().__init__(f"Quality must be an integer in [0, 5], got {quality!r}")
        self.quality = quality


class KnowledgeNotFoundError(ProgressEngineError, LookupError):
    """Raised when a user or catalog subject does not exist."""


class AssemblyCancelledError(ProgressEngineError):
    """Raised when snapshot assembly is cancelled between dimensions."""
