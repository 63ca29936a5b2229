"""Spaced repetition scheduling (modified SM-2)."""

from progress_engine.srs.engine import SrsConfig, SrsEngine, validate_quality

__all__ = ["SrsConfig", "SrsEngine", "validate_quality"]
