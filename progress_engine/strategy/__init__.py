"""Teaching strategy selection and weak point detection."""

from progress_engine.strategy.models import (
    FALLBACK_RECOMMENDATION,
    LearningStrategy,
    StrategyRecommendation,
    StrategySignals,
)
from progress_engine.strategy.selector import StrategySelector, StrategyThresholds, decide
from progress_engine.strategy.weak_points import WeakPoint, WeakPointDetector

__all__ = [
    "FALLBACK_RECOMMENDATION",
    "LearningStrategy",
    "StrategyRecommendation",
    "StrategySignals",
    "StrategySelector",
    "StrategyThresholds",
    "decide",
    "WeakPoint",
    "WeakPointDetector",
]
