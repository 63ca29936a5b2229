"""
Knowledge snapshot.

The assembler lives in ``progress_engine.snapshot.assembler``; it depends
on the strategy package, which in turn uses the pronunciation analysis
exported here.
"""

from progress_engine.snapshot.levels import CefrLevel, LevelThresholds, UserLevelService, assess_level
from progress_engine.snapshot.models import KnowledgeSnapshot
from progress_engine.snapshot.pronunciation import PronunciationTrend, SoundStats, summarize_sounds

__all__ = [
    "CefrLevel",
    "KnowledgeSnapshot",
    "LevelThresholds",
    "PronunciationTrend",
    "SoundStats",
    "UserLevelService",
    "assess_level",
    "summarize_sounds",
]
