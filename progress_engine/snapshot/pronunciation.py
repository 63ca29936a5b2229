"""
Pronunciation analysis.

Groups evaluated attempts by the problem sounds they flagged and derives
a per-sound score and trend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from statistics import fmean

from progress_engine.knowledge.records import PronunciationAttempt

TREND_WINDOW = 3
TREND_TOLERANCE = 0.1


class PronunciationTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


@dataclass
class SoundStats:
    sound: str
    score: float
    attempts: int
    trend: PronunciationTrend
    words: list[str] = field(default_factory=list)


def score_trend(scores: list[float]) -> PronunciationTrend:
    """Compare the average of the latest scores with the earliest ones."""
    if len(scores) < TREND_WINDOW:
        return PronunciationTrend.STABLE
    recent = fmean(scores[-TREND_WINDOW:])
    earlier = fmean(scores[:TREND_WINDOW])
    if recent > earlier + TREND_TOLERANCE:
        return PronunciationTrend.IMPROVING
    if recent < earlier - TREND_TOLERANCE:
        return PronunciationTrend.DECLINING
    return PronunciationTrend.STABLE


def overall_score(attempts: list[PronunciationAttempt]) -> float:
    """Mean weighted score across attempts, 0 when there are none."""
    if not attempts:
        return 0.0
    return fmean(a.weighted_score for a in attempts)


def summarize_sounds(attempts: list[PronunciationAttempt]) -> list[SoundStats]:
    """
    Per-sound statistics, sorted by score ascending.

    ``attempts`` must be in chronological order.
    """
    scores: dict[str, list[float]] = {}
    words: dict[str, list[str]] = {}
    for attempt in attempts:
        score = attempt.weighted_score
        for sound in dict.fromkeys(attempt.problem_sounds):
            scores.setdefault(sound, []).append(score)
            seen = words.setdefault(sound, [])
            if attempt.word not in seen:
                seen.append(attempt.word)

    stats = [
        SoundStats(
            sound=sound,
            score=fmean(values),
            attempts=len(values),
            trend=score_trend(values),
            words=words[sound],
        )
        for sound, values in scores.items()
    ]
    stats.sort(key=lambda s: (s.score, s.sound))
    return stats


def overall_trend(stats: list[SoundStats]) -> PronunciationTrend:
    improving = sum(1 for s in stats if s.trend is PronunciationTrend.IMPROVING)
    declining = sum(1 for s in stats if s.trend is PronunciationTrend.DECLINING)
    if improving > declining:
        return PronunciationTrend.IMPROVING
    if declining > improving:
        return PronunciationTrend.DECLINING
    return PronunciationTrend.STABLE
