"""
Unit tests for weak point detection.
"""

import pytest

from progress_engine.knowledge.models import ItemKind
from progress_engine.strategy.weak_points import WeakPointDetector


class TestVocabularyAndGrammar:
    """Tests for word and rule weak points."""

    def test_struggling_word_is_weak(self, store, make_item):
        store.add_item(make_item("w1", knowledge_level=2, times_seen=3, times_incorrect=3))

        points = WeakPointDetector(store).detect("u1")

        assert len(points) == 1
        assert points[0].identifier == "vocabulary:w1"
        assert points[0].category == "vocabulary"
        assert points[0].severity == pytest.approx(1.0)

    def test_word_severity_from_accuracy(self, store, make_item):
        store.add_item(make_item("w1", knowledge_level=1, times_seen=4, times_correct=1, times_incorrect=3))

        assert WeakPointDetector(store).detect("u1")[0].severity == pytest.approx(0.75)

    @pytest.mark.parametrize("level,seen", [(3, 10), (2, 2), (0, 0)])
    def test_not_weak(self, store, make_item, level, seen):
        store.add_item(make_item("w1", knowledge_level=level, times_seen=seen))

        assert WeakPointDetector(store).detect("u1") == []

    def test_rule_severity_from_level(self, store, make_item):
        store.add_item(make_item("r1", kind=ItemKind.RULE, knowledge_level=1, times_seen=5, times_correct=3))

        points = WeakPointDetector(store).detect("u1")

        assert points[0].identifier == "grammar:r1"
        assert points[0].severity == pytest.approx(1 - 1 / 7)

    def test_other_users_ignored(self, store, make_item):
        store.add_item(make_item("w1", user_id="u2", knowledge_level=0, times_seen=5))

        assert WeakPointDetector(store).detect("u1") == []


class TestPronunciation:
    """Tests for pronunciation weak points."""

    def test_low_stable_sound_is_weak(self, store, make_attempt):
        store.attempts.extend(make_attempt(0.4, ["θ"], minutes_ago=10 - i) for i in range(6))

        points = WeakPointDetector(store).detect("u1")

        assert [p.identifier for p in points] == ["pronunciation:θ"]
        assert points[0].severity == pytest.approx(1 - 0.34)

    def test_needs_more_than_five_attempts(self, store, make_attempt):
        store.attempts.extend(make_attempt(0.4, ["θ"], minutes_ago=10 - i) for i in range(5))

        assert WeakPointDetector(store).detect("u1") == []

    def test_improving_sound_is_not_weak(self, store, make_attempt):
        scores = [0.1, 0.1, 0.1, 0.5, 0.5, 0.5]
        store.attempts.extend(make_attempt(s, ["r"], minutes_ago=10 - i) for i, s in enumerate(scores))

        assert WeakPointDetector(store).detect("u1") == []

    def test_declining_sound_is_weak(self, store, make_attempt):
        scores = [0.5, 0.5, 0.5, 0.1, 0.1, 0.1]
        store.attempts.extend(make_attempt(s, ["r"], minutes_ago=10 - i) for i, s in enumerate(scores))

        assert [p.identifier for p in WeakPointDetector(store).detect("u1")] == ["pronunciation:r"]


class TestOrdering:
    def test_most_severe_first_and_limit(self, store, make_item):
        store.add_item(make_item("w1", knowledge_level=2, times_seen=4, times_correct=2))  # 0.5
        store.add_item(make_item("w2", knowledge_level=2, times_seen=3))  # 1.0
        store.add_item(make_item("r1", kind=ItemKind.RULE, knowledge_level=2, times_seen=3))  # 5/7

        detector = WeakPointDetector(store)

        assert [p.identifier for p in detector.detect("u1")] == ["vocabulary:w2", "grammar:r1", "vocabulary:w1"]
        assert len(detector.detect("u1", limit=2)) == 2
