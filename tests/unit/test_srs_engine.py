"""
Unit tests for the modified SM-2 engine.

Covers ease factor updates, interval progression, the perfect-recall
boost, knowledge level transitions and grade validation.
"""

from datetime import timedelta

import pytest

from progress_engine.errors import InvalidQualityError
from progress_engine.srs.engine import SrsConfig, SrsEngine, validate_quality


@pytest.fixture
def engine():
    return SrsEngine()


class TestEaseFactor:
    """Tests for the ease factor update."""

    @pytest.mark.parametrize(
        "quality,expected",
        [(5, 2.6), (4, 2.5), (3, 2.36), (2, 2.18), (1, 1.96), (0, 1.7)],
    )
    def test_update_from_default(self, engine, quality, expected):
        assert engine.next_ease_factor(2.5, quality) == pytest.approx(expected)

    def test_never_below_floor(self, engine):
        assert engine.next_ease_factor(1.3, 0) == pytest.approx(1.3)
        assert engine.next_ease_factor(1.4, 1) == pytest.approx(1.3)

    def test_advance_keeps_floor_over_many_failures(self, engine, make_item, now):
        item = make_item()
        for _ in range(20):
            item = engine.advance(item, 0, now)
            assert item.ease_factor >= 1.3
        assert item.ease_factor == pytest.approx(1.3)


class TestIntervals:
    """Tests for interval progression."""

    def test_first_pass_is_one_day(self, engine, make_item, now):
        updated = engine.advance(make_item(), 4, now)

        assert updated.repetitions == 1
        assert updated.interval_days == pytest.approx(1.0)
        assert updated.next_review_at == now + timedelta(days=1)

    def test_second_pass_is_three_days(self, engine, make_item, now):
        item = engine.advance(make_item(), 4, now)
        item = engine.advance(item, 4, now)

        assert item.repetitions == 2
        assert item.interval_days == pytest.approx(3.0)

    def test_third_pass_multiplies_by_ease(self, engine, make_item, now):
        item = make_item()
        for _ in range(3):
            item = engine.advance(item, 4, now)

        # q=4 leaves EF at 2.5
        assert item.interval_days == pytest.approx(7.5)

    @pytest.mark.parametrize("quality", [0, 1, 2])
    @pytest.mark.parametrize("previous", [0.0, 3.0, 40.0])
    def test_failed_review_is_half_day(self, engine, make_item, now, quality, previous):
        item = make_item(repetitions=4, interval_days=previous)
        updated = engine.advance(item, quality, now)

        assert updated.interval_days == pytest.approx(0.5)
        assert updated.next_review_at == now + timedelta(hours=12)

    def test_failure_resets_consecutive_passes(self, engine, make_item, now):
        item = make_item(repetitions=5, interval_days=20.0)
        failed = engine.advance(item, 1, now)
        assert failed.repetitions == 0

        again = engine.advance(failed, 4, now)
        assert again.repetitions == 1
        assert again.interval_days == pytest.approx(1.0)


class TestMasteryBoost:
    """Tests for the three-perfect-grades boost."""

    def test_three_perfect_grades_boost_interval(self, make_item, now):
        boosted, plain = SrsEngine(), SrsEngine(SrsConfig(boost_multiplier=1.0))
        a = b = make_item()
        for _ in range(3):
            a = boosted.advance(a, 5, now)
            b = plain.advance(b, 5, now)

        # EF 2.6 -> 2.7 -> 2.8; third interval 3 * 2.8 = 8.4, boosted to 12.6
        assert b.interval_days == pytest.approx(8.4)
        assert a.interval_days == pytest.approx(12.6)
        assert a.interval_days >= 1.5 * b.interval_days - 1e-9

    def test_boost_reads_persisted_history(self, engine, make_item, now):
        item = make_item(repetitions=5, interval_days=10.0, ease_factor=2.5, recent_qualities=(5, 5))
        updated = engine.advance(item, 5, now)

        assert updated.interval_days == pytest.approx(10.0 * 2.6 * 1.5)

    def test_no_boost_when_streak_broken(self, engine, make_item, now):
        item = make_item(repetitions=5, interval_days=10.0, ease_factor=2.5, recent_qualities=(5, 4))
        updated = engine.advance(item, 5, now)

        assert updated.interval_days == pytest.approx(26.0)

    def test_history_keeps_last_three_grades(self, engine, make_item, now):
        item = make_item(recent_qualities=(3, 4, 5))
        updated = engine.advance(item, 2, now)

        assert updated.recent_qualities == (4, 5, 2)


class TestKnowledgeLevel:
    """Tests for level transitions and counters."""

    def test_pass_increments_level_and_correct_count(self, engine, make_item, now):
        updated = engine.advance(make_item(knowledge_level=3, times_seen=4, times_correct=2), 3, now)

        assert updated.knowledge_level == 4
        assert updated.times_seen == 5
        assert updated.times_correct == 3
        assert updated.times_incorrect == 0
        assert updated.last_correct_at == now

    def test_failure_decrements_level_and_incorrect_count(self, engine, make_item, now):
        updated = engine.advance(make_item(knowledge_level=3), 2, now)

        assert updated.knowledge_level == 2
        assert updated.times_incorrect == 1
        assert updated.times_correct == 0
        assert updated.last_incorrect_at == now

    def test_level_clamped(self, engine, make_item, now):
        assert engine.advance(make_item(knowledge_level=0), 0, now).knowledge_level == 0
        assert engine.advance(make_item(knowledge_level=7), 5, now).knowledge_level == 7

    def test_level_stays_in_range_over_any_sequence(self, engine, make_item, now):
        item = make_item()
        for quality in [5, 5, 5, 5, 5, 5, 5, 5, 5, 0, 0, 0, 0, 0, 0, 0, 0, 0, 3, 1, 4, 2]:
            item = engine.advance(item, quality, now)
            assert 0 <= item.knowledge_level <= 7
            assert item.ease_factor >= 1.3

    def test_original_item_unchanged(self, engine, make_item, now):
        item = make_item(knowledge_level=2, contexts=["a"])
        engine.advance(item, 5, now)

        assert item.knowledge_level == 2
        assert item.times_seen == 0
        assert item.last_reviewed_at is None

    def test_timestamps_updated(self, engine, make_item, now):
        updated = engine.advance(make_item(), 4, now)

        assert updated.last_reviewed_at == now
        assert updated.updated_at == now


class TestValidateQuality:
    """Tests for grade validation done before advancing."""

    @pytest.mark.parametrize("quality", [0, 3, 5])
    def test_accepts_scale(self, quality):
        assert validate_quality(quality) == quality

    @pytest.mark.parametrize("quality", [-1, 6, 3.0, "3", None, True])
    def test_rejects_out_of_scale(self, quality):
        with pytest.raises(InvalidQualityError) as exc_info:
            validate_quality(quality)
        assert exc_info.value.quality == quality

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_quality(9)
