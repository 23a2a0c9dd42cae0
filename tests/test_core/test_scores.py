"""Tests for ScoreTracker."""

import numpy as np
import pytest

from musicquiz.core.models import ScoreState
from musicquiz.core.scores import ScoreTracker
from musicquiz.storage.score_store import InMemoryScoreStore


class TestScoreTracker:
    def test_starts_from_store_values(self):
        tracker = ScoreTracker(InMemoryScoreStore(current=2, high=7))
        assert tracker.get_current() == 2
        assert tracker.get_high() == 7

    def test_record_correct_answer_increments(self, tracker):
        assert tracker.record_correct_answer() == ScoreState(current=1, high=1)
        assert tracker.record_correct_answer() == ScoreState(current=2, high=2)

    def test_record_correct_answer_below_high(self):
        tracker = ScoreTracker(InMemoryScoreStore(current=0, high=10))
        assert tracker.record_correct_answer() == ScoreState(current=1, high=10)

    def test_set_current_above_high_lifts_high(self, tracker, store):
        tracker.set_current(5)
        assert store.get_high_score() == 5

    def test_set_high_never_lowers(self, tracker):
        tracker.set_high(8)
        tracker.set_high(3)
        assert tracker.get_high() == 8

    def test_reset_current_keeps_high(self, tracker):
        tracker.set_current(4)
        tracker.reset_current()
        assert tracker.get_current() == 0
        assert tracker.get_high() == 4

    @pytest.mark.parametrize("value", [-1, 1.5, "3", True])
    def test_rejects_invalid_values(self, tracker, value):
        with pytest.raises(ValueError):
            tracker.set_current(value)
        with pytest.raises(ValueError):
            tracker.set_high(value)

    def test_snapshot(self, tracker):
        tracker.set_current(3)
        tracker.set_current(1)
        assert tracker.snapshot() == ScoreState(current=1, high=3)


class TestHighScoreMonotonic:
    def test_high_never_decreases_over_random_call_sequences(self):
        rng = np.random.default_rng(31)
        for _ in range(50):
            tracker = ScoreTracker(InMemoryScoreStore())
            previous_high = tracker.get_high()
            for _ in range(60):
                op = rng.integers(4)
                value = int(rng.integers(0, 20))
                if op == 0:
                    tracker.set_current(value)
                elif op == 1:
                    tracker.set_high(value)
                elif op == 2:
                    tracker.record_correct_answer()
                else:
                    tracker.reset_current()
                high = tracker.get_high()
                assert high >= previous_high
                assert high >= tracker.get_current()
                previous_high = high
