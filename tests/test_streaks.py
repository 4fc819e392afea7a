"""Tests for the eligibility-window donation streak."""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import make_donation

from donor_rewards.errors import InvalidArgumentError
from donor_rewards.scorers.streaks import compute_streak

START = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def _history(*offsets_days, status="completed"):
    return [make_donation(status=status, timestamp=START + timedelta(days=d)) for d in offsets_days]


class TestComputeStreak:
    def test_empty_is_zero(self):
        assert compute_streak([]) == 0

    def test_single_donation(self):
        assert compute_streak(_history(0)) == 1

    def test_exactly_90_days_continues(self):
        assert compute_streak(_history(0, 90)) == 2

    def test_91_days_breaks(self):
        assert compute_streak(_history(0, 91)) == 1

    def test_stops_at_first_long_gap_from_most_recent(self):
        """Walks newest first: 400 → 330 → 250 continue, 250 → 100 breaks."""
        assert compute_streak(_history(0, 60, 100, 250, 330, 400)) == 3

    def test_input_order_irrelevant(self):
        assert compute_streak(_history(400, 0, 330, 100, 250, 60)) == 3

    def test_non_completed_ignored(self):
        donations = _history(0, 45) + _history(20, status="pending") + _history(200, status="upcoming")
        assert compute_streak(donations) == 2

    def test_only_pending_is_zero(self):
        assert compute_streak(_history(0, 10, status="pending")) == 0

    def test_mixed_naive_and_aware_timestamps(self):
        donations = [
            make_donation(timestamp=datetime(2025, 1, 1, 9, 0)),
            make_donation(timestamp=datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)),
        ]
        assert compute_streak(donations) == 2

    def test_custom_window(self):
        assert compute_streak(_history(0, 30, 60), window_days=29) == 1

    @pytest.mark.parametrize("bad", [None, "x", {"a": 1}])
    def test_non_list_raises(self, bad):
        with pytest.raises(InvalidArgumentError):
            compute_streak(bad)
