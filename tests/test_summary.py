"""Tests for the donor summary that backs the profile page."""

import pytest
from conftest import NOW, days_ago, make_donation

from donor_rewards.errors import InvalidArgumentError
from donor_rewards.schemas.donation import DonorProfile
from donor_rewards.scorers.rules import RULES_VERSION
from donor_rewards.scorers.summary import DonorProgressScorer, summarize_donor


class TestNewDonor:
    """0 completed donations → lowest tier, nothing earned."""

    def test_empty_history(self, o_negative_profile):
        summary = summarize_donor(o_negative_profile, [], now=NOW)
        assert summary.completed_donations == 0
        assert summary.total_points == 0
        assert summary.badge.current.title == "New Hero"
        assert summary.badge.donations_needed == 1
        assert summary.streak == 0
        assert summary.achievements == []
        assert summary.achievement_points == 0
        assert summary.achievement_completion_percent == 0
        assert summary.lives_saved == 0

    def test_only_upcoming(self, o_negative_profile):
        summary = summarize_donor(o_negative_profile, [make_donation(status="upcoming")], now=NOW)
        assert summary.completed_donations == 0
        assert summary.badge.current.key == "new_hero"


class TestFirstNightDonation:
    def test_summary(self, o_negative_profile, first_night_donation):
        summary = summarize_donor(o_negative_profile, [first_night_donation], now=NOW)
        assert summary.donor_id == "donor-o-neg"
        assert summary.completed_donations == 1
        assert summary.total_points == 395
        assert summary.badge.current.key == "bronze"
        assert summary.badge.next_badge.key == "silver"
        assert summary.streak == 1
        assert {a.id for a in summary.achievements} == {
            "first_drop",
            "lightning_fast",
            "quick_responder",
            "local_hero",
            "rare_gem",
            "night_hero",
        }
        assert summary.achievement_points == 850
        assert summary.achievement_completion_percent == round(6 / 17 * 100)
        assert summary.lives_saved == 3
        assert summary.rules_version == RULES_VERSION

    def test_achievement_rewards_not_in_total(self, o_negative_profile, first_night_donation):
        summary = summarize_donor(o_negative_profile, [first_night_donation], now=NOW)
        assert summary.total_points == 395


class TestLongerHistory:
    def test_streak_and_badge(self):
        donations = [make_donation(timestamp=days_ago(d)) for d in (10, 80, 150, 400, 450)]
        donations.append(make_donation(status="pending", timestamp=days_ago(1)))
        summary = summarize_donor(DonorProfile(donor_id="d1"), donations, now=NOW)
        assert summary.completed_donations == 5
        assert summary.total_points == 500
        assert summary.badge.current.key == "silver"
        assert summary.streak == 3
        assert summary.lives_saved == 15

    def test_json_safe(self, o_negative_profile, first_night_donation):
        data = summarize_donor(o_negative_profile, [first_night_donation], now=NOW).model_dump(mode="json")
        assert data["badge"]["current"]["key"] == "bronze"
        assert data["achievements"][0]["family"] == "milestone"

    def test_scorer_reusable(self, o_negative_profile, first_night_donation):
        scorer = DonorProgressScorer()
        first = scorer.evaluate(o_negative_profile, [first_night_donation], now=NOW)
        second = scorer.evaluate(o_negative_profile, [first_night_donation], now=NOW)
        assert first == second


class TestInvalidArguments:
    def test_none_donations(self, o_negative_profile):
        with pytest.raises(InvalidArgumentError):
            summarize_donor(o_negative_profile, None, now=NOW)

    def test_bad_profile(self):
        with pytest.raises(InvalidArgumentError):
            summarize_donor("donor-1", [], now=NOW)
