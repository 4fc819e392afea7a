"""Tests for badge tiers and progress toward the next tier."""

import pytest
from conftest import make_donation

from donor_rewards.errors import InvalidArgumentError, RulesConfigError
from donor_rewards.schemas.results import BadgeTier
from donor_rewards.scorers.badges import BadgeResolver, count_completed, resolve_badge, resolve_next_badge
from donor_rewards.scorers.rules import DEFAULT_BADGE_TIERS, BadgeTierTable


class TestResolveBadge:
    @pytest.mark.parametrize(
        "count,key",
        [
            (0, "new_hero"),
            (1, "bronze"),
            (4, "bronze"),
            (5, "silver"),
            (9, "silver"),
            (10, "gold"),
            (19, "gold"),
            (20, "platinum"),
            (49, "platinum"),
            (50, "diamond"),
            (10_000, "diamond"),
        ],
    )
    def test_tier_boundaries(self, count, key):
        assert resolve_badge(count).key == key

    def test_every_count_has_exactly_one_tier(self):
        for n in range(0, 200):
            matching = [t for t in DEFAULT_BADGE_TIERS.tiers if t.contains(n)]
            assert len(matching) == 1
            tier = resolve_badge(n)
            assert tier == matching[0]
            assert tier.min_donations <= n

    def test_titles(self):
        assert resolve_badge(0).title == "New Hero"
        assert resolve_badge(50).title == "Diamond Savior"

    @pytest.mark.parametrize("bad", [-1, 2.5, "3", None, True])
    def test_invalid_count_raises(self, bad):
        with pytest.raises(InvalidArgumentError):
            resolve_badge(bad)


class TestResolveNextBadge:
    def test_new_donor(self):
        progress = resolve_next_badge(0)
        assert progress.current.key == "new_hero"
        assert progress.next_badge.key == "bronze"
        assert progress.progress_percent == 0.0
        assert progress.donations_needed == 1

    def test_linear_progress_within_tier(self):
        """Silver (5) → gold (10): 7 donations is 40% of the way."""
        progress = resolve_next_badge(7)
        assert progress.current.key == "silver"
        assert progress.next_badge.key == "gold"
        assert progress.progress_percent == pytest.approx(40.0)
        assert progress.donations_needed == 3

    def test_highest_tier(self):
        progress = resolve_next_badge(75)
        assert progress.current.key == "diamond"
        assert progress.next_badge is None
        assert progress.progress_percent == 100.0
        assert progress.donations_needed == 0

    def test_monotonic_within_tier(self):
        for tier in DEFAULT_BADGE_TIERS.tiers[:-1]:
            values = [
                resolve_next_badge(n).progress_percent for n in range(tier.min_donations, tier.max_donations + 1)
            ]
            assert values == sorted(values)
            assert all(0 <= v <= 100 for v in values)

    def test_negative_raises(self):
        with pytest.raises(InvalidArgumentError):
            resolve_next_badge(-5)


class TestCountCompleted:
    def test_only_completed_count(self):
        donations = [
            make_donation(),
            make_donation(),
            make_donation(status="pending"),
            make_donation(status="upcoming"),
        ]
        assert count_completed(donations) == 2

    def test_empty(self):
        assert count_completed([]) == 0

    def test_none_raises(self):
        with pytest.raises(InvalidArgumentError):
            count_completed(None)


class TestCustomTierTable:
    def test_injected_table(self):
        table = BadgeTierTable(
            version="test",
            tiers=(
                BadgeTier(key="rookie", title="Rookie", min_donations=0, max_donations=2),
                BadgeTier(key="veteran", title="Veteran", min_donations=3),
            ),
        )
        resolver = BadgeResolver(table)
        assert resolver.resolve(2).key == "rookie"
        assert resolver.resolve(3).key == "veteran"
        assert resolver.resolve_next(1).progress_percent == pytest.approx(100 / 3)

    def test_gap_rejected(self):
        with pytest.raises(RulesConfigError, match="expected 3"):
            BadgeTierTable(
                version="bad",
                tiers=(
                    BadgeTier(key="a", title="A", min_donations=0, max_donations=2),
                    BadgeTier(key="b", title="B", min_donations=4),
                ),
            )

    def test_overlap_rejected(self):
        with pytest.raises(RulesConfigError):
            BadgeTierTable(
                version="bad",
                tiers=(
                    BadgeTier(key="a", title="A", min_donations=0, max_donations=5),
                    BadgeTier(key="b", title="B", min_donations=3),
                ),
            )

    def test_must_start_at_zero(self):
        with pytest.raises(RulesConfigError, match="must start at 0"):
            BadgeTierTable(version="bad", tiers=(BadgeTier(key="a", title="A", min_donations=1),))

    def test_unbounded_tier_must_be_last(self):
        with pytest.raises(RulesConfigError, match="only the last tier"):
            BadgeTierTable(
                version="bad",
                tiers=(
                    BadgeTier(key="a", title="A", min_donations=0),
                    BadgeTier(key="b", title="B", min_donations=1),
                ),
            )
