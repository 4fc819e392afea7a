"""
Badge Tiers - progression level from completed-donation count.

Only completed donations count; pending and upcoming ones are excluded by
the caller (see ``count_completed``). Every non-negative count maps to
exactly one tier, and counts beyond the last bounded range stay on the
highest tier.
"""

from typing import Any, Optional

from donor_rewards.errors import InvalidArgumentError
from donor_rewards.schemas.donation import coerce_donations
from donor_rewards.schemas.results import BadgeProgress, BadgeTier
from donor_rewards.scorers.rules import BadgeTierTable, get_badge_tiers


def _check_count(completed_count: Any) -> int:
    if isinstance(completed_count, bool) or not isinstance(completed_count, int):
        raise InvalidArgumentError(f"completed_count must be an int, got {type(completed_count).__name__}")
    if completed_count < 0:
        raise InvalidArgumentError(f"completed_count must be non-negative, got {completed_count}")
    return completed_count


class BadgeResolver:
    """Resolves badges against one tier table."""

    def __init__(self, tiers: Optional[BadgeTierTable] = None):
        self.table = tiers or get_badge_tiers()

    def resolve(self, completed_count: int) -> BadgeTier:
        """Current badge for ``completed_count`` completed donations."""
        count = _check_count(completed_count)
        for tier in self.table.tiers:
            if tier.contains(count):
                return tier
        return self.table.highest

    def resolve_next(self, completed_count: int) -> BadgeProgress:
        """Current badge, next badge and linear progress between their minimums."""
        count = _check_count(completed_count)
        current = self.resolve(count)
        index = self.table.index_of(current.key)

        if index == len(self.table.tiers) - 1:
            return BadgeProgress(current=current, next_badge=None, progress_percent=100.0, donations_needed=0)

        next_badge = self.table.tiers[index + 1]
        span = next_badge.min_donations - current.min_donations
        progress = (count - current.min_donations) / span * 100
        return BadgeProgress(
            current=current,
            next_badge=next_badge,
            progress_percent=min(100.0, max(0.0, progress)),
            donations_needed=max(0, next_badge.min_donations - count),
        )


def count_completed(donations: Any) -> int:
    """Completed donations in a history; the only count badges look at."""
    return sum(1 for d in coerce_donations(donations) if d.is_completed)


def resolve_badge(completed_count: int, tiers: Optional[BadgeTierTable] = None) -> BadgeTier:
    """Current badge tier for a completed-donation count."""
    return BadgeResolver(tiers).resolve(completed_count)


def resolve_next_badge(completed_count: int, tiers: Optional[BadgeTierTable] = None) -> BadgeProgress:
    """Next badge, progress percentage (0-100) and donations still needed."""
    return BadgeResolver(tiers).resolve_next(completed_count)
