"""
Donor Summary - one call for everything the profile page shows.

Composes the four per-donor scorers (points, badge, streak, achievements)
over a single donation history, so the page never mixes results computed
from different snapshots or rules tables.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from donor_rewards.constants import LIVES_SAVED_PER_DONATION
from donor_rewards.schemas.donation import coerce_donations, coerce_profile
from donor_rewards.schemas.results import DonorSummary
from donor_rewards.scorers.achievement_rules import AchievementCatalogue
from donor_rewards.scorers.achievements import AchievementEvaluator, achievement_completion, achievement_points
from donor_rewards.scorers.badges import BadgeResolver
from donor_rewards.scorers.points import DonationPointCalculator
from donor_rewards.scorers.rules import BadgeTierTable, ScoringRules
from donor_rewards.scorers.streaks import compute_streak

logger = logging.getLogger(__name__)


class DonorProgressScorer:
    """Bundles the per-donor scorers against one set of rules tables."""

    def __init__(
        self,
        rules: Optional[ScoringRules] = None,
        tiers: Optional[BadgeTierTable] = None,
        catalogue: Optional[AchievementCatalogue] = None,
    ):
        self.points = DonationPointCalculator(rules)
        self.badges = BadgeResolver(tiers)
        self.achievements = AchievementEvaluator(catalogue, local_timezone=self.points.rules.local_timezone)

    def evaluate(self, profile: Any, donations: Any, now: Optional[datetime] = None) -> DonorSummary:
        records = coerce_donations(donations)
        donor = coerce_profile(profile)

        completed = sum(1 for d in records if d.is_completed)
        unlocked = self.achievements.evaluate(donor, records, now=now)

        summary = DonorSummary(
            donor_id=donor.donor_id,
            completed_donations=completed,
            total_points=self.points.total(records),
            badge=self.badges.resolve_next(completed),
            streak=compute_streak(records),
            achievements=unlocked,
            achievement_points=achievement_points(unlocked),
            achievement_completion_percent=achievement_completion(unlocked, self.achievements.catalogue),
            lives_saved=completed * LIVES_SAVED_PER_DONATION,
            rules_version=self.points.rules.version,
        )
        logger.debug(
            f"Summary for donor {donor.donor_id}: {summary.total_points} pts, "
            f"badge={summary.badge.current.key}, streak={summary.streak}"
        )
        return summary


def summarize_donor(
    profile: Any,
    donations: Any,
    now: Optional[datetime] = None,
    rules: Optional[ScoringRules] = None,
    tiers: Optional[BadgeTierTable] = None,
    catalogue: Optional[AchievementCatalogue] = None,
) -> DonorSummary:
    """Points, badge progress, streak and achievements for one donor."""
    return DonorProgressScorer(rules, tiers, catalogue).evaluate(profile, donations, now=now)
