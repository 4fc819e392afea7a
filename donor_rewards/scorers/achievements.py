"""
Achievement Evaluator - which achievements a donor has unlocked.

Five independent rule families (milestone, streak, speed, distance,
special) are evaluated against the same context: the donor profile, the
completed donations sorted oldest first, and an evaluation time.

Ordering contract: callers may pass donations in any order. The evaluator
sorts completed donations by timestamp before any rule runs, so a
milestone's ``unlocked_at`` is the timestamp of the N-th donation in time.
Given the same profile, donations and ``now``, the result is identical;
without ``now`` only the trailing-window streak rules depend on the clock.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from donor_rewards.errors import InvalidArgumentError
from donor_rewards.schemas.donation import coerce_donations, coerce_profile, completed_in_time_order
from donor_rewards.schemas.results import UnlockedAchievement
from donor_rewards.scorers.achievement_rules import (
    AchievementCatalogue,
    AchievementContext,
    AchievementDefinition,
    get_achievement_catalogue,
)
from donor_rewards.scorers.rules import get_scoring_rules
from donor_rewards.utils.time_utils import as_utc, utc_now

logger = logging.getLogger(__name__)

SORT_KEYS = ("rarity", "points", "date")
FILTER_KEYS = ("all", "unlocked", "locked")


class AchievementEvaluator:
    """Evaluates one catalogue against donor histories."""

    def __init__(self, catalogue: Optional[AchievementCatalogue] = None, local_timezone: Optional[str] = None):
        self.catalogue = catalogue if catalogue is not None else get_achievement_catalogue()
        # Overnight rules read the hour the same way the points calculator does
        self.local_timezone = local_timezone if local_timezone is not None else get_scoring_rules().local_timezone

    def evaluate(self, profile: Any, donations: Any, now: Optional[datetime] = None) -> list[UnlockedAchievement]:
        """Unlocked achievements in catalogue order.

        Raises:
            InvalidArgumentError: ``donations`` is not a list/tuple, or ``profile`` is missing.
        """
        records = coerce_donations(donations)
        donor = coerce_profile(profile)
        ctx = AchievementContext(
            profile=donor,
            completed=tuple(completed_in_time_order(records)),
            now=as_utc(now) if now is not None else utc_now(),
            local_timezone=self.local_timezone,
        )

        unlocked = []
        for definition in self.catalogue.achievements:
            unlocked_at = definition.rule.unlocked_at(ctx)
            if unlocked_at is None:
                continue
            unlocked.append(
                UnlockedAchievement(
                    id=definition.id,
                    title=definition.title,
                    description=definition.description,
                    family=definition.family,
                    rarity=definition.rarity,
                    points=definition.points,
                    unlocked_at=unlocked_at,
                )
            )

        logger.debug(
            f"Evaluated {len(self.catalogue)} achievements for donor {donor.donor_id}: "
            f"{len(unlocked)} unlocked from {len(ctx.completed)} completed donations"
        )
        return unlocked


def evaluate_achievements(
    profile: Any,
    donations: Any,
    now: Optional[datetime] = None,
    catalogue: Optional[AchievementCatalogue] = None,
) -> list[UnlockedAchievement]:
    """Unlocked achievements for a donor. See AchievementEvaluator.evaluate."""
    return AchievementEvaluator(catalogue).evaluate(profile, donations, now=now)


def list_achievements(catalogue: Optional[AchievementCatalogue] = None) -> list[AchievementDefinition]:
    """Every achievement, locked or not, in display order."""
    if catalogue is None:
        catalogue = get_achievement_catalogue()
    return list(catalogue.achievements)


def achievement_completion(
    unlocked: Iterable[UnlockedAchievement],
    catalogue: Optional[AchievementCatalogue] = None,
) -> int:
    """Percentage (0-100, rounded) of the catalogue a donor has unlocked."""
    if catalogue is None:
        catalogue = get_achievement_catalogue()
    if len(catalogue) == 0:
        return 0
    unlocked_ids = {a.id for a in unlocked}
    count = sum(1 for a in catalogue.achievements if a.id in unlocked_ids)
    return round(count / len(catalogue) * 100)


def achievement_points(unlocked: Iterable[UnlockedAchievement]) -> int:
    """Sum of rewards for unlocked achievements."""
    return sum(a.points for a in unlocked)


def sort_achievements(
    definitions: Iterable[AchievementDefinition],
    unlocked: Iterable[UnlockedAchievement],
    sort_by: str = "rarity",
) -> list[AchievementDefinition]:
    """Order achievements for display.

    - rarity: rarest first
    - points: biggest reward first
    - date: most recently unlocked first, locked ones last
    Ties keep catalogue order.
    """
    if sort_by not in SORT_KEYS:
        raise InvalidArgumentError(f"sort_by must be one of {SORT_KEYS}, got {sort_by!r}")
    definitions = list(definitions)
    if sort_by == "rarity":
        return sorted(definitions, key=lambda a: -a.rarity.rank)
    if sort_by == "points":
        return sorted(definitions, key=lambda a: -a.points)

    unlocked_at = {a.id: as_utc(a.unlocked_at) for a in unlocked}
    done = sorted((a for a in definitions if a.id in unlocked_at), key=lambda a: unlocked_at[a.id], reverse=True)
    locked = [a for a in definitions if a.id not in unlocked_at]
    return done + locked


def filter_achievements(
    definitions: Iterable[AchievementDefinition],
    unlocked: Iterable[UnlockedAchievement],
    show: str = "all",
) -> list[AchievementDefinition]:
    """Keep all, only unlocked, or only locked achievements, in the given order."""
    if show not in FILTER_KEYS:
        raise InvalidArgumentError(f"show must be one of {FILTER_KEYS}, got {show!r}")
    definitions = list(definitions)
    if show == "all":
        return definitions
    unlocked_ids = {a.id for a in unlocked}
    want_unlocked = show == "unlocked"
    return [a for a in definitions if (a.id in unlocked_ids) == want_unlocked]
