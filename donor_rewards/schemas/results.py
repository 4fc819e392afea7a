"""Derived, ephemeral results produced by the engine.

Nothing here is persisted by the engine. Every model is plain data, safe to
``model_dump(mode="json")`` for display, export or caching by the caller.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from donor_rewards.schemas.enums import AchievementFamily, Rarity

# Factor attribute -> display key used by the frontend and in exports
FACTOR_KEYS = {
    "base": "base",
    "urgency": "urgency",
    "distance": "distance",
    "blood_rarity": "bloodRarity",
    "response_time": "responseTime",
    "time_of_day": "timeOfDay",
    "first_donation": "firstDonation",
}


class PointBreakdown(BaseModel):
    """Points awarded for one donation, itemized by factor.

    ``total`` is derived from the seven factors, so it can never drift from them.
    """

    model_config = ConfigDict(frozen=True)

    base: int = 0
    urgency: int = 0
    distance: int = 0
    blood_rarity: int = 0
    response_time: int = 0
    time_of_day: int = 0
    first_donation: int = 0

    @computed_field
    @property
    def total(self) -> int:
        return sum(getattr(self, attr) for attr in FACTOR_KEYS)

    @property
    def breakdown(self) -> dict[str, int]:
        """Factor name -> points, keyed the way the frontend names factors."""
        return {key: getattr(self, attr) for attr, key in FACTOR_KEYS.items()}

    def as_dict(self) -> dict:
        """``{"breakdown": {...}, "total": n}`` for serialization."""
        return {"breakdown": self.breakdown, "total": self.total}


class BadgeTier(BaseModel):
    """One step of the badge ladder, keyed by completed-donation count.

    ``max_donations`` of None means the tier is unbounded above.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Stable identifier, e.g. 'bronze'")
    title: str = Field(description="Display title, e.g. 'Bronze Hero'")
    min_donations: int = Field(ge=0)
    max_donations: Optional[int] = Field(default=None, ge=0)

    def contains(self, count: int) -> bool:
        if count < self.min_donations:
            return False
        return self.max_donations is None or count <= self.max_donations


class BadgeProgress(BaseModel):
    """Current badge plus progress toward the next one."""

    model_config = ConfigDict(frozen=True)

    current: BadgeTier
    next_badge: Optional[BadgeTier] = None
    progress_percent: float = Field(ge=0, le=100)
    donations_needed: int = Field(ge=0)


class UnlockedAchievement(BaseModel):
    """An achievement a donor has unlocked, with a best-effort unlock time."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    family: AchievementFamily
    rarity: Rarity
    points: int
    unlocked_at: datetime


class LeaderboardEntry(BaseModel):
    """One donor's row on the leaderboard. Computed per query."""

    model_config = ConfigDict(frozen=True)

    rank: int = Field(ge=1)
    donor_id: Optional[str]
    display_name: str
    blood_type: str
    total_points: int
    donation_count: int
    last_donation_at: Optional[datetime] = None


class DonorSummary(BaseModel):
    """Everything the profile page shows about a donor's progression."""

    model_config = ConfigDict(frozen=True)

    donor_id: Optional[str]
    completed_donations: int
    total_points: int
    badge: BadgeProgress
    streak: int
    achievements: list[UnlockedAchievement] = Field(default_factory=list)
    achievement_points: int = Field(description="Sum of unlocked achievement rewards (not in total_points)")
    achievement_completion_percent: int = Field(ge=0, le=100)
    lives_saved: int
    rules_version: str
