"""Enums shared by donation records, achievements and the leaderboard."""

from enum import Enum


class DonationStatus(str, Enum):
    """Lifecycle state of a donation record.

    Only COMPLETED donations count toward points, badges, streaks and
    achievements. The others are carried so callers can pass an unfiltered
    history straight from storage.
    """

    COMPLETED = "completed"
    PENDING = "pending"
    UPCOMING = "upcoming"
    CANCELLED = "cancelled"


class Urgency(str, Enum):
    """Urgency of the emergency request a donation answered."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AchievementFamily(str, Enum):
    """Rule family an achievement belongs to."""

    MILESTONE = "milestone"  # Completed-donation count
    STREAK = "streak"  # Donations inside a trailing window
    SPEED = "speed"  # Emergency response time
    DISTANCE = "distance"  # Travel distance
    SPECIAL = "special"  # Context rules (blood type, night, critical count)


class Rarity(str, Enum):
    """Achievement rarity, ordered common -> legendary."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        """Sort weight (higher is rarer)."""
        return {
            "common": 1,
            "uncommon": 2,
            "rare": 3,
            "epic": 4,
            "legendary": 5,
        }[self.value]

    @property
    def label(self) -> str:
        """Display label."""
        return self.value.capitalize()


class LeaderboardPeriod(str, Enum):
    """Trailing window applied before leaderboard points are recomputed."""

    ALL_TIME = "allTime"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
