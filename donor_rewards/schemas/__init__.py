"""Pydantic schemas for engine inputs and results.

This module contains:
- DonationRecord, DonorProfile, DonorHistory: boundary records from storage
- PointBreakdown, BadgeProgress, UnlockedAchievement, LeaderboardEntry, DonorSummary: results
- Enums: DonationStatus, Urgency, AchievementFamily, Rarity, LeaderboardPeriod
"""

from .donation import (
    DonationRecord,
    DonorHistory,
    DonorProfile,
    coerce_donations,
    coerce_profile,
    completed_in_time_order,
)
from .enums import AchievementFamily, DonationStatus, LeaderboardPeriod, Rarity, Urgency
from .results import (
    FACTOR_KEYS,
    BadgeProgress,
    BadgeTier,
    DonorSummary,
    LeaderboardEntry,
    PointBreakdown,
    UnlockedAchievement,
)

__all__ = [
    # Inputs
    "DonationRecord",
    "DonorHistory",
    "DonorProfile",
    "coerce_donations",
    "coerce_profile",
    "completed_in_time_order",
    # Enums
    "AchievementFamily",
    "DonationStatus",
    "LeaderboardPeriod",
    "Rarity",
    "Urgency",
    # Results
    "FACTOR_KEYS",
    "BadgeProgress",
    "BadgeTier",
    "DonorSummary",
    "LeaderboardEntry",
    "PointBreakdown",
    "UnlockedAchievement",
]
