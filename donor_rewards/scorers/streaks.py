"""
Donation Streak - consecutive donations that never missed the eligibility window.

This is not a calendar streak. Walking completed donations newest first,
each gap of at most ``ELIGIBILITY_WINDOW_DAYS`` extends the streak; the
first longer gap ends it. Exactly 90 days still counts.
"""

from datetime import timedelta
from typing import Any

from donor_rewards.constants import ELIGIBILITY_WINDOW_DAYS
from donor_rewards.schemas.donation import coerce_donations


def compute_streak(donations: Any, window_days: int = ELIGIBILITY_WINDOW_DAYS) -> int:
    """Current streak length; 0 with no completed donations.

    Raises:
        InvalidArgumentError: ``donations`` is not a list/tuple.
    """
    records = coerce_donations(donations)
    completed = sorted((d for d in records if d.is_completed), key=lambda d: d.sort_key, reverse=True)
    if not completed:
        return 0

    window = timedelta(days=window_days)
    streak = 1
    for newer, older in zip(completed, completed[1:]):
        if newer.sort_key - older.sort_key > window:
            break
        streak += 1
    return streak
