"""
Leaderboard - ranks donors by points over a trailing period.

Per donor: restrict completed donations to the period window, recompute
points from those records, then rank. Stored point totals are never
trusted. Donors with nothing in the window don't appear.

Ordering (deterministic across repeated queries):
1. total_points, highest first
2. last_donation_at, earliest first (reached the score first)
3. donor_id, ascending (donors without an id last)
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from donor_rewards.constants import LEADERBOARD_MAX_ENTRIES, LEADERBOARD_PERIOD_DAYS, UNKNOWN_BLOOD_TYPE_LABEL
from donor_rewards.errors import InvalidArgumentError
from donor_rewards.schemas.donation import DonorHistory
from donor_rewards.schemas.enums import LeaderboardPeriod
from donor_rewards.schemas.results import LeaderboardEntry
from donor_rewards.scorers.points import DonationPointCalculator
from donor_rewards.scorers.rules import ScoringRules
from donor_rewards.utils.time_utils import as_utc, utc_now

logger = logging.getLogger(__name__)


def _period_window(period: Any) -> Optional[timedelta]:
    try:
        period = LeaderboardPeriod(period)
    except ValueError as e:
        raise InvalidArgumentError(
            f"period must be one of {[p.value for p in LeaderboardPeriod]}, got {period!r}"
        ) from e
    days = LEADERBOARD_PERIOD_DAYS[period.value]
    return timedelta(days=days) if days is not None else None


def _coerce_histories(donors: Any) -> list[DonorHistory]:
    if not isinstance(donors, (list, tuple)):
        raise InvalidArgumentError(f"donors must be a list of donor histories, got {type(donors).__name__}")
    return [d if isinstance(d, DonorHistory) else DonorHistory.model_validate(d) for d in donors]


def _normalize_blood_type(blood_type: Optional[str]) -> Optional[str]:
    if blood_type is None:
        return None
    blood_type = blood_type.strip().upper()
    # "all" is how the leaderboard filter spells "no filter"
    return None if blood_type in ("", "ALL") else blood_type


class LeaderboardRanker:
    """Builds ranked leaderboards against one rules table."""

    def __init__(self, rules: Optional[ScoringRules] = None, limit: int = LEADERBOARD_MAX_ENTRIES):
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidArgumentError(f"limit must be a non-negative integer, got {limit!r}")
        self.calculator = DonationPointCalculator(rules)
        self.limit = limit

    def rank_all(
        self,
        donors: Any,
        period: Any = LeaderboardPeriod.ALL_TIME,
        blood_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[LeaderboardEntry]:
        """Every qualifying donor, ranked, without the top-N cap."""
        histories = _coerce_histories(donors)
        window = _period_window(period)
        blood_type = _normalize_blood_type(blood_type)
        now = as_utc(now) if now is not None else utc_now()

        rows = []
        for history in histories:
            profile = history.profile
            if blood_type is not None and profile.blood_type != blood_type:
                continue

            completed = [d for d in history.donations if d.is_completed]
            if window is not None:
                completed = [d for d in completed if timedelta(0) <= now - d.sort_key <= window]
            if not completed:
                continue

            last = max(completed, key=lambda d: d.sort_key)
            rows.append(
                {
                    "donor_id": profile.donor_id,
                    "display_name": profile.display_name,
                    "blood_type": profile.blood_type or UNKNOWN_BLOOD_TYPE_LABEL,
                    "total_points": sum(self.calculator.calculate(d).total for d in completed),
                    "donation_count": len(completed),
                    "last_donation_at": last.timestamp,
                    "_last_key": last.sort_key,
                }
            )

        rows.sort(
            key=lambda r: (
                -r["total_points"],
                r["_last_key"],
                r["donor_id"] is None,
                r["donor_id"] or "",
            )
        )

        entries = []
        for position, row in enumerate(rows, start=1):
            row.pop("_last_key")
            entries.append(LeaderboardEntry(rank=position, **row))

        logger.debug(
            f"Ranked {len(entries)} of {len(histories)} donors "
            f"[period={LeaderboardPeriod(period).value} blood_type={blood_type or 'all'}]"
        )
        return entries

    def rank(
        self,
        donors: Any,
        period: Any = LeaderboardPeriod.ALL_TIME,
        blood_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[LeaderboardEntry]:
        """Top ``limit`` donors."""
        return self.rank_all(donors, period=period, blood_type=blood_type, now=now)[: self.limit]

    def find(
        self,
        donors: Any,
        donor_id: str,
        period: Any = LeaderboardPeriod.ALL_TIME,
        blood_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[LeaderboardEntry]:
        """A single donor's entry, even outside the top ``limit``. None if unranked."""
        for entry in self.rank_all(donors, period=period, blood_type=blood_type, now=now):
            if entry.donor_id == donor_id:
                return entry
        return None


def rank_leaderboard(
    donors: Any,
    period: Any = LeaderboardPeriod.ALL_TIME,
    blood_type: Optional[str] = None,
    now: Optional[datetime] = None,
    limit: int = LEADERBOARD_MAX_ENTRIES,
    rules: Optional[ScoringRules] = None,
) -> list[LeaderboardEntry]:
    """Ranked top-``limit`` leaderboard for ``period`` ("allTime", "monthly", "weekly")."""
    return LeaderboardRanker(rules, limit=limit).rank(donors, period=period, blood_type=blood_type, now=now)


def find_donor_rank(
    donors: Any,
    donor_id: str,
    period: Any = LeaderboardPeriod.ALL_TIME,
    blood_type: Optional[str] = None,
    now: Optional[datetime] = None,
    rules: Optional[ScoringRules] = None,
) -> Optional[LeaderboardEntry]:
    """"Your rank": one donor's entry, uncapped."""
    return LeaderboardRanker(rules).find(donors, donor_id, period=period, blood_type=blood_type, now=now)
