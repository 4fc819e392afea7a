"""
Donation Points - itemized points for one donation, and lifetime totals.

Seven factors, all read from the injected ScoringRules table:
1. base - flat, always awarded
2. urgency - by the answered request's urgency
3. distance - local or far bonus, nothing in between
4. blood_rarity - by the donated blood type
5. response_time - instant / quick / normal tiers
6. time_of_day - overnight window, wraps past midnight
7. first_donation - flat bonus on a donor's first donation

Missing optional fields score 0; they never raise. Totals are always
re-derived from the records, never read from a stored counter.
"""

from typing import Any, Optional

from donor_rewards.schemas.donation import DonationRecord, coerce_donations
from donor_rewards.schemas.results import PointBreakdown
from donor_rewards.scorers.rules import ScoringRules, get_scoring_rules
from donor_rewards.utils.scoring_audit import ScoringAuditLog
from donor_rewards.utils.time_utils import in_wrapping_window, local_hour


class DonationPointCalculator:
    """Scores donations against one rules table.

    The calculator holds no per-call state; one instance can score any
    number of donations, from any number of callers.
    """

    def __init__(self, rules: Optional[ScoringRules] = None, audit_log: Optional[ScoringAuditLog] = None):
        self.rules = rules or get_scoring_rules()
        self.audit_log = audit_log

    def calculate(self, donation: Any, donor_id: Optional[str] = None) -> PointBreakdown:
        """Points for one donation. Accepts a DonationRecord or a record-shaped mapping."""
        if not isinstance(donation, DonationRecord):
            donation = DonationRecord.model_validate(donation)

        urgency, urgency_known = self._score_urgency(donation)
        blood_rarity, blood_known = self._score_blood_rarity(donation)

        breakdown = PointBreakdown(
            base=self.rules.base,
            urgency=urgency,
            distance=self._score_distance(donation),
            blood_rarity=blood_rarity,
            response_time=self._score_response_time(donation),
            time_of_day=self._score_time_of_day(donation),
            first_donation=self.rules.first_donation if donation.is_first_donation else 0,
        )

        if self.audit_log is not None:
            self._audit(donation, breakdown, donor_id, urgency_known, blood_known)
        return breakdown

    def total(self, donations: Any) -> int:
        """Lifetime points: sum of totals over completed donations only."""
        records = coerce_donations(donations)
        return sum(self.calculate(d).total for d in records if d.is_completed)

    def _score_urgency(self, donation: DonationRecord) -> tuple[int, bool]:
        if donation.urgency is None:
            return 0, True
        if donation.urgency not in self.rules.urgency:
            return 0, False
        return self.rules.urgency[donation.urgency], True

    def _score_distance(self, donation: DonationRecord) -> int:
        km = donation.distance_km
        if km is None:
            return 0
        bonus = self.rules.distance
        if km <= bonus.local_max_km:
            return bonus.local_bonus
        if km >= bonus.far_min_km:
            return bonus.far_bonus
        return 0

    def _score_blood_rarity(self, donation: DonationRecord) -> tuple[int, bool]:
        if donation.blood_type is None:
            return 0, True
        if donation.blood_type not in self.rules.blood_rarity:
            return 0, False
        return self.rules.blood_rarity[donation.blood_type], True

    def _score_response_time(self, donation: DonationRecord) -> int:
        seconds = donation.response_time_seconds
        if seconds is None:
            return 0
        # Tiers ascend, so the first ceiling that fits is the fastest tier reached
        for tier in self.rules.response_time:
            if seconds <= tier.max_seconds:
                return tier.bonus
        return 0

    def _score_time_of_day(self, donation: DonationRecord) -> int:
        night = self.rules.night
        hour = local_hour(donation.timestamp, self.rules.local_timezone)
        if in_wrapping_window(hour, night.start_hour, night.end_hour):
            return night.bonus
        return 0

    def _audit(
        self,
        donation: DonationRecord,
        breakdown: PointBreakdown,
        donor_id: Optional[str],
        urgency_known: bool,
        blood_known: bool,
    ) -> None:
        values = {
            "base": None,
            "urgency": donation.urgency,
            "distance": donation.distance_km,
            "blood_rarity": donation.blood_type,
            "response_time": donation.response_time_seconds,
            "time_of_day": donation.timestamp,
            "first_donation": donation.is_first_donation,
        }
        recognized = {"urgency": urgency_known, "blood_rarity": blood_known}
        for factor, value in values.items():
            points = getattr(breakdown, factor)
            known = recognized.get(factor, True)
            if points or not known:
                self.audit_log.log_factor(
                    factor=factor,
                    value=value,
                    points=points,
                    rules_version=self.rules.version,
                    donor_id=donor_id,
                    donation_at=donation.timestamp,
                    recognized=known,
                )


def calculate_points(donation: Any, rules: Optional[ScoringRules] = None) -> PointBreakdown:
    """Itemized points for one donation."""
    return DonationPointCalculator(rules).calculate(donation)


def total_points(donations: Any, rules: Optional[ScoringRules] = None) -> int:
    """Lifetime points over completed donations. ``total_points([]) == 0``.

    Raises:
        InvalidArgumentError: ``donations`` is not a list/tuple.
    """
    return DonationPointCalculator(rules).total(donations)
