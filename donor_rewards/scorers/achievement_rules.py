"""Achievement Catalogue - typed unlock rules and the versioned catalogue.

Every achievement pairs display metadata (title, rarity, reward) with one
rule object. A rule belongs to exactly one family and answers a single
question against a shared context: "when did this donor unlock me?"
(None = still locked). New kinds of rule register in ``RULE_KINDS``; the
evaluator never needs to change.

All rules see the donor's completed donations sorted oldest first, so the
unlock time is always taken from the donation that satisfied the rule in
time order, regardless of the order the caller passed records in.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, ClassVar, Mapping, Optional

from donor_rewards.config import ACHIEVEMENTS_FILE, get_rules_path
from donor_rewards.errors import RulesConfigError
from donor_rewards.schemas.donation import DonationRecord, DonorProfile
from donor_rewards.schemas.enums import AchievementFamily, Rarity, Urgency
from donor_rewards.scorers.rules import RULES_VERSION, load_yaml
from donor_rewards.utils.time_utils import in_wrapping_window, local_hour

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementContext:
    """What every rule is evaluated against."""

    profile: DonorProfile
    completed: tuple[DonationRecord, ...]  # oldest first
    now: datetime  # timezone-aware evaluation time
    local_timezone: Optional[str] = None


def _require_positive(rule: Any, **values: Any) -> None:
    for name, value in values.items():
        if value is None or value <= 0:
            raise RulesConfigError(f"{type(rule).__name__}.{name} must be positive, got {value}")


# =============================================================================
# Milestone family
# =============================================================================


@dataclass(frozen=True)
class MilestoneRule:
    """Unlocks at ``threshold`` completed donations."""

    family: ClassVar[AchievementFamily] = AchievementFamily.MILESTONE
    threshold: int

    def __post_init__(self):
        _require_positive(self, threshold=self.threshold)

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        if len(ctx.completed) < self.threshold:
            return None
        return ctx.completed[self.threshold - 1].timestamp


# =============================================================================
# Streak family (trailing window, not the eligibility-window streak)
# =============================================================================


@dataclass(frozen=True)
class PeriodCountRule:
    """Unlocks when ``count`` donations fall inside the trailing ``window_days``."""

    family: ClassVar[AchievementFamily] = AchievementFamily.STREAK
    window_days: int
    count: int

    def __post_init__(self):
        _require_positive(self, window_days=self.window_days, count=self.count)

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        window = timedelta(days=self.window_days)
        recent = [d for d in ctx.completed if timedelta(0) <= ctx.now - d.sort_key <= window]
        if len(recent) < self.count:
            return None
        return recent[self.count - 1].timestamp


# =============================================================================
# Speed family
# =============================================================================


@dataclass(frozen=True)
class ResponseSpeedRule:
    """Unlocks on any response at or under ``max_seconds``."""

    family: ClassVar[AchievementFamily] = AchievementFamily.SPEED
    max_seconds: int

    def __post_init__(self):
        _require_positive(self, max_seconds=self.max_seconds)

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        for d in ctx.completed:
            if d.response_time_seconds is not None and d.response_time_seconds <= self.max_seconds:
                return d.timestamp
        return None


# =============================================================================
# Distance family
# =============================================================================


@dataclass(frozen=True)
class LocalDistanceRule:
    """Unlocks on any donation at or under ``max_km`` away."""

    family: ClassVar[AchievementFamily] = AchievementFamily.DISTANCE
    max_km: float

    def __post_init__(self):
        _require_positive(self, max_km=self.max_km)

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        for d in ctx.completed:
            if d.distance_km is not None and d.distance_km <= self.max_km:
                return d.timestamp
        return None


@dataclass(frozen=True)
class LongDistanceRule:
    """Unlocks on any donation at or over ``min_km`` away."""

    family: ClassVar[AchievementFamily] = AchievementFamily.DISTANCE
    min_km: float

    def __post_init__(self):
        _require_positive(self, min_km=self.min_km)

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        for d in ctx.completed:
            if d.distance_km is not None and d.distance_km >= self.min_km:
                return d.timestamp
        return None


# =============================================================================
# Special family
# =============================================================================


@dataclass(frozen=True)
class RareBloodTypeRule:
    """Unlocks for donors whose own blood type is rare, once they've donated."""

    family: ClassVar[AchievementFamily] = AchievementFamily.SPECIAL
    blood_types: frozenset

    def __post_init__(self):
        object.__setattr__(self, "blood_types", frozenset(str(b).strip().upper() for b in self.blood_types))
        if not self.blood_types:
            raise RulesConfigError("RareBloodTypeRule.blood_types must not be empty")

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        if not ctx.completed or ctx.profile.blood_type not in self.blood_types:
            return None
        return ctx.completed[0].timestamp


@dataclass(frozen=True)
class NightDonationRule:
    """Unlocks on any donation in the overnight window (wraps midnight)."""

    family: ClassVar[AchievementFamily] = AchievementFamily.SPECIAL
    start_hour: int
    end_hour: int

    def __post_init__(self):
        for name in ("start_hour", "end_hour"):
            hour = getattr(self, name)
            if not 0 <= hour <= 23:
                raise RulesConfigError(f"NightDonationRule.{name} {hour} outside 0-23")

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        for d in ctx.completed:
            if in_wrapping_window(local_hour(d.timestamp, ctx.local_timezone), self.start_hour, self.end_hour):
                return d.timestamp
        return None


@dataclass(frozen=True)
class UrgencyCountRule:
    """Unlocks after ``count`` donations answering requests of one urgency."""

    family: ClassVar[AchievementFamily] = AchievementFamily.SPECIAL
    count: int
    urgency: str = Urgency.CRITICAL.value

    def __post_init__(self):
        _require_positive(self, count=self.count)
        object.__setattr__(self, "urgency", str(self.urgency).lower())

    def unlocked_at(self, ctx: AchievementContext) -> Optional[datetime]:
        matching = [d for d in ctx.completed if d.urgency == self.urgency]
        if len(matching) < self.count:
            return None
        return matching[self.count - 1].timestamp


# kind name (as written in achievements.yaml) -> rule class
RULE_KINDS: dict[str, type] = {
    "milestone": MilestoneRule,
    "period_count": PeriodCountRule,
    "response_speed": ResponseSpeedRule,
    "local_distance": LocalDistanceRule,
    "long_distance": LongDistanceRule,
    "rare_blood_type": RareBloodTypeRule,
    "night_donation": NightDonationRule,
    "urgency_count": UrgencyCountRule,
}


def register_rule_kind(kind: str, rule_cls: type) -> None:
    """Make a new rule kind available to catalogue files."""
    if not hasattr(rule_cls, "family") or not hasattr(rule_cls, "unlocked_at"):
        raise RulesConfigError(f"Rule kind '{kind}' must define family and unlocked_at()")
    RULE_KINDS[kind] = rule_cls


# =============================================================================
# Catalogue
# =============================================================================


@dataclass(frozen=True)
class AchievementDefinition:
    """Static definition of one achievement."""

    id: str
    title: str
    rarity: Rarity
    points: int
    rule: Any
    description: str = ""

    @property
    def family(self) -> AchievementFamily:
        return self.rule.family


@dataclass(frozen=True)
class AchievementCatalogue:
    """Ordered, versioned set of achievements. Order is display order."""

    version: str
    achievements: tuple[AchievementDefinition, ...]

    def __post_init__(self):
        object.__setattr__(self, "achievements", tuple(self.achievements))
        ids = [a.id for a in self.achievements]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise RulesConfigError(f"Achievement catalogue {self.version} has duplicate ids: {duplicates}")
        negative = [a.id for a in self.achievements if a.points < 0]
        if negative:
            raise RulesConfigError(f"Achievement catalogue {self.version} has negative rewards: {negative}")

    def __len__(self) -> int:
        return len(self.achievements)

    def get(self, achievement_id: str) -> Optional[AchievementDefinition]:
        for achievement in self.achievements:
            if achievement.id == achievement_id:
                return achievement
        return None

    def by_family(self, family: AchievementFamily) -> list[AchievementDefinition]:
        return [a for a in self.achievements if a.family == family]


DEFAULT_ACHIEVEMENTS = AchievementCatalogue(
    version=RULES_VERSION,
    achievements=(
        # --- Milestones (completed donations) ---
        AchievementDefinition("first_drop", "First Drop", Rarity.COMMON, 100, MilestoneRule(threshold=1),
                              "Completed your first blood donation"),
        AchievementDefinition("helping_hand", "Helping Hand", Rarity.COMMON, 150, MilestoneRule(threshold=3),
                              "Completed 3 blood donations"),
        AchievementDefinition("bronze_hero", "Bronze Hero", Rarity.UNCOMMON, 250, MilestoneRule(threshold=5),
                              "Completed 5 blood donations"),
        AchievementDefinition("silver_hero", "Silver Hero", Rarity.RARE, 500, MilestoneRule(threshold=10),
                              "Completed 10 blood donations"),
        AchievementDefinition("gold_hero", "Gold Hero", Rarity.EPIC, 1000, MilestoneRule(threshold=20),
                              "Completed 20 blood donations"),
        AchievementDefinition("platinum_legend", "Platinum Legend", Rarity.LEGENDARY, 2500,
                              MilestoneRule(threshold=50), "Completed 50 blood donations"),
        AchievementDefinition("diamond_savior", "Diamond Savior", Rarity.LEGENDARY, 5000,
                              MilestoneRule(threshold=100), "Completed 100 blood donations"),
        # --- Streaks (trailing window) ---
        AchievementDefinition("consistent_giver", "Consistent Giver", Rarity.UNCOMMON, 200,
                              PeriodCountRule(window_days=7, count=2), "Donated 2 times in a week"),
        AchievementDefinition("weekly_warrior", "Weekly Warrior", Rarity.RARE, 300,
                              PeriodCountRule(window_days=7, count=3), "Donated 3 times in a week"),
        AchievementDefinition("monthly_master", "Monthly Master", Rarity.EPIC, 500,
                              PeriodCountRule(window_days=30, count=4), "Donated 4 times in a month"),
        # --- Speed ---
        AchievementDefinition("lightning_fast", "Lightning Fast", Rarity.RARE, 150,
                              ResponseSpeedRule(max_seconds=300), "Responded to an emergency in under 5 minutes"),
        AchievementDefinition("quick_responder", "Quick Responder", Rarity.UNCOMMON, 100,
                              ResponseSpeedRule(max_seconds=900), "Responded to an emergency in under 15 minutes"),
        # --- Distance ---
        AchievementDefinition("local_hero", "Local Hero", Rarity.COMMON, 50, LocalDistanceRule(max_km=5),
                              "Donated within 5km of your location"),
        AchievementDefinition("distance_warrior", "Distance Warrior", Rarity.RARE, 200, LongDistanceRule(min_km=20),
                              "Traveled over 20km to donate"),
        # --- Special ---
        AchievementDefinition("rare_gem", "Rare Gem", Rarity.EPIC, 300,
                              RareBloodTypeRule(blood_types=frozenset({"AB-", "B-", "O-"})),
                              "Donated with a rare blood type (AB-, B-, O-)"),
        AchievementDefinition("night_hero", "Night Hero", Rarity.UNCOMMON, 150,
                              NightDonationRule(start_hour=22, end_hour=6), "Donated between 10 PM and 6 AM"),
        AchievementDefinition("emergency_responder", "Emergency Responder", Rarity.EPIC, 500,
                              UrgencyCountRule(count=5, urgency="critical"), "Responded to 5 critical emergencies"),
    ),
)


def build_rule(spec: Mapping[str, Any]) -> Any:
    """Instantiate a rule from its catalogue-file mapping (``kind`` + parameters)."""
    params = dict(spec)
    kind = params.pop("kind", None)
    rule_cls = RULE_KINDS.get(kind)
    if rule_cls is None:
        raise RulesConfigError(f"Unknown achievement rule kind '{kind}', expected one of {sorted(RULE_KINDS)}")
    try:
        return rule_cls(**params)
    except TypeError as e:
        raise RulesConfigError(f"Bad parameters for rule kind '{kind}': {e}") from e


def achievement_catalogue_from_dict(raw: Mapping[str, Any]) -> AchievementCatalogue:
    """Build an AchievementCatalogue from parsed YAML."""
    achievements = []
    try:
        for entry in raw["achievements"]:
            achievements.append(
                AchievementDefinition(
                    id=str(entry["id"]),
                    title=str(entry["title"]),
                    rarity=Rarity(entry["rarity"]),
                    points=int(entry["points"]),
                    rule=build_rule(entry["rule"]),
                    description=str(entry.get("description", "")),
                )
            )
    except (KeyError, TypeError, ValueError) as e:
        if isinstance(e, RulesConfigError):
            raise
        raise RulesConfigError(f"Achievement catalogue missing or malformed key: {e}") from e
    return AchievementCatalogue(version=str(raw.get("version", RULES_VERSION)), achievements=tuple(achievements))


_catalogue_cache: Optional[AchievementCatalogue] = None


def load_achievement_catalogue(path: Optional[Path] = None) -> AchievementCatalogue:
    """Load the catalogue from YAML, falling back to the in-code defaults."""
    config_path = path or get_rules_path(ACHIEVEMENTS_FILE)
    raw = load_yaml(config_path)
    if raw is None:
        logger.warning(f"Achievement catalogue not found at {config_path}, using defaults")
        return DEFAULT_ACHIEVEMENTS
    catalogue = achievement_catalogue_from_dict(raw)
    logger.info(f"Loaded {len(catalogue)} achievements v{catalogue.version} from {config_path}")
    return catalogue


def get_achievement_catalogue() -> AchievementCatalogue:
    """Cached catalogue for callers that don't inject their own."""
    global _catalogue_cache
    if _catalogue_cache is None:
        _catalogue_cache = load_achievement_catalogue()
    return _catalogue_cache


def clear_cache():
    """Clear the catalogue cache (useful for testing)."""
    global _catalogue_cache
    _catalogue_cache = None
