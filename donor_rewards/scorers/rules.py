"""Rules Registry - versioned scoring and badge tables.

Point values per donation factor and the badge ladder are configuration,
not code. Each table is an immutable, versioned object handed to the
scorers; the defaults below mirror ``rules/scoring_rules.yaml`` and
``rules/badge_tiers.yaml``, which take precedence when present.

Usage:
    from donor_rewards.scorers.rules import get_scoring_rules, get_badge_tiers

    rules = get_scoring_rules()
    rules.urgency["critical"]  # 50
    tiers = get_badge_tiers()
    tiers.tiers[0].title  # "New Hero"
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from donor_rewards.config import BADGE_TIERS_FILE, SCORING_RULES_FILE, get_rules_path
from donor_rewards.constants import BLOOD_TYPES
from donor_rewards.errors import RulesConfigError
from donor_rewards.schemas.results import BadgeTier

logger = logging.getLogger(__name__)

# =============================================================================
# Rules Version (semver)
# =============================================================================
# Major: factor added/removed (point totals not comparable)
# Minor: bonus values changed (totals shift)
# Patch: wording / metadata only
#
# History:
#   1.0.0 - base + urgency + distance + rarity + response + night + first donation
RULES_VERSION = "1.0.0"


# =============================================================================
# Scoring Rules Table
# =============================================================================


@dataclass(frozen=True)
class DistanceBonus:
    """Two-sided distance bonus with a dead zone in between.

    Donations at or under ``local_max_km`` earn the local bonus, donations at
    or over ``far_min_km`` earn the far bonus, anything strictly between earns 0.
    """

    local_max_km: float
    local_bonus: int
    far_min_km: float
    far_bonus: int


@dataclass(frozen=True)
class ResponseTier:
    """Response-time tier: responses at or under ``max_seconds`` earn ``bonus``."""

    name: str
    max_seconds: int
    bonus: int


@dataclass(frozen=True)
class HourWindowBonus:
    """Bonus for donations whose hour is in [start_hour, end_hour), wrapping midnight."""

    start_hour: int
    end_hour: int
    bonus: int


@dataclass(frozen=True)
class ScoringRules:
    """Point values for every donation factor."""

    version: str
    base: int
    urgency: Mapping[str, int]
    distance: DistanceBonus
    blood_rarity: Mapping[str, int]
    response_time: tuple[ResponseTier, ...]
    night: HourWindowBonus
    first_donation: int
    local_timezone: Optional[str] = None

    def __post_init__(self):
        # Freeze lookup tables so a shared rules object can't be edited in place
        object.__setattr__(self, "urgency", MappingProxyType({k.lower(): v for k, v in self.urgency.items()}))
        object.__setattr__(self, "blood_rarity", MappingProxyType({k.upper(): v for k, v in self.blood_rarity.items()}))
        object.__setattr__(self, "response_time", tuple(self.response_time))
        _validate_scoring_rules(self)


def _validate_scoring_rules(rules: ScoringRules) -> None:
    """Reject tables the calculator would misread."""
    flat = {"base": rules.base, "first_donation": rules.first_donation}
    flat.update({f"urgency.{k}": v for k, v in rules.urgency.items()})
    flat.update({f"blood_rarity.{k}": v for k, v in rules.blood_rarity.items()})
    flat.update({f"response_time.{t.name}": t.bonus for t in rules.response_time})
    flat["distance.local_bonus"] = rules.distance.local_bonus
    flat["distance.far_bonus"] = rules.distance.far_bonus
    flat["night.bonus"] = rules.night.bonus
    negative = sorted(k for k, v in flat.items() if v < 0)
    if negative:
        raise RulesConfigError(f"Scoring rules {rules.version} have negative point values: {negative}")

    if rules.distance.local_max_km > rules.distance.far_min_km:
        raise RulesConfigError(
            f"Scoring rules {rules.version}: local_max_km {rules.distance.local_max_km} "
            f"exceeds far_min_km {rules.distance.far_min_km}"
        )

    ceilings = [t.max_seconds for t in rules.response_time]
    if ceilings != sorted(ceilings) or len(set(ceilings)) != len(ceilings):
        raise RulesConfigError(f"Scoring rules {rules.version}: response tiers must ascend, got {ceilings}")

    for name, hour in (("start_hour", rules.night.start_hour), ("end_hour", rules.night.end_hour)):
        if not 0 <= hour <= 23:
            raise RulesConfigError(f"Scoring rules {rules.version}: night.{name} {hour} outside 0-23")

    unknown_groups = sorted(set(rules.blood_rarity) - set(BLOOD_TYPES))
    if unknown_groups:
        raise RulesConfigError(f"Scoring rules {rules.version}: blood_rarity has unknown blood types {unknown_groups}")

    if rules.local_timezone is not None:
        try:
            ZoneInfo(rules.local_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise RulesConfigError(
                f"Scoring rules {rules.version}: local_timezone {rules.local_timezone!r} is not a known time zone"
            ) from e


DEFAULT_SCORING_RULES = ScoringRules(
    version=RULES_VERSION,
    base=100,
    urgency={
        "critical": 50,
        "high": 25,
        "medium": 10,
        "low": 0,
    },
    distance=DistanceBonus(local_max_km=5, local_bonus=25, far_min_km=20, far_bonus=30),
    # Rarer groups are in shorter supply
    blood_rarity={
        "AB-": 40,
        "B-": 40,
        "O-": 40,
        "A-": 30,
        "AB+": 20,
        "A+": 10,
        "B+": 10,
        "O+": 10,
    },
    response_time=(
        ResponseTier(name="instant", max_seconds=300, bonus=50),  # Under 5 min
        ResponseTier(name="quick", max_seconds=900, bonus=25),  # 5-15 min
        ResponseTier(name="normal", max_seconds=1800, bonus=10),  # 15-30 min
    ),
    night=HourWindowBonus(start_hour=22, end_hour=6, bonus=30),  # 10 PM - 6 AM
    first_donation=100,
)


def _number(value: Any, key: str, kind=int):
    """Convert one table value, naming its key on failure."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise RulesConfigError(f"Scoring rules: {key} must be a number, got {value!r}")
    try:
        return kind(value)
    except ValueError as e:
        raise RulesConfigError(f"Scoring rules: {key} must be a number, got {value!r}") from e


def _section(raw: Mapping[str, Any], key: str, expected: type, required: bool = True):
    """A nested table; an explicit null means an empty one."""
    if key not in raw:
        if required:
            raise RulesConfigError(f"Scoring rules missing key: {key}")
        return expected()
    value = raw[key]
    if value is None:
        return expected()
    if not isinstance(value, expected):
        raise RulesConfigError(f"Scoring rules: {key} must be a {expected.__name__}, got {type(value).__name__}")
    return value


def scoring_rules_from_dict(raw: Mapping[str, Any]) -> ScoringRules:
    """Build ScoringRules from parsed YAML."""
    distance = _section(raw, "distance", dict)
    night = _section(_section(raw, "time_of_day", dict), "night", dict)

    tiers = []
    for i, t in enumerate(_section(raw, "response_time", list, required=False)):
        if not isinstance(t, dict) or "name" not in t:
            raise RulesConfigError(f"Scoring rules: response_time[{i}] must be a mapping with a name")
        tiers.append(
            ResponseTier(
                name=str(t["name"]),
                max_seconds=_number(t.get("max_seconds"), f"response_time.{t['name']}.max_seconds"),
                bonus=_number(t.get("bonus"), f"response_time.{t['name']}.bonus"),
            )
        )

    return ScoringRules(
        version=str(raw.get("version", RULES_VERSION)),
        base=_number(raw.get("base"), "base"),
        urgency={str(k): _number(v, f"urgency.{k}") for k, v in _section(raw, "urgency", dict, required=False).items()},
        distance=DistanceBonus(
            local_max_km=_number(distance.get("local_max_km"), "distance.local_max_km", float),
            local_bonus=_number(distance.get("local_bonus"), "distance.local_bonus"),
            far_min_km=_number(distance.get("far_min_km"), "distance.far_min_km", float),
            far_bonus=_number(distance.get("far_bonus"), "distance.far_bonus"),
        ),
        blood_rarity={
            str(k): _number(v, f"blood_rarity.{k}")
            for k, v in _section(raw, "blood_rarity", dict, required=False).items()
        },
        response_time=tuple(tiers),
        night=HourWindowBonus(
            start_hour=_number(night.get("start_hour"), "time_of_day.night.start_hour"),
            end_hour=_number(night.get("end_hour"), "time_of_day.night.end_hour"),
            bonus=_number(night.get("bonus"), "time_of_day.night.bonus"),
        ),
        first_donation=_number(raw.get("first_donation", 0), "first_donation"),
        local_timezone=None if raw.get("local_timezone") is None else str(raw["local_timezone"]),
    )


# =============================================================================
# Badge Tier Table
# =============================================================================


@dataclass(frozen=True)
class BadgeTierTable:
    """Ordered badge ladder. Ranges partition the non-negative integers."""

    version: str
    tiers: tuple[BadgeTier, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "tiers", tuple(self.tiers))
        _validate_badge_tiers(self)

    @property
    def highest(self) -> BadgeTier:
        return self.tiers[-1]

    def index_of(self, key: str) -> int:
        for i, tier in enumerate(self.tiers):
            if tier.key == key:
                return i
        raise KeyError(key)


def _validate_badge_tiers(table: BadgeTierTable) -> None:
    """Tiers must start at 0 and follow each other with no gaps or overlaps."""
    if not table.tiers:
        raise RulesConfigError(f"Badge tiers {table.version}: table is empty")
    if table.tiers[0].min_donations != 0:
        raise RulesConfigError(
            f"Badge tiers {table.version}: first tier '{table.tiers[0].key}' must start at 0"
        )
    keys = [t.key for t in table.tiers]
    if len(set(keys)) != len(keys):
        raise RulesConfigError(f"Badge tiers {table.version}: duplicate tier keys in {keys}")

    for prev, tier in zip(table.tiers, table.tiers[1:]):
        if prev.max_donations is None:
            raise RulesConfigError(
                f"Badge tiers {table.version}: only the last tier may be unbounded, '{prev.key}' is not last"
            )
        if tier.min_donations != prev.max_donations + 1:
            raise RulesConfigError(
                f"Badge tiers {table.version}: '{tier.key}' starts at {tier.min_donations}, "
                f"expected {prev.max_donations + 1} after '{prev.key}'"
            )
    for tier in table.tiers:
        if tier.max_donations is not None and tier.max_donations < tier.min_donations:
            raise RulesConfigError(f"Badge tiers {table.version}: '{tier.key}' has max below min")


DEFAULT_BADGE_TIERS = BadgeTierTable(
    version=RULES_VERSION,
    tiers=(
        BadgeTier(key="new_hero", title="New Hero", min_donations=0, max_donations=0),
        BadgeTier(key="bronze", title="Bronze Hero", min_donations=1, max_donations=4),
        BadgeTier(key="silver", title="Silver Hero", min_donations=5, max_donations=9),
        BadgeTier(key="gold", title="Gold Hero", min_donations=10, max_donations=19),
        BadgeTier(key="platinum", title="Platinum Legend", min_donations=20, max_donations=49),
        BadgeTier(key="diamond", title="Diamond Savior", min_donations=50, max_donations=None),
    ),
)


def badge_tiers_from_dict(raw: Mapping[str, Any]) -> BadgeTierTable:
    """Build a BadgeTierTable from parsed YAML."""
    try:
        tiers = tuple(
            BadgeTier(
                key=str(t["key"]),
                title=str(t["title"]),
                min_donations=int(t["min_donations"]),
                max_donations=None if t.get("max_donations") is None else int(t["max_donations"]),
            )
            for t in raw["tiers"]
        )
    except (KeyError, TypeError) as e:
        raise RulesConfigError(f"Badge tiers missing or malformed key: {e}") from e
    return BadgeTierTable(version=str(raw.get("version", RULES_VERSION)), tiers=tiers)


# =============================================================================
# Loading & cache
# =============================================================================

_scoring_rules_cache: Optional[ScoringRules] = None
_badge_tiers_cache: Optional[BadgeTierTable] = None


def load_yaml(path: Path) -> Optional[dict]:
    """Parse a rules file, or None if it doesn't exist."""
    if not path.exists():
        return None
    with open(path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise RulesConfigError(f"Rules file {path} must contain a mapping")
    return raw


def load_scoring_rules(path: Optional[Path] = None) -> ScoringRules:
    """Load scoring rules from YAML, falling back to the in-code defaults."""
    config_path = path or get_rules_path(SCORING_RULES_FILE)
    raw = load_yaml(config_path)
    if raw is None:
        logger.warning(f"Scoring rules not found at {config_path}, using defaults")
        return DEFAULT_SCORING_RULES
    rules = scoring_rules_from_dict(raw)
    logger.info(f"Loaded scoring rules v{rules.version} from {config_path}")
    return rules


def load_badge_tiers(path: Optional[Path] = None) -> BadgeTierTable:
    """Load the badge ladder from YAML, falling back to the in-code defaults."""
    config_path = path or get_rules_path(BADGE_TIERS_FILE)
    raw = load_yaml(config_path)
    if raw is None:
        logger.warning(f"Badge tiers not found at {config_path}, using defaults")
        return DEFAULT_BADGE_TIERS
    table = badge_tiers_from_dict(raw)
    logger.info(f"Loaded {len(table.tiers)} badge tiers v{table.version} from {config_path}")
    return table


def get_scoring_rules() -> ScoringRules:
    """Cached scoring rules for callers that don't inject their own."""
    global _scoring_rules_cache
    if _scoring_rules_cache is None:
        _scoring_rules_cache = load_scoring_rules()
    return _scoring_rules_cache


def get_badge_tiers() -> BadgeTierTable:
    """Cached badge ladder for callers that don't inject their own."""
    global _badge_tiers_cache
    if _badge_tiers_cache is None:
        _badge_tiers_cache = load_badge_tiers()
    return _badge_tiers_cache


def clear_cache():
    """Clear the rules cache (useful for testing)."""
    global _scoring_rules_cache, _badge_tiers_cache
    _scoring_rules_cache = None
    _badge_tiers_cache = None
