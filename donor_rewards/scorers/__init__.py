"""Deterministic scoring and progression modules for donor rewards."""

from donor_rewards.scorers.achievement_rules import (
    RULE_KINDS,
    AchievementCatalogue,
    AchievementContext,
    AchievementDefinition,
    get_achievement_catalogue,
    load_achievement_catalogue,
    register_rule_kind,
)
from donor_rewards.scorers.achievements import (
    AchievementEvaluator,
    achievement_completion,
    achievement_points,
    evaluate_achievements,
    filter_achievements,
    list_achievements,
    sort_achievements,
)
from donor_rewards.scorers.badges import (
    BadgeResolver,
    count_completed,
    resolve_badge,
    resolve_next_badge,
)
from donor_rewards.scorers.leaderboard import LeaderboardRanker, find_donor_rank, rank_leaderboard
from donor_rewards.scorers.points import DonationPointCalculator, calculate_points, total_points
from donor_rewards.scorers.rules import (
    RULES_VERSION,
    BadgeTierTable,
    ScoringRules,
    get_badge_tiers,
    get_scoring_rules,
    load_badge_tiers,
    load_scoring_rules,
)
from donor_rewards.scorers.streaks import compute_streak
from donor_rewards.scorers.summary import DonorProgressScorer, summarize_donor

__all__ = [
    # Rules tables
    "RULES_VERSION",
    "ScoringRules",
    "BadgeTierTable",
    "get_scoring_rules",
    "get_badge_tiers",
    "load_scoring_rules",
    "load_badge_tiers",
    # Points
    "DonationPointCalculator",
    "calculate_points",
    "total_points",
    # Badges
    "BadgeResolver",
    "count_completed",
    "resolve_badge",
    "resolve_next_badge",
    # Streaks
    "compute_streak",
    # Achievements
    "RULE_KINDS",
    "AchievementCatalogue",
    "AchievementContext",
    "AchievementDefinition",
    "AchievementEvaluator",
    "achievement_completion",
    "achievement_points",
    "evaluate_achievements",
    "filter_achievements",
    "get_achievement_catalogue",
    "list_achievements",
    "load_achievement_catalogue",
    "register_rule_kind",
    "sort_achievements",
    # Leaderboard
    "LeaderboardRanker",
    "find_donor_rank",
    "rank_leaderboard",
    # Summary
    "DonorProgressScorer",
    "summarize_donor",
]
