"""Donor rewards: deterministic points, badges, streaks, achievements and leaderboards for blood donors."""

__version__ = "0.1.0"
