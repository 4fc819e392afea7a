"""
Global constants for the donor rewards engine.

Centralizes magic numbers that are not part of the versioned rules tables.
"""

# Eligibility
ELIGIBILITY_WINDOW_DAYS = 90  # Max gap between donations that keeps a streak alive

# Leaderboard
LEADERBOARD_MAX_ENTRIES = 100  # Top-N returned by rank_leaderboard
LEADERBOARD_PERIOD_DAYS = {
    "allTime": None,
    "monthly": 30,
    "weekly": 7,
}
UNKNOWN_BLOOD_TYPE_LABEL = "Unknown"
ANONYMOUS_DONOR_NAME = "Anonymous"

# Impact
LIVES_SAVED_PER_DONATION = 3  # One whole-blood unit splits into three components

# Blood groups (ABO/Rh)
BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
