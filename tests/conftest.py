"""Shared fixtures for donor rewards tests.

Tests run against the rules bundled with the package; anything that
overrides DONOR_REWARDS_RULES_DIR must clear the rules caches.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add repo root to path so tests can import donor_rewards without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_donation(**overrides) -> dict:
    """A completed, zero-bonus donation dict; override any field."""
    defaults = dict(
        status="completed",
        timestamp=NOW - timedelta(days=1),
    )
    defaults.update(overrides)
    return defaults


def days_ago(days: float, hour: int = 12) -> datetime:
    """Timestamp ``days`` before NOW, pinned to a daytime hour."""
    return (NOW - timedelta(days=days)).replace(hour=hour, minute=0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def o_negative_profile():
    return {"donorId": "donor-o-neg", "bloodType": "O-", "displayName": "Night Owl"}


@pytest.fixture
def first_night_donation():
    """O-, 2 km, critical, answered in 2 minutes, at 2 AM, first ever donation."""
    return {
        "status": "completed",
        "timestamp": datetime(2026, 2, 20, 2, 0),
        "urgency": "critical",
        "distanceKm": 2,
        "bloodType": "O-",
        "responseTimeSeconds": 120,
        "isFirstDonation": True,
    }


@pytest.fixture(autouse=True)
def _clear_rules_caches(monkeypatch):
    """Every test starts from the bundled rules."""
    from donor_rewards.scorers import achievement_rules, rules

    monkeypatch.delenv("DONOR_REWARDS_RULES_DIR", raising=False)
    rules.clear_cache()
    achievement_rules.clear_cache()
    yield
    rules.clear_cache()
    achievement_rules.clear_cache()
