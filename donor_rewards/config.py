"""
Central configuration for rules files and logging.

Scoring rules, badge tiers and the achievement catalogue ship as YAML inside
the package (``donor_rewards/rules/``). Deployments can point the engine at a
different copy with environment variables:
  - DONOR_REWARDS_RULES_DIR (default: bundled rules directory)
  - DONOR_REWARDS_LOG_LEVEL (default: INFO)

A ``.env`` file in the working directory is honoured by entry points that
call ``load_settings_env()``.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BUNDLED_RULES_DIR = Path(__file__).parent / "rules"

SCORING_RULES_FILE = "scoring_rules.yaml"
BADGE_TIERS_FILE = "badge_tiers.yaml"
ACHIEVEMENTS_FILE = "achievements.yaml"


def load_settings_env() -> None:
    """Load .env from the working directory. Safe to call multiple times."""
    load_dotenv()


def get_rules_dir() -> Path:
    """
    Get the directory holding the rules YAML files.

    Uses DONOR_REWARDS_RULES_DIR environment variable if set, otherwise
    the rules directory bundled with the package.

    Returns:
        Path to rules directory
    """
    env_path = os.environ.get("DONOR_REWARDS_RULES_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return BUNDLED_RULES_DIR


def get_rules_path(filename: str) -> Path:
    """Get the path of one rules file."""
    return get_rules_dir() / filename


def get_log_level() -> str:
    """Get the configured log level name."""
    return os.environ.get("DONOR_REWARDS_LOG_LEVEL", "INFO").upper()
