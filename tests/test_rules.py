"""Tests for the rules registry: bundled YAML, validation, env override, caching."""

import dataclasses
import logging

import pytest
import yaml

from donor_rewards.config import BUNDLED_RULES_DIR, get_rules_dir
from donor_rewards.errors import RulesConfigError
from donor_rewards.scorers import achievement_rules
from donor_rewards.scorers.rules import (
    DEFAULT_BADGE_TIERS,
    DEFAULT_SCORING_RULES,
    RULES_VERSION,
    DistanceBonus,
    HourWindowBonus,
    ResponseTier,
    badge_tiers_from_dict,
    clear_cache,
    get_badge_tiers,
    get_scoring_rules,
    load_badge_tiers,
    load_scoring_rules,
    load_yaml,
    scoring_rules_from_dict,
)


def _scoring_dict(**overrides) -> dict:
    with open(BUNDLED_RULES_DIR / "scoring_rules.yaml") as f:
        raw = yaml.safe_load(f)
    raw.update(overrides)
    return raw


# ─── Bundled tables ──────────────────────────────────────────────────────────


class TestBundledRules:
    def test_scoring_yaml_matches_defaults(self):
        assert load_scoring_rules() == DEFAULT_SCORING_RULES

    def test_badge_yaml_matches_defaults(self):
        assert load_badge_tiers() == DEFAULT_BADGE_TIERS

    def test_versions(self):
        assert get_scoring_rules().version == RULES_VERSION
        assert get_badge_tiers().version == RULES_VERSION

    def test_default_rules_dir(self):
        assert get_rules_dir() == BUNDLED_RULES_DIR

    def test_tables_are_immutable(self):
        rules = get_scoring_rules()
        with pytest.raises(TypeError):
            rules.urgency["critical"] = 1_000
        with pytest.raises(dataclasses.FrozenInstanceError):
            rules.base = 0

    def test_cached(self):
        assert get_scoring_rules() is get_scoring_rules()
        assert get_badge_tiers() is get_badge_tiers()


# ─── Environment override ────────────────────────────────────────────────────


class TestRulesDirOverride:
    def test_env_dir_used(self, tmp_path, monkeypatch):
        with open(tmp_path / "scoring_rules.yaml", "w") as f:
            yaml.safe_dump(_scoring_dict(version="2.0.0", base=1), f)
        monkeypatch.setenv("DONOR_REWARDS_RULES_DIR", str(tmp_path))
        clear_cache()

        rules = get_scoring_rules()
        assert rules.version == "2.0.0"
        assert rules.base == 1

    def test_missing_files_fall_back_with_warning(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setenv("DONOR_REWARDS_RULES_DIR", str(tmp_path))
        clear_cache()
        achievement_rules.clear_cache()

        with caplog.at_level(logging.WARNING):
            assert get_badge_tiers() == DEFAULT_BADGE_TIERS
            assert achievement_rules.get_achievement_catalogue() == achievement_rules.DEFAULT_ACHIEVEMENTS
        assert "Badge tiers not found" in caplog.text
        assert "Achievement catalogue not found" in caplog.text

    def test_clear_cache_reloads(self, tmp_path, monkeypatch):
        first = get_scoring_rules()
        with open(tmp_path / "scoring_rules.yaml", "w") as f:
            yaml.safe_dump(_scoring_dict(base=7), f)
        monkeypatch.setenv("DONOR_REWARDS_RULES_DIR", str(tmp_path))

        assert get_scoring_rules() is first
        clear_cache()
        assert get_scoring_rules().base == 7


# ─── Validation ──────────────────────────────────────────────────────────────


class TestScoringRulesValidation:
    def test_negative_points_rejected(self):
        with pytest.raises(RulesConfigError, match="negative"):
            dataclasses.replace(DEFAULT_SCORING_RULES, base=-5)

    def test_negative_lookup_value_rejected(self):
        with pytest.raises(RulesConfigError, match="urgency.critical"):
            scoring_rules_from_dict(_scoring_dict(urgency={"critical": -1}))

    def test_local_beyond_far_rejected(self):
        with pytest.raises(RulesConfigError, match="far_min_km"):
            dataclasses.replace(
                DEFAULT_SCORING_RULES,
                distance=DistanceBonus(local_max_km=30, local_bonus=25, far_min_km=20, far_bonus=30),
            )

    def test_response_tiers_must_ascend(self):
        tiers = (
            ResponseTier(name="quick", max_seconds=900, bonus=25),
            ResponseTier(name="instant", max_seconds=300, bonus=50),
        )
        with pytest.raises(RulesConfigError, match="ascend"):
            dataclasses.replace(DEFAULT_SCORING_RULES, response_time=tiers)

    def test_night_hours_bounded(self):
        with pytest.raises(RulesConfigError, match="0-23"):
            dataclasses.replace(DEFAULT_SCORING_RULES, night=HourWindowBonus(start_hour=24, end_hour=6, bonus=30))

    def test_missing_key(self):
        raw = _scoring_dict()
        del raw["distance"]
        with pytest.raises(RulesConfigError, match="distance"):
            scoring_rules_from_dict(raw)

    def test_lookup_keys_normalized(self):
        rules = scoring_rules_from_dict(_scoring_dict(urgency={"CRITICAL": 50}, blood_rarity={"o-": 40}))
        assert rules.urgency == {"critical": 50}
        assert rules.blood_rarity == {"O-": 40}

    @pytest.mark.parametrize("section", ["urgency", "blood_rarity", "response_time"])
    def test_null_lookup_table_is_empty(self, section):
        rules = scoring_rules_from_dict(_scoring_dict(**{section: None}))
        assert len(getattr(rules, section)) == 0

    def test_wrong_section_type_named(self):
        with pytest.raises(RulesConfigError, match="urgency must be a dict"):
            scoring_rules_from_dict(_scoring_dict(urgency=["critical"]))

    @pytest.mark.parametrize(
        "overrides,key",
        [
            ({"base": "lots"}, "base"),
            ({"urgency": {"critical": "fifty"}}, "urgency.critical"),
            ({"blood_rarity": {"O-": None}}, "blood_rarity.O-"),
            ({"first_donation": [100]}, "first_donation"),
        ],
    )
    def test_non_numeric_value_named(self, overrides, key):
        with pytest.raises(RulesConfigError, match=key):
            scoring_rules_from_dict(_scoring_dict(**overrides))

    def test_non_numeric_nested_value_named(self):
        raw = _scoring_dict()
        raw["distance"] = dict(raw["distance"], far_min_km="far")
        with pytest.raises(RulesConfigError, match="distance.far_min_km"):
            scoring_rules_from_dict(raw)

    def test_unknown_blood_type_rejected(self):
        with pytest.raises(RulesConfigError, match=r"Z\+"):
            scoring_rules_from_dict(_scoring_dict(blood_rarity={"Z+": 40}))

    @pytest.mark.parametrize("tz", ["Mars/Base", "../etc/localtime"])
    def test_unknown_timezone_rejected(self, tz):
        with pytest.raises(RulesConfigError, match="local_timezone"):
            dataclasses.replace(DEFAULT_SCORING_RULES, local_timezone=tz)

    def test_unknown_timezone_from_yaml(self):
        with pytest.raises(RulesConfigError, match="Mars/Base"):
            scoring_rules_from_dict(_scoring_dict(local_timezone="Mars/Base"))


class TestBadgeTierParsing:
    def test_from_dict(self):
        table = badge_tiers_from_dict(
            {
                "version": "x",
                "tiers": [
                    {"key": "a", "title": "A", "min_donations": 0, "max_donations": 9},
                    {"key": "b", "title": "B", "min_donations": 10},
                ],
            }
        )
        assert table.highest.key == "b"
        assert table.highest.max_donations is None

    def test_missing_tiers(self):
        with pytest.raises(RulesConfigError):
            badge_tiers_from_dict({"version": "x"})


class TestLoadYaml:
    def test_missing_file(self, tmp_path):
        assert load_yaml(tmp_path / "nope.yaml") is None

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(RulesConfigError, match="mapping"):
            load_yaml(path)
