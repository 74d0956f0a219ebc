"""
Tests for configuration loading and validation.
"""

from datetime import time
from textwrap import dedent

import pytest
from pydantic import ValidationError

from bookingslots.config import AppConfig, AvailabilityRuleConfig, DefaultsConfig, ResourceConfig
from bookingslots.domain.exceptions import InvalidConfiguration

CONFIG_YAML = dedent(
    """
    timezone: Europe/Stockholm
    defaults:
      step_minutes: 15
      min_lead_minutes: 5
    resources:
      - id: tvattstuga
        name: Tvättstuga
        durations: [120, 60, 60]
        step_minutes: 30
        availability:
          - {weekday: 1, start_time: "07:00", end_time: "22:00"}
          - {weekday: 5, start_time: "22:00:00", end_time: "02:00:00", is_active: false}
      - id: festlokal
        name: Festlokal
        availability: []
    """
)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


class TestAppConfig:
    """Tests for AppConfig."""

    def test_load_from_yaml(self, config_file):
        config = AppConfig.load_from_yaml(config_file)

        assert config.timezone == "Europe/Stockholm"
        assert [r.id for r in config.resources] == ["tvattstuga", "festlokal"]
        assert config.backend is None

    def test_rules_are_converted(self, config_file):
        config = AppConfig.load_from_yaml(config_file)
        rules = config.resources[0].rules()

        assert rules[0].weekday == 1
        assert rules[0].start_time == time(7, 0)
        assert rules[0].end_time == time(22, 0)
        assert rules[1].is_overnight
        assert not rules[1].is_active

    def test_durations_are_sorted_and_unique(self, config_file):
        config = AppConfig.load_from_yaml(config_file)

        assert config.resources[0].durations == [60, 120]

    def test_per_resource_overrides(self, config_file):
        config = AppConfig.load_from_yaml(config_file)
        laundry, party = config.resources

        assert config.step_minutes_for(laundry) == 30
        assert config.step_minutes_for(party) == 15
        assert config.min_lead_minutes_for(laundry) == 5

    def test_resolve_resource_by_id_or_name(self, config_file):
        config = AppConfig.load_from_yaml(config_file)

        assert config.resolve_resource("TVATTSTUGA").id == "tvattstuga"
        assert config.resolve_resource("festlokal").name == "Festlokal"
        assert config.resolve_resource("Tvättstuga").id == "tvattstuga"

    def test_unknown_resource_raises(self, config_file):
        config = AppConfig.load_from_yaml(config_file)

        with pytest.raises(ValueError, match="Unknown resource"):
            config.resolve_resource("bastu")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(InvalidConfiguration):
            AppConfig.load_from_yaml(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("resources: [\n", encoding="utf-8")

        with pytest.raises(InvalidConfiguration, match="Invalid YAML"):
            AppConfig.load_from_yaml(path)

    def test_duplicate_resource_ids(self):
        with pytest.raises(ValidationError, match="Duplicate resource id"):
            AppConfig(resources=[{"id": "a", "name": "A"}, {"id": "A", "name": "B"}])

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            AppConfig(timezone="Mars/Olympus_Mons")


class TestRuleAndDefaultsValidation:
    """Field-level validation."""

    def test_weekday_range(self):
        with pytest.raises(ValidationError):
            AvailabilityRuleConfig(weekday=0, start_time="09:00", end_time="10:00")

    def test_malformed_time(self):
        with pytest.raises(ValidationError):
            AvailabilityRuleConfig(weekday=1, start_time="9 o'clock", end_time="10:00")

    def test_unquoted_yaml_time(self):
        """YAML turns unquoted 07:00 into 420; that must not pass silently."""
        with pytest.raises(ValidationError, match="quoted"):
            AvailabilityRuleConfig(weekday=1, start_time=420, end_time="10:00")

    def test_times_are_normalized(self):
        config = AvailabilityRuleConfig(weekday=1, start_time="07:30", end_time="22:00")

        assert config.start_time == "07:30:00"

    def test_non_positive_step(self):
        with pytest.raises(ValidationError):
            DefaultsConfig(step_minutes=0)
        with pytest.raises(ValidationError):
            ResourceConfig(id="x", name="X", step_minutes=-15)

    def test_negative_lead(self):
        with pytest.raises(ValidationError):
            DefaultsConfig(min_lead_minutes=-1)

    def test_non_positive_duration(self):
        with pytest.raises(ValidationError):
            ResourceConfig(id="x", name="X", durations=[60, 0])
