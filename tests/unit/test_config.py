"""
jfrnorm Unit Tests - Configuration
"""

import logging
import dataclasses

import pytest
import yaml

from jfrnorm.core.config import ParserConfig
from jfrnorm.core.errors import InvalidArgumentError


class TestParserConfigDefaults:
    """Tests for default configuration."""

    def test_default_matchers(self):
        """Test the default profile and custom event matchers."""
        config = ParserConfig()

        assert config.profile_matchers == ("ExecutionS", "Socket")
        assert config.custom_event_matchers == ("LogContext", "MqFrm", "CPUEvent", "MemoryEvent")

    def test_default_filters_and_pool(self):
        """Test default threshold, window and pool sizing."""
        config = ParserConfig()

        assert config.threshold == 0.005
        assert config.sample_window_ns == 600_000_000_000
        assert config.window_enabled
        assert (config.min_workers, config.max_workers, config.queue_capacity) == (1, 2, 10)
        assert config.idle_timeout_s == 300.0

    def test_immutable(self):
        """Test config cannot be mutated after construction."""
        config = ParserConfig()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.threshold = 0.1

    def test_lists_are_stored_as_tuples(self):
        """Test matcher sequences are frozen."""
        config = ParserConfig(profile_matchers=["Execution"])

        assert config.profile_matchers == ("Execution",)

    def test_with_overrides(self):
        """Test copying with replaced fields."""
        config = ParserConfig().with_overrides(max_workers=4, sample_window_ns=None)

        assert config.max_workers == 4
        assert not config.window_enabled


class TestParserConfigValidation:
    """Tests for configuration validation."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_workers": 0},
            {"min_workers": 3, "max_workers": 2},
            {"queue_capacity": -1},
            {"idle_timeout_s": 0},
            {"threshold": 1.0},
            {"threshold": -0.1},
            {"sample_window_ns": -5},
            {"profile_matchers": ("",)},
        ],
    )
    def test_invalid_values(self, overrides):
        """Test invalid settings are rejected."""
        with pytest.raises(InvalidArgumentError):
            ParserConfig(**overrides)

    def test_invalid_argument_is_value_error(self):
        """Test InvalidArgumentError can be caught as ValueError."""
        with pytest.raises(ValueError):
            ParserConfig(min_workers=0)

    def test_overlapping_matchers_warn(self, caplog):
        """Test a matcher in both lists logs a warning."""
        with caplog.at_level(logging.WARNING, logger="jfrnorm.core.config"):
            ParserConfig(profile_matchers=("Socket",), custom_event_matchers=("Socket",))

        assert "Socket" in caplog.text


class TestParserConfigLoading:
    """Tests for dict and YAML loading."""

    def test_round_trip_dict(self):
        """Test to_dict output loads back to an equal config."""
        config = ParserConfig(max_workers=3, threshold=0.01)

        assert ParserConfig.from_dict(config.to_dict()) == config

    def test_from_dict_ignores_unknown_keys(self, caplog):
        """Test unknown keys are ignored with a warning."""
        with caplog.at_level(logging.WARNING):
            config = ParserConfig.from_dict({"max_workers": 5, "color": "blue"})

        assert config.max_workers == 5
        assert "color" in caplog.text

    def test_from_yaml_parser_section(self, tmp_path):
        """Test loading settings nested under parser:."""
        path = tmp_path / "jfrnorm.yaml"
        path.write_text(yaml.safe_dump({
            "parser": {
                "profile_matchers": ["ExecutionSample"],
                "custom_event_matchers": ["Audit"],
                "queue_capacity": 4,
            }
        }))

        config = ParserConfig.from_yaml(path)

        assert config.profile_matchers == ("ExecutionSample",)
        assert config.custom_event_matchers == ("Audit",)
        assert config.queue_capacity == 4

    def test_from_yaml_top_level(self, tmp_path):
        """Test loading settings at the document top level."""
        path = tmp_path / "jfrnorm.yaml"
        path.write_text("threshold: 0.02\nsample_window_ns: null\n")

        config = ParserConfig.from_yaml(path)

        assert config.threshold == 0.02
        assert config.sample_window_ns is None

    def test_from_yaml_missing_file(self, tmp_path):
        """Test a missing file is an invalid argument."""
        with pytest.raises(InvalidArgumentError):
            ParserConfig.from_yaml(tmp_path / "absent.yaml")

    def test_from_yaml_not_a_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / "jfrnorm.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(InvalidArgumentError):
            ParserConfig.from_yaml(path)

    def test_from_yaml_empty_parser_section(self, tmp_path):
        """Test an empty parser section yields the defaults."""
        path = tmp_path / "jfrnorm.yaml"
        path.write_text("parser:\n")

        assert ParserConfig.from_yaml(path) == ParserConfig()

    def test_from_yaml_parser_section_not_a_mapping(self, tmp_path):
        """Test a scalar parser section is rejected."""
        path = tmp_path / "jfrnorm.yaml"
        path.write_text("parser: fast\n")

        with pytest.raises(InvalidArgumentError, match="mapping"):
            ParserConfig.from_yaml(path)

    @pytest.mark.parametrize(
        "section",
        [
            {"max_workers": "two"},
            {"queue_capacity": "10"},
            {"threshold": "high"},
            {"profile_matchers": 5},
        ],
    )
    def test_from_dict_wrong_types(self, section):
        """Test values of the wrong type are invalid arguments."""
        with pytest.raises(InvalidArgumentError):
            ParserConfig.from_dict(section)
