"""Unit tests for watch configuration."""

import logging.config

import pytest
from pydantic import ValidationError
from watchrun.config import LogLevel, WatchConfig
from watchrun.models import ConfigurationError


class TestWatchConfig:
    """Test cases for WatchConfig."""

    def test_defaults(self):
        config = WatchConfig()

        assert config.debounce_seconds == 0.1
        assert config.min_interval_seconds == 0.5
        assert config.resubscribe_delay_seconds is None
        assert config.effective_resubscribe_delay == 0.1
        assert config.shell == "sh"
        assert config.log_level is LogLevel.WARNING

    def test_explicit_resubscribe_delay(self):
        assert WatchConfig(resubscribe_delay_seconds=0.25).effective_resubscribe_delay == 0.25

    @pytest.mark.parametrize(
        "field,value",
        [
            ("debounce_seconds", 0),
            ("debounce_seconds", -1),
            ("min_interval_seconds", -0.1),
            ("shell", ""),
            ("shell", "   "),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            WatchConfig(**{field: value})

    def test_resubscribe_delay_too_large(self):
        with pytest.raises(ConfigurationError) as exc_info:
            WatchConfig(debounce_seconds=0.01, min_interval_seconds=0.0, resubscribe_delay_seconds=30.0)

        assert exc_info.value.context["config_key"] == "resubscribe_delay_seconds"

    def test_validate_assignment(self):
        config = WatchConfig()
        with pytest.raises(ValidationError):
            config.debounce_seconds = 0

    @pytest.mark.parametrize(
        "verbosity,level",
        [(0, LogLevel.WARNING), (1, LogLevel.INFO), (2, LogLevel.DEBUG), (5, LogLevel.DEBUG)],
    )
    def test_from_cli(self, verbosity, level):
        config = WatchConfig.from_cli(debounce_ms=250, min_interval_ms=1000, shell="bash", verbosity=verbosity)

        assert config.debounce_seconds == 0.25
        assert config.min_interval_seconds == 1.0
        assert config.shell == "bash"
        assert config.log_level is level

    def test_get_log_config(self):
        log_config = WatchConfig.from_cli(verbosity=2).get_log_config()

        assert log_config["handlers"]["default"]["level"] == "DEBUG"
        assert log_config["handlers"]["default"]["stream"] == "ext://sys.stderr"
        assert log_config["loggers"]["watchrun"]["propagate"] is False
        logging.config.dictConfig(log_config)
        assert logging.getLogger("watchrun").level == logging.DEBUG
