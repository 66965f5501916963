"""
Configuration for the watch-and-rerun loop.

watchrun reads no configuration file and no environment variables; every
setting comes from the command line and is validated here before the
watcher starts.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from watchrun.models.exceptions import raise_config_error


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class WatchConfig(BaseModel):
    """
    Timing policy, shell and logging settings for a watch session.

    The defaults reproduce the classic behaviour: a 100 ms quiet window
    before a burst counts as settled and at least 500 ms between the end of
    one execution and the start of the next.
    """

    model_config = ConfigDict(validate_assignment=True, use_enum_values=False)

    # === Scheduling Policy ===
    debounce_seconds: float = Field(
        default=0.1, gt=0.0, le=60.0, description="Quiet time after the last change before the command runs"
    )
    min_interval_seconds: float = Field(
        default=0.5, ge=0.0, le=3600.0, description="Minimum time between the last execution and the next"
    )
    resubscribe_delay_seconds: float | None = Field(
        default=None, gt=0.0, le=60.0, description="Delay before re-watching a removed file (debounce if None)"
    )

    # === Execution ===
    shell: str = Field(default="sh", min_length=1, description="Shell used to run the command with '-c'")

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Logging level")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format")

    @field_validator('shell')
    @classmethod
    def validate_shell(cls, v):
        """Reject a blank shell name."""
        if not v.strip():
            raise ValueError("shell must not be blank")
        return v.strip()

    @model_validator(mode='after')
    def validate_resubscribe_delay(self):
        """Keep re-subscription from outliving a burst by an unreasonable margin."""
        delay = self.effective_resubscribe_delay
        if delay > max(self.debounce_seconds, self.min_interval_seconds) * 100:
            raise_config_error(
                "resubscribe_delay_seconds is too large for the configured debounce window",
                config_key="resubscribe_delay_seconds",
                expected_type="float <= 100 * max(debounce_seconds, min_interval_seconds)",
                actual_value=delay,
            )
        return self

    @property
    def effective_resubscribe_delay(self) -> float:
        """Delay before a removed file is re-added to the watch."""
        if self.resubscribe_delay_seconds is None:
            return self.debounce_seconds
        return self.resubscribe_delay_seconds

    @classmethod
    def from_cli(
        cls,
        debounce_ms: int = 100,
        min_interval_ms: int = 500,
        shell: str = "sh",
        verbosity: int = 0,
    ) -> "WatchConfig":
        """
        Build a configuration from command-line option values.

        Args:
            debounce_ms: Debounce window in milliseconds
            min_interval_ms: Minimum spacing between executions in milliseconds
            shell: Shell executable used to run the command
            verbosity: Number of ``-v`` flags (0 = warnings, 1 = info, 2+ = debug)

        Returns:
            Validated WatchConfig
        """
        if verbosity >= 2:
            level = LogLevel.DEBUG
        elif verbosity == 1:
            level = LogLevel.INFO
        else:
            level = LogLevel.WARNING

        return cls(
            debounce_seconds=debounce_ms / 1000.0,
            min_interval_seconds=min_interval_ms / 1000.0,
            shell=shell,
            log_level=level,
        )

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary for ``logging.config.dictConfig``."""
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": self.log_level.value,
                    "formatter": "standard",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {"watchrun": {"handlers": ["default"], "level": self.log_level.value, "propagate": False}},
        }
