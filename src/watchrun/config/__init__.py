"""Configuration management and settings."""

from watchrun.config.settings import LogLevel, WatchConfig

__all__ = ["WatchConfig", "LogLevel"]
