"""
Custom exception classes for watchrun.

Provides specific exception types for the startup, watching and execution
stages so callers can decide which failures are fatal and which are merely
reported.
"""

from typing import Any


class BaseError(Exception):
    """
    Base exception class for all watchrun errors.

    All custom exceptions in the package inherit from this base class
    to enable consistent error handling and logging.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Human-readable error description
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context information
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation including error code if present."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"context={self.context})"
        )


class ConfigurationError(BaseError):
    """Raised when there are configuration or settings issues."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        expected_type: str | None = None,
        actual_value: Any | None = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if expected_type:
            context["expected_type"] = expected_type
        if actual_value is not None:
            context["actual_value"] = str(actual_value)

        super().__init__(message, error_code="CONFIG_ERROR", context=context)


class ArgumentError(BaseError):
    """Raised when the command line cannot be turned into a watch set and a command."""

    exit_code = 1

    def __init__(self, message: str, argument: str | None = None, show_usage: bool = True):
        context = {}
        if argument:
            context["argument"] = argument

        super().__init__(message, error_code="ARGUMENT_ERROR", context=context)
        self.show_usage = show_usage


class MonitoringError(BaseError):
    """Raised when file monitoring operations fail."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(
            message,
            error_code="MONITORING_ERROR",
            context=context,
            cause=underlying_error,
        )


class CommandExecutionError(BaseError):
    """Raised when the command runner is asked to do something it cannot."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if command is not None:
            context["command"] = command

        super().__init__(message, error_code="EXECUTION_ERROR", context=context, cause=underlying_error)


class InitializationError(BaseError):
    """Raised when system initialization fails."""

    def __init__(
        self,
        message: str,
        component: str | None = None,
        initialization_stage: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if component:
            context["component"] = component
        if initialization_stage:
            context["initialization_stage"] = initialization_stage

        super().__init__(
            message,
            error_code="INITIALIZATION_ERROR",
            context=context,
            cause=underlying_error,
        )


# Convenience functions for common error scenarios
def raise_config_error(
    message: str,
    config_key: str,
    expected_type: str | None = None,
    actual_value: Any | None = None,
) -> None:
    """Raise a configuration error with context."""
    raise ConfigurationError(
        message=message,
        config_key=config_key,
        expected_type=expected_type,
        actual_value=actual_value,
    )


def raise_argument_error(message: str, argument: str | None = None) -> None:
    """Raise an argument error with context."""
    raise ArgumentError(message=message, argument=argument)
