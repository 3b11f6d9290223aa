"""
Validation and error handling for the peakwatch package.

This module provides input validation, the watchdog exception hierarchy and
error handling with consistent error reporting across the application.
"""

from .exceptions import (
    ErrorSeverity,
    HandshakeTimeoutError,
    SamplerExitedError,
    StartupError,
    TargetNotFoundError,
    TargetVanishedError,
    ValidationError,
    WatchdogError,
    WorkloadError,
    handle_error,
    handle_config_error,
    handle_file_error,
    handle_cli_error,
)

from .validators import (
    validate_enum_choice,
    validate_pid,
    validate_positive_float,
    validate_positive_integer,
    validate_sampling_interval,
)

__all__ = [
    # Exceptions
    "ErrorSeverity",
    "ValidationError",
    "WatchdogError",
    "StartupError",
    "TargetNotFoundError",
    "HandshakeTimeoutError",
    "SamplerExitedError",
    "TargetVanishedError",
    "WorkloadError",
    # Handlers
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    "handle_cli_error",
    # Validators
    "validate_enum_choice",
    "validate_pid",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_sampling_interval",
]
