"""
Exception hierarchy and error handling helpers.

This module defines the exceptions raised across the watchdog, grouped by the
phase of a measurement in which they occur, plus the small logging helpers
used to report errors consistently.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.results import MeasurementResult

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation of a configuration value or argument fails.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class WatchdogError(Exception):
    """Base class for runtime errors raised by the watchdog."""


class StartupError(WatchdogError):
    """
    The measurement could not be started.

    Raised before the workload runs; when this surfaces, no workload code
    has been executed.
    """


class TargetNotFoundError(StartupError):
    """The target process does not exist or its memory cannot be read."""

    def __init__(self, pid: int, reason: str = "no such process"):
        super().__init__(f"Cannot resolve target process {pid}: {reason}")
        self.pid = pid
        self.reason = reason


class HandshakeTimeoutError(StartupError):
    """The sampler did not publish its pid and baseline within the handshake timeout."""

    def __init__(self, timeout: float, artifact_path: Any = None):
        super().__init__(
            f"Sampler did not publish its pid within {timeout:.2f}s"
            + (f" (artifact: {artifact_path})" if artifact_path else "")
        )
        self.timeout = timeout
        self.artifact_path = artifact_path


class SamplerExitedError(StartupError):
    """The sampler process exited before the handshake completed."""

    def __init__(self, returncode: Optional[int]):
        super().__init__(f"Sampler process exited during startup with code {returncode}")
        self.returncode = returncode


class TargetVanishedError(WatchdogError):
    """A probe read failed because the target process has exited."""

    def __init__(self, pid: int):
        super().__init__(f"Target process {pid} is gone")
        self.pid = pid


class WorkloadError(WatchdogError):
    """
    The workload raised an exception.

    The original exception is chained as ``__cause__``; ``result`` holds the
    measurement gathered up to the failure, including the sampler report.
    """

    def __init__(self, original: BaseException, result: "MeasurementResult"):
        super().__init__(f"Workload failed: {type(original).__name__}: {original}")
        self.original = original
        self.result = result

    @property
    def report(self):
        return self.result.report


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle file-related errors."""
    handle_error(error, f"file {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI-level error and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)
    sys.exit(exit_code)
