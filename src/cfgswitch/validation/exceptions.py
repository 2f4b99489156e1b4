"""
Exception taxonomy and error handling.

This module defines every error the switcher can surface to a caller and
a small set of helpers that log errors consistently before (optionally)
re-raising them.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class SwitcherError(Exception):
    """
    Base class for all recoverable switcher errors.

    The string form of every subclass is a human-readable message suitable
    for showing to a user as-is.
    """

    severity = ErrorSeverity.ERROR

    def __init__(self, message: str, severity: Optional[ErrorSeverity] = None):
        super().__init__(message)
        self.message = message
        if severity is not None:
            self.severity = severity


class ConfigIOError(SwitcherError):
    """A read, write or stat on a configuration file failed."""

    def __init__(self, message: str, path: Any = None, severity: Optional[ErrorSeverity] = None):
        super().__init__(message, severity)
        self.path = path


class ParseError(SwitcherError):
    """Content is not valid JSON."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(message)
        self.line = line
        self.column = column


class ValidationError(SwitcherError):
    """
    Exception raised when validation fails.

    Used both for settings/argument validation (``field_name``/``value``)
    and for JSON content validation (``line``/``column``).
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR,
                 line: int = 0, column: int = 0):
        super().__init__(message, severity)
        self.field_name = field_name
        self.value = value
        self.line = line
        self.column = column


class ProfileNotFound(SwitcherError):
    """No profile with the requested id exists."""

    def __init__(self, profile_id: str):
        super().__init__(f"Profile '{profile_id}' not found")
        self.profile_id = profile_id


class ProfileAlreadyExists(SwitcherError):
    """A profile with the requested name already exists."""

    def __init__(self, profile_id: str):
        super().__init__(f"Profile '{profile_id}' already exists")
        self.profile_id = profile_id


class InvalidProfileContent(SwitcherError):
    """A profile's stored content cannot be installed as the live configuration."""

    def __init__(self, profile_id: str, reason: str):
        super().__init__(f"Profile '{profile_id}' does not contain valid JSON: {reason}")
        self.profile_id = profile_id
        self.reason = reason


class SwitchFailed(SwitcherError):
    """Writing the live configuration failed; the live file was left untouched."""

    def __init__(self, profile_id: str, reason: str):
        super().__init__(f"Failed to switch to profile '{profile_id}': {reason}")
        self.profile_id = profile_id
        self.reason = reason


class Busy(SwitcherError):
    """The store is locked by another operation and the caller asked not to wait."""

    severity = ErrorSeverity.WARNING

    def __init__(self, operation: str):
        super().__init__(f"Profile store is busy, cannot {operation} right now; try again")
        self.operation = operation


class ScanErrorBudgetExceeded(SwitcherError):
    """A monitored file failed too many consecutive scans and is no longer retried."""

    severity = ErrorSeverity.WARNING

    def __init__(self, path: Any, error_count: int, last_error: str = ""):
        detail = f": {last_error}" if last_error else ""
        super().__init__(
            f"{path} failed {error_count} consecutive scans{detail}"
        )
        self.path = path
        self.error_count = error_count
        self.last_error = last_error


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
    """Handle settings-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle file-related errors."""
    handle_error(error, f"file {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI error and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    if include_traceback:
        severity = ErrorSeverity.CRITICAL
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
