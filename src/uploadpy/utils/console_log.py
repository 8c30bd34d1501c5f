"""Message helpers that route console output through the package logger."""

from typing import Any

from .logging_utils import get_logger

_logger = get_logger(__name__)


def print_info(message: str, **context: Any) -> None:
    _logger.info(message, extra=context)


def print_success(message: str, **context: Any) -> None:
    _logger.info(f"✅ {message}", extra={**context, "status": "success"})


def print_warning(message: str, **context: Any) -> None:
    _logger.warning(f"⚠️  {message}", extra=context)


def print_error(message: str, **context: Any) -> None:
    _logger.error(f"❌ {message}", extra=context)


def log_row_operation(
    operation: str,
    line: int,
    username: str,
    status: str = "started",
    details: str | None = None,
    **context: Any,
) -> None:
    """Log a lifecycle step of one upload row with structured context.

    Args:
        operation: Step being performed (prepare, commit, directives)
        line: Line number of the row in the upload file
        username: Username the row refers to
        status: Step status (started, completed, rejected, failed)
        details: Additional details about the step
        **context: Additional context fields, such as ``action``
    """
    row_context = {
        "operation": operation,
        "line": line,
        "username": username,
        "status": status,
        **context,
    }
    subject = f"{operation} of line {line} ({username or '?'})"
    suffix = f": {details}" if details else ""

    if status == "started":
        _logger.debug(f"Starting {subject}", extra=row_context)
    elif status == "completed":
        _logger.info(f"Completed {subject}{suffix}", extra=row_context)
    elif status == "rejected":
        _logger.warning(f"Rejected {subject}{suffix}", extra=row_context)
    elif status == "failed":
        _logger.error(f"Failed {subject}{suffix}", extra=row_context)
    else:
        _logger.info(f"{subject}: {status}{suffix}", extra=row_context)
