"""Utilities module for bulk user uploads."""

from .console_log import (
    log_row_operation,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from .csv_utils import DELIMITERS, read_user_rows, resolve_delimiter
from .display_utils import (
    confirm_action,
    reset_shutdown_flag,
    setup_shutdown_handler,
    show_progress,
    shutdown_requested,
)
from .file_utils import safe_file_read, validate_encoding, validate_file_path
from .logging_utils import (
    configure_from_env,
    configure_from_yaml,
    get_logger,
    log_operation,
    setup_logging,
)
from .password_utils import check_password_policy, hash_password
from .rich_utils import get_console, install_rich_tracebacks
from .username_utils import increment_username, next_username
from .validators import InputValidator, ValidationResult, is_truthy

__all__ = [
    # Console output
    "print_info",
    "print_success",
    "print_warning",
    "print_error",
    "log_row_operation",
    "get_console",
    "install_rich_tracebacks",
    # Logging
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "configure_from_yaml",
    "log_operation",
    # Files
    "DELIMITERS",
    "read_user_rows",
    "resolve_delimiter",
    "safe_file_read",
    "validate_encoding",
    "validate_file_path",
    # Display
    "confirm_action",
    "setup_shutdown_handler",
    "reset_shutdown_flag",
    "show_progress",
    "shutdown_requested",
    # Validation
    "InputValidator",
    "ValidationResult",
    "is_truthy",
    "check_password_policy",
    "hash_password",
    # Usernames
    "increment_username",
    "next_username",
]
