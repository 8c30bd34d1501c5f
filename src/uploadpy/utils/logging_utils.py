"""Structured logging utilities for the uploadpy user upload tool."""

import json
import logging
import logging.config
import os
import sys
import time
from datetime import UTC, datetime
from functools import wraps
from pathlib import Path
from typing import Any

import yaml

ROOT_LOGGER_NAME = "uploadpy"

# Extra record attributes carried into structured output
CONTEXT_FIELDS = ("username", "line", "operation", "action", "file_path", "duration")

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, *args: Any, disable_colors: bool = False, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.disable_colors = disable_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, coloring the level name on a terminal."""
        levelname = record.levelname
        if (
            not self.disable_colors
            and hasattr(sys.stderr, "isatty")
            and sys.stderr.isatty()
        ):
            color = self.COLORS.get(levelname, "")
            record.levelname = f"{color}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "lineno": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        return json.dumps(log_entry, default=str)


class DetailedFormatter(logging.Formatter):
    """Detailed formatter with context information."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with the row context appended."""
        base_msg = super().format(record)

        context_parts = []
        if hasattr(record, "operation"):
            context_parts.append(f"op={record.operation}")
        if hasattr(record, "line"):
            context_parts.append(f"line={record.line}")
        if hasattr(record, "username"):
            context_parts.append(f"user={record.username}")
        if hasattr(record, "action"):
            context_parts.append(f"action={record.action}")
        if hasattr(record, "duration"):
            context_parts.append(f"duration={record.duration:.3f}s")

        if context_parts:
            return f"{base_msg} [{', '.join(context_parts)}]"
        return base_msg


class OperationFilter(logging.Filter):
    """Filter to add operation context to log records."""

    def __init__(self, operation: str | None = None):
        super().__init__()
        self.operation = operation

    def filter(self, record: logging.LogRecord) -> bool:
        if self.operation and not hasattr(record, "operation"):
            record.operation = self.operation
        return True


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    structured: bool = False,
    operation: str | None = None,
    log_format: str = "console",
    disable_colors: bool = False,
) -> logging.Logger:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path, always written as JSON lines
        structured: Whether to use structured JSON logging on the console
        operation: Current operation context added to every record
        log_format: Log format (console, json, detailed)
        disable_colors: Whether to disable colored output

    Returns:
        logging.Logger: Configured package logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)

    if structured or log_format == "json":
        console_formatter: logging.Formatter = StructuredFormatter()
    elif log_format == "detailed":
        console_formatter = DetailedFormatter(
            fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT
        )
    else:
        console_formatter = ColoredFormatter(
            fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT, disable_colors=disable_colors
        )

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    if operation:
        operation_filter = OperationFilter(operation)
        for handler in root_logger.handlers:
            handler.addFilter(operation_filter)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the package logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger: Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_from_env() -> logging.Logger:
    """Configure logging from environment variables.

    Environment variables:
        UPLOADPY_LOG_LEVEL: Log level (default: INFO)
        UPLOADPY_LOG_FILE: Log file path (optional)
        UPLOADPY_LOG_STRUCTURED: Use structured logging (default: false)
        UPLOADPY_LOG_OPERATION: Current operation context (optional)
        UPLOADPY_LOG_FORMAT: Log format (console, json, detailed) (default: console)
        UPLOADPY_LOG_DISABLE_COLORS: Disable colored output (default: false)

    Returns:
        logging.Logger: Configured logger instance
    """
    return setup_logging(
        level=os.getenv("UPLOADPY_LOG_LEVEL", "INFO"),
        log_file=os.getenv("UPLOADPY_LOG_FILE"),
        structured=os.getenv("UPLOADPY_LOG_STRUCTURED", "false").lower() == "true",
        operation=os.getenv("UPLOADPY_LOG_OPERATION"),
        log_format=os.getenv("UPLOADPY_LOG_FORMAT", "console"),
        disable_colors=os.getenv("UPLOADPY_LOG_DISABLE_COLORS", "false").lower()
        == "true",
    )


def configure_from_yaml(config_path: str | Path) -> logging.Logger:
    """Configure logging from a YAML dictConfig file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        logging.Logger: Configured package logger

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Logging config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f)
        logging.config.dictConfig(config)
    except (yaml.YAMLError, ValueError, TypeError, AttributeError, ImportError) as e:
        raise ValueError(f"Invalid logging configuration: {e}") from e

    return logging.getLogger(ROOT_LOGGER_NAME)


def default_config_path() -> Path:
    return Path(__file__).parent.parent / "config" / "logging.yaml"


def configure_from_default_yaml() -> logging.Logger:
    """Configure logging from the packaged YAML file, else from the environment."""
    if os.getenv("UPLOADPY_LOG_LEVEL") or os.getenv("UPLOADPY_LOG_FILE"):
        return configure_from_env()

    default_config = default_config_path()
    if default_config.exists():
        try:
            return configure_from_yaml(default_config)
        except ValueError as e:
            logger = configure_from_env()
            logger.warning(f"Ignoring packaged logging config: {e}")
            return logger

    return configure_from_env()


def init_default_logging() -> None:
    """Initialize default logging configuration if not already configured."""
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        configure_from_default_yaml()


def log_operation(operation: str, **context: Any) -> Any:
    """Decorator for logging operation start and end with timing.

    Args:
        operation: Operation name
        **context: Additional context fields
    """

    def decorator(func: Any) -> Any:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = get_logger(func.__module__)
            extra = {"operation": operation, **context}

            logger.debug(f"Starting {operation}", extra=extra)
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Failed {operation}: {e}",
                    extra={**extra, "duration": time.perf_counter() - start_time},
                    exc_info=True,
                )
                raise

            logger.debug(
                f"Completed {operation}",
                extra={**extra, "duration": time.perf_counter() - start_time},
            )
            return result

        return wrapper

    return decorator


init_default_logging()
