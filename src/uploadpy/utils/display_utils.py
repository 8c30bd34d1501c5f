"""Display utilities for user interaction and progress display."""

import signal
import sys
from types import FrameType

# Color constants for terminal output
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
RESET = "\033[0m"

# Global flag for shutdown requests
_shutdown_requested = False


def setup_shutdown_handler() -> None:
    """Setup signal handlers so a run stops between rows."""

    def signal_handler(signum: int, frame: FrameType | None) -> None:
        global _shutdown_requested
        _shutdown_requested = True
        print(
            f"\n{YELLOW}Shutdown requested. Finishing current row...{RESET}",
            file=sys.stderr,
        )

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def shutdown_requested() -> bool:
    """Check if shutdown has been requested."""
    return _shutdown_requested


def reset_shutdown_flag() -> None:
    global _shutdown_requested
    _shutdown_requested = False


def show_progress(current: int, total: int, operation: str = "Processing") -> None:
    """Display a progress bar on stderr.

    Args:
        current: Current item number (1-based)
        total: Total number of items
        operation: Description of the operation being performed
    """
    if total == 0:
        return

    percentage = (current / total) * 100
    bar_length = 30
    filled_length = int(bar_length * current // total)

    bar = "█" * filled_length + "░" * (bar_length - filled_length)

    sys.stderr.write(f"\r{operation}: [{bar}] {percentage:.1f}% ({current}/{total})")
    sys.stderr.flush()

    if current == total:
        sys.stderr.write("\n")


def confirm_action(message: str, default: bool = False) -> bool:
    """Ask user for confirmation.

    Args:
        message: Message to display
        default: Default answer if user just presses Enter

    Returns:
        bool: True if confirmed, False otherwise
    """
    default_str = "Y/n" if default else "y/N"
    response = input(f"{message} ({default_str}): ").strip().lower()

    if not response:
        return default

    return response in ["y", "yes", "true", "1"]
