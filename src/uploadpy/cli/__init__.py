"""CLI module for bulk user uploads."""

from .commands import OperationHandler
from .main import cli, main

__all__ = ["OperationHandler", "cli", "main"]
