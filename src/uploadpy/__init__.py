"""uploadpy - bulk user upload tool - Main Package."""

__version__ = "1.0.0"

# Core functionality
from .core.exceptions import (
    AuthPluginUnavailableError,
    ConfigError,
    ContractViolationError,
    FileOperationError,
    StoreError,
    UploadPyError,
    ValidationError,
)
from .core.auth_plugins import AuthRegistry
from .core.config import get_env_config, load_site_config
from .core.directory import JsonUserDirectory, UserDirectory

# Models
from .models.config import SiteConfig
from .models.outcome import Action, Committed, ErrorCode, Rejected, StatusCode
from .models.policy import (
    ForcePasswordChange,
    ImportMode,
    PasswordMode,
    Policy,
    UpdateMode,
)
from .models.row import RowState, UserRow
from .models.user import UserRecord

# Operations
from .operations.batch_processor import UploadProcessor, UploadResults
from .operations.commit_ops import RowCommitter
from .operations.preview_ops import PreviewResult, preview_upload
from .operations.reconcile_ops import RowReconciler
from .operations.tracker import NullTracker, PlainTracker

# Utilities
from .utils.csv_utils import read_user_rows
from .utils.logging_utils import get_logger, setup_logging

__all__ = [
    "__version__",
    # Exceptions
    "UploadPyError",
    "ConfigError",
    "ValidationError",
    "FileOperationError",
    "StoreError",
    "AuthPluginUnavailableError",
    "ContractViolationError",
    # Core
    "AuthRegistry",
    "get_env_config",
    "load_site_config",
    "UserDirectory",
    "JsonUserDirectory",
    # Models
    "SiteConfig",
    "Policy",
    "ImportMode",
    "UpdateMode",
    "PasswordMode",
    "ForcePasswordChange",
    "UserRecord",
    "UserRow",
    "RowState",
    "Action",
    "ErrorCode",
    "StatusCode",
    "Committed",
    "Rejected",
    # Operations
    "RowReconciler",
    "RowCommitter",
    "UploadProcessor",
    "UploadResults",
    "PlainTracker",
    "NullTracker",
    "PreviewResult",
    "preview_upload",
    # Utilities
    "read_user_rows",
    "get_logger",
    "setup_logging",
]
