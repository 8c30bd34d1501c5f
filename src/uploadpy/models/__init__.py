"""Data models for bulk user uploads."""

from uploadpy.models.config import AppConfig, PasswordPolicy, SiteConfig
from uploadpy.models.outcome import (
    Action,
    Committed,
    ErrorCode,
    Rejected,
    RowOutcome,
    Status,
    StatusCode,
)
from uploadpy.models.policy import (
    ForcePasswordChange,
    ImportMode,
    PasswordMode,
    Policy,
    UpdateMode,
)
from uploadpy.models.row import Identity, PreparedRow, RowState, UserRow
from uploadpy.models.schema import (
    CohortDirective,
    EnrolmentDirective,
    SystemRoleDirective,
)
from uploadpy.models.user import UserRecord

__all__ = [
    # User models
    "UserRecord",
    # Config models
    "AppConfig",
    "SiteConfig",
    "PasswordPolicy",
    # Policy models
    "Policy",
    "ImportMode",
    "UpdateMode",
    "PasswordMode",
    "ForcePasswordChange",
    # Row models
    "UserRow",
    "RowState",
    "Identity",
    "PreparedRow",
    # Outcomes
    "Action",
    "ErrorCode",
    "StatusCode",
    "Status",
    "Committed",
    "Rejected",
    "RowOutcome",
    # Directives
    "CohortDirective",
    "SystemRoleDirective",
    "EnrolmentDirective",
]
