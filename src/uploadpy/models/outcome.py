"""Row outcome models: actions, error codes, advisory statuses."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .user import UserRecord


class Action(Enum):
    """What the engine decided to do with a row."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ErrorCode(Enum):
    """Fatal per-row error codes. Any of these makes a row uncommittable."""

    INVALID_USERNAME = "invalidusername"
    HOST_ID_NOT_NUMERIC = "mnethostidnotanumber"
    ID_NOT_NUMERIC = "useridnotanumber"
    DELETE_MISSING_TARGET = "usernotdeletedmissing"
    DELETE_DISALLOWED = "usernotdeletedoff"
    DELETE_PROTECTED_ACCOUNT = "usernotdeletedadmin"
    MISSING_FIELD = "missingfield"
    GUEST_PROTECTED = "guestnoeditprofileother"
    USER_EXISTS_UPDATE_NOT_ALLOWED = "userexistsupdatenotallowed"
    CREATE_DISALLOWED_IN_UPDATE_ONLY_MODE = "usernotexistscreatenotallowed"
    RENAME_TARGET_EXISTS = "usernotrenamedexists"
    RENAME_REQUIRES_UPDATE_MODE = "usernotupdatederror"
    RENAME_SOURCE_MISSING = "usernotrenamedmissing"
    RENAME_DISALLOWED = "usernotrenamedoff"
    ID_CONFLICT = "idnumberalreadyexists"
    CANNOT_MODIFY_ADMIN = "usernotupdatedadmin"
    USER_NOT_ADDED_REGISTERED = "usernotaddedregistered"
    USER_NOT_ADDED_ERROR = "usernotaddederror"
    UPDATE_MODE_NOTHING = "updatemodedoessettonothing"
    EMAIL_DUPLICATE = "useremailduplicate"
    AUTH_PLUGIN_UNAVAILABLE = "authpluginnotfound"
    USER_NOT_DELETED_ERROR = "usernotdeletederror"
    USER_NOT_UPDATED_ERROR = "usernotupdatederrorstore"


class StatusCode(Enum):
    """Advisory status codes attached to rows. These never block a commit."""

    USER_RENAMED = "userrenamed"
    EMAIL_DUPLICATE = "useremailduplicate"
    INVALID_EMAIL = "invalidemail"
    UNKNOWN_LOCALE = "cannotfindlang"
    UNSUPPORTED_AUTH = "userauthunsupported"
    WEAK_PASSWORD = "weakpassword"
    FORCE_PASSWORD_CHANGE = "forcepasswordchange"
    USER_SUSPENDED = "usersuspended"
    USER_ACTIVATED = "useractivated"
    USER_ADDED = "useradded"
    ACCOUNT_UPDATED = "useraccountupdated"
    USER_DELETED = "userdeleted"
    COHORT_CREATED = "cohortcreated"
    COHORT_NOT_CREATED = "cohortnotcreatederror"
    ADDED_TO_COHORT = "addedtocohort"
    COHORT_NOT_ADDED = "cohortnotadded"
    ROLE_ASSIGNED = "roleassigned"
    ROLE_UNASSIGNED = "roleunassigned"
    ROLE_NOT_ASSIGNED = "rolenotassigned"
    ENROLLED = "enrolled"
    USER_NOT_ENROLLED = "usernotenrollederror"
    UNKNOWN_ENROL_STATUS = "unknownenrolstatus"
    INVALID_ENROL_PERIOD = "typeerror"
    ADDED_TO_GROUP = "addedtogroup"
    GROUP_NOT_ADDED = "groupnotadded"
    FOLLOW_UP_FAILED = "followupfailed"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_USERNAME: "Invalid username",
    ErrorCode.HOST_ID_NOT_NUMERIC: "MNet host id not a number",
    ErrorCode.ID_NOT_NUMERIC: "User ID not a number",
    ErrorCode.DELETE_MISSING_TARGET: "User not deleted - does not exist",
    ErrorCode.DELETE_DISALLOWED: "User not deleted - deleting not allowed",
    ErrorCode.DELETE_PROTECTED_ACCOUNT: "User not deleted - protected account",
    ErrorCode.MISSING_FIELD: "Missing field: {field}",
    ErrorCode.GUEST_PROTECTED: "The guest user cannot be edited",
    ErrorCode.USER_EXISTS_UPDATE_NOT_ALLOWED: "User exists and updating is not allowed",
    ErrorCode.CREATE_DISALLOWED_IN_UPDATE_ONLY_MODE: (
        "User does not exist and creating is not allowed"
    ),
    ErrorCode.RENAME_TARGET_EXISTS: "User not renamed - username already used",
    ErrorCode.RENAME_REQUIRES_UPDATE_MODE: "User not renamed - updating is not allowed",
    ErrorCode.RENAME_SOURCE_MISSING: "User not renamed - old username does not exist",
    ErrorCode.RENAME_DISALLOWED: "User not renamed - renaming not allowed",
    ErrorCode.ID_CONFLICT: "User ID already belongs to another user",
    ErrorCode.CANNOT_MODIFY_ADMIN: "User not updated - administrator account",
    ErrorCode.USER_NOT_ADDED_REGISTERED: "User not added - already registered",
    ErrorCode.USER_NOT_ADDED_ERROR: "User not added - error",
    ErrorCode.UPDATE_MODE_NOTHING: "User not updated - update mode set to nothing",
    ErrorCode.EMAIL_DUPLICATE: "Email address already used by another user",
    ErrorCode.AUTH_PLUGIN_UNAVAILABLE: "Authentication plugin not available: {auth}",
    ErrorCode.USER_NOT_DELETED_ERROR: "User not deleted - error",
    ErrorCode.USER_NOT_UPDATED_ERROR: "User not updated - error",
}

STATUS_MESSAGES: dict[StatusCode, str] = {
    StatusCode.USER_RENAMED: "User renamed from {from_} to {to}",
    StatusCode.EMAIL_DUPLICATE: "Email address already used by another user",
    StatusCode.INVALID_EMAIL: "Invalid email address",
    StatusCode.UNKNOWN_LOCALE: "Unknown language: {lang}",
    StatusCode.UNSUPPORTED_AUTH: "Authentication method not enabled: {auth}",
    StatusCode.WEAK_PASSWORD: "Password does not meet the password policy",
    StatusCode.FORCE_PASSWORD_CHANGE: "Force password change",
    StatusCode.USER_SUSPENDED: "User suspended",
    StatusCode.USER_ACTIVATED: "User activated",
    StatusCode.USER_ADDED: "New user",
    StatusCode.ACCOUNT_UPDATED: "User updated",
    StatusCode.USER_DELETED: "User deleted",
    StatusCode.COHORT_CREATED: "Cohort created: {cohort}",
    StatusCode.COHORT_NOT_CREATED: "Cohort not created - error: {cohort}",
    StatusCode.ADDED_TO_COHORT: "Added to cohort: {cohort}",
    StatusCode.COHORT_NOT_ADDED: "Not added to cohort: {cohort}",
    StatusCode.ROLE_ASSIGNED: "System role assigned: {role}",
    StatusCode.ROLE_UNASSIGNED: "System role unassigned: {role}",
    StatusCode.ROLE_NOT_ASSIGNED: "System role not changed: {role}",
    StatusCode.ENROLLED: "Enrolled in course: {course}",
    StatusCode.USER_NOT_ENROLLED: "User not enrolled - error: {course}",
    StatusCode.UNKNOWN_ENROL_STATUS: "Unknown enrol status: {status}",
    StatusCode.INVALID_ENROL_PERIOD: "Enrol period is not a number: {period}",
    StatusCode.ADDED_TO_GROUP: "Added to group: {group}",
    StatusCode.GROUP_NOT_ADDED: "Not added to group: {group}",
    StatusCode.FOLLOW_UP_FAILED: "Not applied after saving the user: {operation}",
}


def error_message(code: ErrorCode, **params: Any) -> str:
    """Render the message for an error code."""
    return ERROR_MESSAGES[code].format(**params)


@dataclass(frozen=True)
class Status:
    """A non-fatal advisory attached to a row."""

    code: StatusCode
    message: str

    @classmethod
    def of(cls, code: StatusCode, **params: Any) -> "Status":
        """Build a status with its rendered message."""
        return cls(code=code, message=STATUS_MESSAGES[code].format(**params))

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Committed:
    """A row whose action was applied to the directory."""

    action: Action
    final_record: UserRecord
    assigned_id: int | None
    statuses: tuple[Status, ...] = ()

    @property
    def committed(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """A row that was not applied, with every error that stopped it."""

    errors: Mapping[ErrorCode, str]
    statuses: tuple[Status, ...] = ()
    final_record: UserRecord | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", MappingProxyType(dict(self.errors)))

    @property
    def committed(self) -> bool:
        return False


RowOutcome = Committed | Rejected
