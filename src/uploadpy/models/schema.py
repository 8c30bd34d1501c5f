"""Field schema for user upload files.

Describes which columns are recognised, which are mandatory when a user is
created, which act as per-row options, and how numbered directive columns
(``cohort1``, ``sysrole2``, ``course1``/``role1``...) are turned into typed
assignment directives.
"""

import re
from dataclasses import dataclass

from ..core.exceptions import ValidationError

# Columns copied into the user record. Anything else is either a custom
# profile field, a directive column, or rejected by normalise_columns().
VALID_FIELDS: tuple[str, ...] = (
    "id",
    "username",
    "email",
    "city",
    "country",
    "lang",
    "timezone",
    "mailformat",
    "firstname",
    "maildisplay",
    "maildigest",
    "htmleditor",
    "autosubscribe",
    "institution",
    "department",
    "idnumber",
    "skype",
    "lastname",
    "msn",
    "aim",
    "yahoo",
    "icq",
    "phone1",
    "phone2",
    "address",
    "url",
    "description",
    "descriptionformat",
    "password",
    "auth",
    "oldusername",  # original username when renaming
    "suspended",  # 1 suspends, 0 activates, empty keeps as is
    "deleted",  # 1 deletes the user
    "mnethostid",
)

MANDATORY_FIELDS: tuple[str, ...] = ("username", "firstname", "lastname", "email")

OPTION_FIELDS: dict[str, bool | None] = {
    "deleted": False,
    "suspended": False,
    "oldusername": None,
}

# Columns that identify or direct a row rather than describe the user
IDENTITY_FIELDS: frozenset[str] = frozenset(
    {"id", "username", "mnethostid", "oldusername", "deleted"}
)

PROFILE_FIELD_PREFIX = "profile_field_"

DIRECTIVE_COLUMN_PATTERN = re.compile(
    r"^(cohort|sysrole|course|role|group|enrolperiod|enrolstatus)(\d+)$"
)


@dataclass(frozen=True)
class CohortDirective:
    """Add the user to a cohort, creating it when missing."""

    index: int
    cohort: str


@dataclass(frozen=True)
class SystemRoleDirective:
    """Assign (or with a leading ``-`` unassign) a system level role."""

    index: int
    role: str
    unassign: bool = False


@dataclass(frozen=True)
class EnrolmentDirective:
    """Enrol the user in a course, optionally with role, group and period.

    ``period`` and ``status`` are kept as raw strings; they are validated
    when the directive is applied so a bad value only costs that one
    enrolment.
    """

    index: int
    course: str
    role: str | None = None
    group: str | None = None
    period: str | None = None
    status: str | None = None


Directive = CohortDirective | SystemRoleDirective | EnrolmentDirective


def is_directive_column(column: str) -> bool:
    """Check whether a column name is a numbered directive column."""
    return bool(DIRECTIVE_COLUMN_PATTERN.match(column))


def is_profile_column(column: str) -> bool:
    """Check whether a column name is a custom profile field column."""
    return column.lower().startswith(PROFILE_FIELD_PREFIX) and len(column) > len(
        PROFILE_FIELD_PREFIX
    )


def normalise_columns(headers: list[str]) -> list[str]:
    """Validate and normalise the header row of an upload file.

    Standard and directive columns are lower-cased; custom profile columns
    keep the case of their short name.

    Args:
        headers: Raw header cells

    Returns:
        list[str]: Normalised column names in file order

    Raises:
        ValidationError: On empty, unknown or duplicate columns, or when the
            username column is missing
    """
    columns: list[str] = []
    for raw in headers:
        header = raw.strip()
        if not header:
            raise ValidationError("Empty column name in header")

        lowered = header.lower()
        if lowered in VALID_FIELDS or is_directive_column(lowered):
            column = lowered
        elif is_profile_column(header):
            column = PROFILE_FIELD_PREFIX + header[len(PROFILE_FIELD_PREFIX) :]
        else:
            raise ValidationError("Invalid column name", field=header)

        if column in columns:
            raise ValidationError("Duplicate column name", field=column)
        columns.append(column)

    if "username" not in columns:
        raise ValidationError("Missing required column", field="username")

    return columns


def parse_directives(raw: dict[str, str]) -> list[Directive]:
    """Parse the numbered directive columns of a row into typed directives.

    Empty cells produce no directive; ``roleN``/``groupN``/``enrolperiodN``/
    ``enrolstatusN`` only matter next to a non-empty ``courseN``.

    Args:
        raw: Raw row keyed by normalised column name

    Returns:
        list: Directives ordered by kind (cohorts, system roles, enrolments)
            and then by slot number
    """
    slots: dict[str, dict[int, str]] = {}
    for column, value in raw.items():
        match = DIRECTIVE_COLUMN_PATTERN.match(column)
        if not match or value is None:
            continue
        value = value.strip()
        if value:
            slots.setdefault(match.group(1), {})[int(match.group(2))] = value

    directives: list[Directive] = []

    for index, cohort in sorted(slots.get("cohort", {}).items()):
        directives.append(CohortDirective(index=index, cohort=cohort))

    for index, role in sorted(slots.get("sysrole", {}).items()):
        if role.startswith("-"):
            directives.append(
                SystemRoleDirective(index=index, role=role[1:].strip(), unassign=True)
            )
        else:
            directives.append(SystemRoleDirective(index=index, role=role))

    for index, course in sorted(slots.get("course", {}).items()):
        directives.append(
            EnrolmentDirective(
                index=index,
                course=course,
                role=slots.get("role", {}).get(index),
                group=slots.get("group", {}).get(index),
                period=slots.get("enrolperiod", {}).get(index),
                status=slots.get("enrolstatus", {}).get(index),
            )
        )

    return directives


def extract_profile_fields(raw: dict[str, str]) -> dict[str, str]:
    """Collect custom profile field values keyed by short name, trimmed."""
    fields: dict[str, str] = {}
    for column, value in raw.items():
        if is_profile_column(column) and value is not None:
            fields[column[len(PROFILE_FIELD_PREFIX) :]] = value.strip()
    return fields
