"""In-memory user directory and its JSON file backed variant."""

import json
import shutil
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from ..models.user import UserRecord
from ..utils.logging_utils import get_logger
from .exceptions import FileOperationError, StoreError

logger = get_logger(__name__)

DEFAULT_SYSTEM_ROLES = ("manager", "coursecreator")
DEFAULT_COURSE_ROLES = ("student", "teacher", "editingteacher")


def _copy(record: UserRecord) -> UserRecord:
    return replace(record, profile_fields=dict(record.profile_fields))


class UserDirectory:
    """User directory kept in memory.

    Implements the lookup, store and directive protocols. Lookups always see
    earlier writes, and every record handed out is a copy, so callers can
    never change stored state without going through the store methods.
    """

    def __init__(
        self,
        records: list[UserRecord] | None = None,
        system_roles: tuple[str, ...] = DEFAULT_SYSTEM_ROLES,
        course_roles: tuple[str, ...] = DEFAULT_COURSE_ROLES,
    ):
        self._users: dict[int, UserRecord] = {}
        self._next_id = 1
        self.preferences: dict[int, dict[str, str]] = {}
        self.invalidated_sessions: list[int] = []
        self.cohorts: dict[str, set[int]] = {}
        self.system_roles: dict[str, set[int]] = {role: set() for role in system_roles}
        self.course_roles = tuple(course_roles)
        self.courses: dict[str, dict[str, Any]] = {}

        for record in records or []:
            self._insert(record)

    @classmethod
    def with_site_accounts(
        cls,
        host_id: int = 1,
        admin_username: str = "admin",
        guest_username: str = "guest",
    ) -> "UserDirectory":
        """Create a directory holding only the built-in guest and admin users."""
        return cls(
            [
                UserRecord(
                    username=guest_username,
                    host_id=host_id,
                    id=1,
                    firstname="Guest user",
                    is_guest=True,
                    confirmed=True,
                ),
                UserRecord(
                    username=admin_username,
                    host_id=host_id,
                    id=2,
                    firstname="Admin",
                    lastname="User",
                    is_admin=True,
                    confirmed=True,
                ),
            ]
        )

    def _insert(self, record: UserRecord) -> int:
        user_id = record.id if record.id is not None else self._next_id
        self._users[user_id] = replace(
            record, id=user_id, profile_fields=dict(record.profile_fields)
        )
        self._next_id = max(self._next_id, user_id + 1)
        return user_id

    def __len__(self) -> int:
        return len(self._users)

    # Lookup

    def lookup(self, username: str, host_id: int) -> UserRecord | None:
        for record in self._users.values():
            if record.username == username and record.host_id == host_id:
                return _copy(record)
        return None

    def get_by_id(self, user_id: int) -> UserRecord | None:
        record = self._users.get(user_id)
        return _copy(record) if record is not None else None

    def email_owned_by_other(self, email: str, exclude_id: int | None = None) -> bool:
        wanted = email.strip().lower()
        if not wanted:
            return False
        return any(
            record.email.strip().lower() == wanted
            for user_id, record in self._users.items()
            if user_id != exclude_id
        )

    # Store

    def _require(self, user_id: int | None, operation: str) -> UserRecord:
        if user_id is None or user_id not in self._users:
            raise StoreError(
                "User not found", operation=operation, details=str(user_id)
            )
        return self._users[user_id]

    def create(self, record: UserRecord) -> int:
        """Store a new user.

        Args:
            record: Record to store; an id is assigned when it has none

        Returns:
            int: Assigned id

        Raises:
            StoreError: If the username or id is already taken
        """
        if self.lookup(record.username, record.host_id) is not None:
            raise StoreError(
                "Username already exists", operation="create", username=record.username
            )
        if record.id is not None and record.id in self._users:
            raise StoreError(
                "User id already exists",
                operation="create",
                username=record.username,
                details=str(record.id),
            )

        user_id = self._insert(record)
        logger.debug(
            f"Created user {record.username} with id {user_id}",
            extra={"username": record.username, "operation": "create"},
        )
        return user_id

    def update(self, record: UserRecord) -> None:
        """Replace a stored user.

        Raises:
            StoreError: If the user does not exist or the new username is taken
        """
        stored = self._require(record.id, "update")
        other = self.lookup(record.username, record.host_id)
        if other is not None and other.id != record.id:
            raise StoreError(
                "Username already exists", operation="update", username=record.username
            )
        self._users[stored.id] = _copy(record)

    def delete(self, record: UserRecord) -> None:
        """Delete a stored user and every membership it holds.

        Raises:
            StoreError: If the user does not exist or is a built-in account
        """
        stored = self._require(record.id, "delete")
        if stored.is_admin or stored.is_guest:
            raise StoreError(
                "Built-in accounts cannot be deleted",
                operation="delete",
                username=stored.username,
            )
        user_id = stored.id
        del self._users[user_id]
        self.preferences.pop(user_id, None)
        for members in self.cohorts.values():
            members.discard(user_id)
        for holders in self.system_roles.values():
            holders.discard(user_id)
        for course in self.courses.values():
            course["enrolments"].pop(user_id, None)
            for members in course["groups"].values():
                members.discard(user_id)

    def invalidate_sessions(self, user_id: int) -> None:
        self._require(user_id, "invalidate_sessions")
        self.invalidated_sessions.append(user_id)

    def set_preference(self, user_id: int, name: str, value: str) -> None:
        self._require(user_id, "set_preference")
        self.preferences.setdefault(user_id, {})[name] = value

    def get_preference(self, user_id: int, name: str) -> str | None:
        return self.preferences.get(user_id, {}).get(name)

    def save_profile_data(self, user_id: int, profile_fields: dict[str, str]) -> None:
        stored = self._require(user_id, "save_profile_data")
        stored.profile_fields.update(profile_fields)

    # Directives

    def cohort_exists(self, cohort: str) -> bool:
        return cohort in self.cohorts

    def create_cohort(self, cohort: str) -> None:
        if not cohort.strip():
            raise StoreError("Cohort name is empty", operation="create_cohort")
        self.cohorts.setdefault(cohort, set())

    def add_to_cohort(self, cohort: str, user_id: int) -> None:
        self._require(user_id, "add_to_cohort")
        if cohort not in self.cohorts:
            raise StoreError(
                "Cohort not found", operation="add_to_cohort", details=cohort
            )
        self.cohorts[cohort].add(user_id)

    def assign_system_role(self, role: str, user_id: int) -> None:
        self._require(user_id, "assign_system_role")
        if role not in self.system_roles:
            raise StoreError(
                "Role not found", operation="assign_system_role", details=role
            )
        self.system_roles[role].add(user_id)

    def unassign_system_role(self, role: str, user_id: int) -> None:
        self._require(user_id, "unassign_system_role")
        if role not in self.system_roles:
            raise StoreError(
                "Role not found", operation="unassign_system_role", details=role
            )
        self.system_roles[role].discard(user_id)

    def add_course(self, course: str, groups: tuple[str, ...] = ()) -> None:
        """Register a course, with optional group names, users can be enrolled in."""
        entry = self.courses.setdefault(course, {"enrolments": {}, "groups": {}})
        for group in groups:
            entry["groups"].setdefault(group, set())

    def _course(self, course: str, operation: str) -> dict[str, Any]:
        if course not in self.courses:
            raise StoreError("Course not found", operation=operation, details=course)
        return self.courses[course]

    def enrol(
        self,
        course: str,
        user_id: int,
        role: str | None = None,
        period_days: int | None = None,
        suspended: bool = False,
    ) -> None:
        """Enrol a user in a course.

        Raises:
            StoreError: If the user, course or role does not exist
        """
        self._require(user_id, "enrol")
        entry = self._course(course, "enrol")
        role = role or self.course_roles[0]
        if role not in self.course_roles:
            raise StoreError("Role not found", operation="enrol", details=role)

        time_end = None
        if period_days:
            time_end = (datetime.now(UTC) + timedelta(days=period_days)).isoformat()

        entry["enrolments"][user_id] = {
            "role": role,
            "suspended": suspended,
            "time_end": time_end,
        }

    def add_to_group(self, course: str, group: str, user_id: int) -> None:
        entry = self._course(course, "add_to_group")
        if user_id not in entry["enrolments"]:
            raise StoreError(
                "User is not enrolled in the course",
                operation="add_to_group",
                details=course,
            )
        if group not in entry["groups"]:
            raise StoreError("Group not found", operation="add_to_group", details=group)
        entry["groups"][group].add(user_id)

    # Serialisation

    def to_dict(self) -> dict[str, Any]:
        """Convert the directory to a JSON compatible dictionary."""
        return {
            "users": [record.to_dict() for _, record in sorted(self._users.items())],
            "preferences": {
                str(user_id): prefs for user_id, prefs in self.preferences.items()
            },
            "cohorts": {name: sorted(ids) for name, ids in self.cohorts.items()},
            "system_roles": {
                name: sorted(ids) for name, ids in self.system_roles.items()
            },
            "course_roles": list(self.course_roles),
            "courses": {
                name: {
                    "enrolments": {
                        str(user_id): enrolment
                        for user_id, enrolment in entry["enrolments"].items()
                    },
                    "groups": {
                        group: sorted(ids) for group, ids in entry["groups"].items()
                    },
                }
                for name, entry in self.courses.items()
            },
        }

    def load_dict(self, data: dict[str, Any]) -> None:
        """Replace the directory contents with serialised data."""
        self._users = {}
        self._next_id = 1
        for item in data.get("users", []):
            self._insert(UserRecord.from_dict(item))

        self.preferences = {
            int(user_id): dict(prefs)
            for user_id, prefs in data.get("preferences", {}).items()
        }
        self.cohorts = {
            name: set(ids) for name, ids in data.get("cohorts", {}).items()
        }
        if "system_roles" in data:
            self.system_roles = {
                name: set(ids) for name, ids in data["system_roles"].items()
            }
        if "course_roles" in data:
            self.course_roles = tuple(data["course_roles"])
        self.courses = {
            name: {
                "enrolments": {
                    int(user_id): dict(enrolment)
                    for user_id, enrolment in entry.get("enrolments", {}).items()
                },
                "groups": {
                    group: set(ids) for group, ids in entry.get("groups", {}).items()
                },
            }
            for name, entry in data.get("courses", {}).items()
        }


class JsonUserDirectory(UserDirectory):
    """User directory loaded from and saved to a JSON file."""

    def __init__(self, file_path: str | Path, **kwargs: Any):
        super().__init__(**kwargs)
        self.file_path = Path(file_path)

    def load(self) -> None:
        """Load the directory file.

        Raises:
            FileOperationError: If the file cannot be read or parsed
        """
        try:
            with open(self.file_path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise FileOperationError(
                "Directory file not found",
                file_path=str(self.file_path),
                operation="read",
            ) from None
        except (OSError, json.JSONDecodeError) as e:
            raise FileOperationError(
                "Could not read directory file",
                file_path=str(self.file_path),
                operation="read",
                details=str(e),
            ) from e

        if not isinstance(data, dict):
            raise FileOperationError(
                "Directory file must contain a JSON object",
                file_path=str(self.file_path),
                operation="read",
            )

        self.load_dict(data)
        logger.info(
            f"Loaded {len(self)} users from {self.file_path}",
            extra={"file_path": str(self.file_path), "operation": "load"},
        )

    def save(self) -> None:
        """Write the directory file, keeping a backup of the previous one.

        Raises:
            FileOperationError: If the file cannot be written
        """
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            if self.file_path.exists():
                shutil.copy2(self.file_path, self.file_path.with_suffix(".json.backup"))
            with open(self.file_path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise FileOperationError(
                "Could not write directory file",
                file_path=str(self.file_path),
                operation="write",
                details=str(e),
            ) from e

        logger.info(
            f"Saved {len(self)} users to {self.file_path}",
            extra={"file_path": str(self.file_path), "operation": "save"},
        )
