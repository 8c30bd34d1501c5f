"""Protocol interfaces for the collaborators of the reconciliation engine."""

from collections.abc import Callable, Sequence
from typing import Protocol

from ..models.outcome import Status
from ..models.user import UserRecord
from .auth_plugins import AuthPlugin

# increment_username(username, host_id) -> unused username
UsernameIncrementer = Callable[[str, int], str]

# hash_password(plaintext) -> opaque hash
PasswordHasher = Callable[[str], str]


class UserLookupProtocol(Protocol):
    """Protocol for reading the current state of the user directory."""

    def lookup(self, username: str, host_id: int) -> UserRecord | None:
        """Find a user by natural key.

        Args:
            username: Normalised username
            host_id: Host id the username belongs to

        Returns:
            Optional[UserRecord]: Stored record or None if not found
        """
        ...

    def get_by_id(self, user_id: int) -> UserRecord | None:
        """Find a user by numeric id.

        Args:
            user_id: Directory id

        Returns:
            Optional[UserRecord]: Stored record or None if not found
        """
        ...

    def email_owned_by_other(self, email: str, exclude_id: int | None = None) -> bool:
        """Check whether another user already uses an email address.

        Args:
            email: Email address to check
            exclude_id: Id of the user being updated, ignored in the check

        Returns:
            bool: True if a different user owns the address
        """
        ...


class AuthRegistryProtocol(Protocol):
    """Protocol for resolving authentication methods."""

    def resolve(self, method: str) -> AuthPlugin:
        """Resolve an authentication method to its plugin.

        Raises:
            AuthPluginUnavailableError: If no plugin exists for the method
        """
        ...

    def is_enabled(self, method: str) -> bool:
        """Whether the method is enabled on the site."""
        ...


class UserStoreProtocol(Protocol):
    """Protocol for mutating the user directory.

    Every method raises StoreError when the backing store refuses the change.
    """

    def create(self, record: UserRecord) -> int:
        """Store a new user and return its assigned id."""
        ...

    def update(self, record: UserRecord) -> None:
        """Replace the stored user that has the same id."""
        ...

    def delete(self, record: UserRecord) -> None:
        """Delete the stored user."""
        ...

    def invalidate_sessions(self, user_id: int) -> None:
        """Log the user out everywhere."""
        ...

    def set_preference(self, user_id: int, name: str, value: str) -> None:
        """Write a user preference."""
        ...

    def save_profile_data(self, user_id: int, profile_fields: dict[str, str]) -> None:
        """Save custom profile field values."""
        ...


class DirectiveStoreProtocol(Protocol):
    """Protocol for the cohort, role and enrolment side-effect systems.

    Every method raises StoreError when the change cannot be made.
    """

    def cohort_exists(self, cohort: str) -> bool: ...

    def create_cohort(self, cohort: str) -> None: ...

    def add_to_cohort(self, cohort: str, user_id: int) -> None: ...

    def assign_system_role(self, role: str, user_id: int) -> None: ...

    def unassign_system_role(self, role: str, user_id: int) -> None: ...

    def enrol(
        self,
        course: str,
        user_id: int,
        role: str | None = None,
        period_days: int | None = None,
        suspended: bool = False,
    ) -> None: ...

    def add_to_group(self, course: str, group: str, user_id: int) -> None: ...


class RunTrackerProtocol(Protocol):
    """Protocol for reporting row results and the run summary."""

    def start(self) -> None:
        """Print the header of the report."""
        ...

    def output(
        self,
        line: int,
        committed: bool,
        statuses: Sequence[Status | str],
        data: dict[str, str],
    ) -> None:
        """Report the result of one row.

        Args:
            line: Line number of the row in the input file
            committed: Whether the row was applied
            statuses: Advisory statuses followed by error messages
            data: Fields echoed for the row
        """
        ...

    def results(
        self, total: int, created: int, updated: int, deleted: int, errors: int
    ) -> None:
        """Report the aggregate counts of the run."""
        ...
