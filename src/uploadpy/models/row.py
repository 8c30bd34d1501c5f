"""Row lifecycle models.

A row goes through exactly one lifecycle::

    UNPREPARED -> PREPARED | REJECTED
    PREPARED   -> COMMITTED | COMMIT_FAILED

Every transition is checked against ``ALLOWED_TRANSITIONS``; anything else
raises :class:`ContractViolationError`.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..core.exceptions import ContractViolationError
from .outcome import Action, ErrorCode, RowOutcome, Status, StatusCode, error_message
from .schema import Directive
from .user import UserRecord


class RowState(Enum):
    """Lifecycle states of an upload row."""

    UNPREPARED = "unprepared"
    PREPARED = "prepared"
    REJECTED = "rejected"
    COMMITTED = "committed"
    COMMIT_FAILED = "commit_failed"


ALLOWED_TRANSITIONS: dict[RowState, frozenset[RowState]] = {
    RowState.UNPREPARED: frozenset({RowState.PREPARED, RowState.REJECTED}),
    RowState.PREPARED: frozenset({RowState.COMMITTED, RowState.COMMIT_FAILED}),
    RowState.REJECTED: frozenset(),
    RowState.COMMITTED: frozenset(),
    RowState.COMMIT_FAILED: frozenset(),
}


@dataclass(frozen=True)
class Identity:
    """Normalised natural key of a row."""

    username: str
    host_id: int


@dataclass
class RowContext:
    """Mutable scratch state while one row is being prepared.

    Collects errors, advisory statuses and scheduled side effects; frozen
    into a :class:`PreparedRow` once preparation finishes.
    """

    errors: dict[ErrorCode, str] = field(default_factory=dict)
    statuses: list[Status] = field(default_factory=list)
    force_password_change: bool = False
    create_password: bool = False
    invalidate_sessions: bool = False

    def error(self, code: ErrorCode, **params: Any) -> None:
        """Record a fatal error for the row."""
        self.errors[code] = error_message(code, **params)

    def status(self, code: StatusCode, **params: Any) -> None:
        """Record an advisory status for the row."""
        self.statuses.append(Status.of(code, **params))

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass(frozen=True)
class PreparedRow:
    """Result of preparing a row: the decision, not yet applied."""

    identity: Identity | None
    action: Action | None
    final_record: UserRecord | None
    existing: UserRecord | None
    errors: Mapping[ErrorCode, str]
    statuses: tuple[Status, ...]
    force_password_change: bool = False
    create_password: bool = False
    invalidate_sessions: bool = False
    directives: tuple[Directive, ...] = ()

    @classmethod
    def from_context(
        cls,
        context: RowContext,
        identity: Identity | None = None,
        action: Action | None = None,
        final_record: UserRecord | None = None,
        existing: UserRecord | None = None,
        directives: tuple[Directive, ...] = (),
    ) -> "PreparedRow":
        """Freeze a row context into a prepared row.

        A context carrying errors never yields an action.
        """
        if context.has_errors:
            action = None
        return cls(
            identity=identity,
            action=action,
            final_record=final_record,
            existing=existing,
            errors=MappingProxyType(dict(context.errors)),
            statuses=tuple(context.statuses),
            force_password_change=context.force_password_change,
            create_password=context.create_password,
            invalidate_sessions=context.invalidate_sessions,
            directives=directives,
        )

    @property
    def ok(self) -> bool:
        return not self.errors and self.action is not None


@dataclass
class UserRow:
    """One upload row and where it is in its lifecycle."""

    line_number: int
    raw: dict[str, str]
    state: RowState = RowState.UNPREPARED
    prepared: PreparedRow | None = None
    outcome: RowOutcome | None = None

    def advance(self, new_state: RowState, operation: str) -> None:
        """Move the row to ``new_state``.

        Raises:
            ContractViolationError: If the transition is not allowed
        """
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise ContractViolationError(
                f"Row {self.line_number} cannot move to {new_state.value}",
                state=self.state.value,
                operation=operation,
            )
        self.state = new_state

    @property
    def echoed_fields(self) -> dict[str, str]:
        """Fields echoed to the tracker: final record if any, else the raw row."""
        record = None
        if self.outcome is not None:
            record = self.outcome.final_record
        elif self.prepared is not None:
            record = self.prepared.final_record
        if record is not None:
            return record.summary()
        return {
            key: self.raw.get(key, "").strip()
            for key in ("username", "firstname", "lastname", "id")
        }
