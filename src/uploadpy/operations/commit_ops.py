"""Commit phase: applying prepared rows to the user directory.

:class:`RowCommitter` applies exactly one prepared row at a time. A store
failure on the user itself turns the row into a rejection; failures of
follow-up writes (preferences, sessions, directives) are only reported.
"""

from dataclasses import replace

from ..core.exceptions import ContractViolationError, StoreError
from ..core.interfaces import DirectiveStoreProtocol, UserStoreProtocol
from ..models.outcome import (
    Action,
    Committed,
    ErrorCode,
    Rejected,
    RowOutcome,
    Status,
    StatusCode,
    error_message,
)
from ..models.row import PreparedRow, RowState, UserRow
from ..models.user import UserRecord
from ..utils.console_log import log_row_operation, print_warning
from .directive_ops import apply_directives

FORCE_PASSWORD_CHANGE_PREFERENCE = "auth_forcepasswordchange"
CREATE_PASSWORD_PREFERENCE = "create_password"

_FAILURE_CODES = {
    Action.CREATE: ErrorCode.USER_NOT_ADDED_ERROR,
    Action.UPDATE: ErrorCode.USER_NOT_UPDATED_ERROR,
    Action.DELETE: ErrorCode.USER_NOT_DELETED_ERROR,
}


class RowCommitter:
    """Applies prepared rows through the store collaborators."""

    def __init__(
        self,
        store: UserStoreProtocol,
        directive_store: DirectiveStoreProtocol | None = None,
    ):
        """Initialize the committer.

        Args:
            store: User store receiving creates, updates and deletes
            directive_store: Cohort, role and enrolment store; directives are
                skipped when not given
        """
        self.store = store
        self.directive_store = directive_store

    def proceed(self, row: UserRow) -> RowOutcome:
        """Commit a prepared row exactly once.

        Args:
            row: Row in the PREPARED state

        Returns:
            RowOutcome: Committed, or Rejected when the store refused the change

        Raises:
            ContractViolationError: If the row is not prepared, was rejected or
                was already committed
        """
        prepared = row.prepared
        if row.state is not RowState.PREPARED or prepared is None:
            raise ContractViolationError(
                f"Row {row.line_number} cannot be committed",
                state=row.state.value,
                operation="proceed",
            )
        action = prepared.action
        record = prepared.final_record
        if action is None or record is None:
            raise ContractViolationError(
                f"Row {row.line_number} has no action to commit",
                state=row.state.value,
                operation="proceed",
            )

        log_row_operation(
            "commit", row.line_number, record.username, action=action.value
        )

        try:
            if action is Action.DELETE:
                outcome = self._delete(prepared, record)
            elif action is Action.CREATE:
                outcome = self._create(prepared, record)
            else:
                outcome = self._update(prepared, record)
        except StoreError as e:
            row.advance(RowState.COMMIT_FAILED, "proceed")
            code = _FAILURE_CODES[action]
            row.outcome = Rejected(
                errors={code: error_message(code)},
                statuses=prepared.statuses,
                final_record=record,
            )
            log_row_operation(
                "commit",
                row.line_number,
                record.username,
                status="failed",
                details=str(e),
                action=action.value,
            )
            return row.outcome

        row.advance(RowState.COMMITTED, "proceed")
        row.outcome = outcome
        log_row_operation(
            "commit",
            row.line_number,
            outcome.final_record.username,
            status="completed",
            action=action.value,
        )
        return outcome

    def _delete(self, prepared: PreparedRow, record: UserRecord) -> Committed:
        self.store.delete(record)
        return Committed(
            action=Action.DELETE,
            final_record=record,
            assigned_id=record.id,
            statuses=prepared.statuses + (Status.of(StatusCode.USER_DELETED),),
        )

    def _create(self, prepared: PreparedRow, record: UserRecord) -> Committed:
        user_id = self.store.create(record)
        record = replace(record, id=user_id)
        statuses = [*prepared.statuses, Status.of(StatusCode.USER_ADDED)]

        if record.profile_fields:
            self._secondary(
                statuses,
                "save_profile_data",
                record,
                self.store.save_profile_data,
                user_id,
                dict(record.profile_fields),
            )
        if prepared.force_password_change:
            self._secondary(
                statuses,
                "set_preference",
                record,
                self.store.set_preference,
                user_id,
                FORCE_PASSWORD_CHANGE_PREFERENCE,
                "1",
            )
        if prepared.create_password:
            self._secondary(
                statuses,
                "set_preference",
                record,
                self.store.set_preference,
                user_id,
                CREATE_PASSWORD_PREFERENCE,
                "1",
            )

        statuses.extend(self._directives(prepared, user_id))
        return Committed(
            action=Action.CREATE,
            final_record=record,
            assigned_id=user_id,
            statuses=tuple(statuses),
        )

    def _update(self, prepared: PreparedRow, record: UserRecord) -> Committed:
        self.store.update(record)
        user_id = record.id
        statuses = [*prepared.statuses, Status.of(StatusCode.ACCOUNT_UPDATED)]

        if user_id is not None:
            if record.profile_fields:
                self._secondary(
                    statuses,
                    "save_profile_data",
                    record,
                    self.store.save_profile_data,
                    user_id,
                    dict(record.profile_fields),
                )
            if prepared.invalidate_sessions:
                self._secondary(
                    statuses,
                    "invalidate_sessions",
                    record,
                    self.store.invalidate_sessions,
                    user_id,
                )
            if prepared.force_password_change:
                self._secondary(
                    statuses,
                    "set_preference",
                    record,
                    self.store.set_preference,
                    user_id,
                    FORCE_PASSWORD_CHANGE_PREFERENCE,
                    "1",
                )
            statuses.extend(self._directives(prepared, user_id))

        return Committed(
            action=Action.UPDATE,
            final_record=record,
            assigned_id=user_id,
            statuses=tuple(statuses),
        )

    def _directives(self, prepared: PreparedRow, user_id: int) -> list[Status]:
        if self.directive_store is None or not prepared.directives:
            return []
        return apply_directives(prepared.directives, user_id, self.directive_store)

    @staticmethod
    def _secondary(statuses, operation, record, call, *args) -> None:
        try:
            call(*args)
        except StoreError as e:
            statuses.append(Status.of(StatusCode.FOLLOW_UP_FAILED, operation=operation))
            print_warning(
                f"{operation} failed for {record.username}: {e}",
                operation=operation,
                username=record.username,
            )
