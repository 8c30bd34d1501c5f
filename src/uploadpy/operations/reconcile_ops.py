"""Row reconciliation: deciding what an upload row does to the directory.

:class:`RowReconciler` prepares rows. Preparing validates the identity,
looks the user up, walks the mode and permission checks, handles renames
and create-all collisions, and finally builds the record to commit. Nothing
is written to the directory here; see :mod:`.commit_ops`.
"""

from collections.abc import Callable
from datetime import UTC, datetime

from ..core.exceptions import ContractViolationError
from ..core.interfaces import (
    AuthRegistryProtocol,
    PasswordHasher,
    UserLookupProtocol,
    UsernameIncrementer,
)
from ..models.config import SiteConfig
from ..models.outcome import Action, ErrorCode, Rejected, StatusCode
from ..models.policy import ImportMode, Policy
from ..models.row import Identity, PreparedRow, RowContext, RowState, UserRow
from ..models.schema import (
    MANDATORY_FIELDS,
    VALID_FIELDS,
    extract_profile_fields,
    parse_directives,
)
from ..models.user import UserRecord
from ..utils.console_log import log_row_operation
from ..utils.password_utils import hash_password
from ..utils.username_utils import make_username_incrementer
from ..utils.validators import is_truthy
from .create_ops import prepare_create
from .update_ops import merge_update
from .validation_ops import normalise_username, validate_identity


class RowReconciler:
    """Prepares upload rows against a live directory.

    All collaborators are given at construction; the reconciler keeps no
    state between rows, so each lookup sees every earlier commit.
    """

    def __init__(
        self,
        policy: Policy,
        site: SiteConfig,
        lookup: UserLookupProtocol,
        auth_registry: AuthRegistryProtocol,
        hasher: PasswordHasher = hash_password,
        increment_username: UsernameIncrementer | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the reconciler.

        Args:
            policy: Upload policy for the run
            site: Site settings
            lookup: Directory lookup
            auth_registry: Authentication methods
            hasher: One-way password hash
            increment_username: Finds a free username for create-all
                collisions; defaults to numeric suffixing against ``lookup``
            clock: Source of creation and modification timestamps
        """
        self.policy = policy
        self.site = site
        self.lookup = lookup
        self.auth_registry = auth_registry
        self.hasher = hasher
        self.increment_username = increment_username or make_username_incrementer(
            lookup
        )
        self.clock = clock or (lambda: datetime.now(UTC))

    def prepare(self, row: UserRow) -> PreparedRow:
        """Prepare a row exactly once.

        Args:
            row: Unprepared row

        Returns:
            PreparedRow: The decision for the row; rejected rows also get a
            :class:`Rejected` outcome

        Raises:
            ContractViolationError: If the row was already prepared
        """
        if row.state is not RowState.UNPREPARED:
            raise ContractViolationError(
                f"Row {row.line_number} has already been prepared",
                state=row.state.value,
                operation="prepare",
            )

        username = (row.raw.get("username") or "").strip()
        log_row_operation("prepare", row.line_number, username)

        prepared = self._prepare(row.raw)
        row.prepared = prepared

        if prepared.ok:
            row.advance(RowState.PREPARED, "prepare")
            log_row_operation(
                "prepare",
                row.line_number,
                username,
                status="completed",
                action=prepared.action.value if prepared.action else None,
            )
        else:
            row.advance(RowState.REJECTED, "prepare")
            row.outcome = Rejected(
                errors=prepared.errors,
                statuses=prepared.statuses,
                final_record=prepared.final_record,
            )
            log_row_operation(
                "prepare",
                row.line_number,
                username,
                status="rejected",
                details="; ".join(prepared.errors.values()),
            )

        return prepared

    def _prepare(self, raw: dict[str, str]) -> PreparedRow:
        context = RowContext()
        policy = self.policy

        validated = validate_identity(raw, policy, self.site)
        if isinstance(validated, Rejected):
            context.errors.update(validated.errors)
            return PreparedRow.from_context(context)
        identity = validated

        existing = self.lookup.lookup(identity.username, identity.host_id)

        if is_truthy(raw.get("deleted")):
            return self._prepare_delete(context, identity, existing)

        def reject(code: ErrorCode, **params: str) -> PreparedRow:
            context.error(code, **params)
            return PreparedRow.from_context(context, identity, existing=existing)

        projected = {
            field: (raw.get(field) or "").strip()
            for field in VALID_FIELDS
            if field in raw
        }
        old_username = projected.get("oldusername", "")

        if existing is None and not old_username:
            missing = _missing_field(projected)
            if missing:
                return reject(ErrorCode.MISSING_FIELD, field=missing)

        if self.site.is_guest_username(identity.username):
            return reject(ErrorCode.GUEST_PROTECTED)

        if existing is not None:
            creating_all = policy.import_mode is ImportMode.CREATE_ALL
            if not policy.can_update and not creating_all:
                return reject(ErrorCode.USER_EXISTS_UPDATE_NOT_ALLOWED)
        elif not policy.can_create and not old_username:
            return reject(ErrorCode.CREATE_DISALLOWED_IN_UPDATE_ONLY_MODE)

        projected["username"] = identity.username
        projected["mnethostid"] = str(identity.host_id)

        if old_username:
            if existing is not None:
                return reject(ErrorCode.RENAME_TARGET_EXISTS)

            source = normalise_username(old_username, policy, self.site)
            existing = self.lookup.lookup(source, identity.host_id)

            if not policy.can_update:
                return reject(ErrorCode.RENAME_REQUIRES_UPDATE_MODE)
            if existing is None:
                return reject(ErrorCode.RENAME_SOURCE_MISSING)
            if not policy.allow_renames:
                return reject(ErrorCode.RENAME_DISALLOWED)
            if projected.get("id"):
                user_id = int(projected["id"])
                owner = self.lookup.get_by_id(user_id)
                if owner is not None and owner.id != existing.id:
                    return reject(ErrorCode.ID_CONFLICT)

            context.status(StatusCode.USER_RENAMED, from_=source, to=identity.username)

        if existing is not None:
            if existing.is_admin or self.site.is_admin_username(existing.username):
                return reject(ErrorCode.CANNOT_MODIFY_ADMIN)
            if existing.is_guest or self.site.is_guest_username(existing.username):
                return reject(ErrorCode.GUEST_PROTECTED)

        if existing is not None and policy.import_mode is ImportMode.CREATE_ALL:
            original = identity.username
            host_id = self.site.local_host_id
            identity = Identity(
                username=self.increment_username(original, host_id),
                host_id=host_id,
            )
            existing = None
            projected["username"] = identity.username
            projected["mnethostid"] = str(host_id)
            if identity.username != original:
                context.status(
                    StatusCode.USER_RENAMED, from_=original, to=identity.username
                )
            missing = _missing_field(projected)
            if missing:
                return reject(ErrorCode.MISSING_FIELD, field=missing)

        gate = self._final_gate(existing)
        if gate is not None:
            return reject(gate)

        return self._build(context, identity, existing, projected, raw)

    def _prepare_delete(
        self,
        context: RowContext,
        identity: Identity,
        existing: UserRecord | None,
    ) -> PreparedRow:
        if existing is None:
            context.error(ErrorCode.DELETE_MISSING_TARGET)
        elif (
            existing.is_admin
            or existing.is_guest
            or self.site.is_admin_username(identity.username)
            or self.site.is_guest_username(identity.username)
        ):
            context.error(ErrorCode.DELETE_PROTECTED_ACCOUNT)
        elif not self.policy.allow_deletes:
            context.error(ErrorCode.DELETE_DISALLOWED)

        return PreparedRow.from_context(
            context,
            identity,
            action=Action.DELETE,
            final_record=existing,
            existing=existing,
        )

    def _final_gate(self, existing: UserRecord | None) -> ErrorCode | None:
        mode = self.policy.import_mode
        if mode is ImportMode.CREATE_NEW and existing is not None:
            return ErrorCode.USER_NOT_ADDED_REGISTERED
        if mode is ImportMode.CREATE_ALL and existing is not None:
            return ErrorCode.USER_NOT_ADDED_ERROR
        if not self.policy.can_create and existing is None:
            return ErrorCode.CREATE_DISALLOWED_IN_UPDATE_ONLY_MODE
        if (
            mode is ImportMode.CREATE_OR_UPDATE
            and existing is not None
            and not self.policy.can_update
        ):
            return ErrorCode.UPDATE_MODE_NOTHING
        return None

    def _build(
        self,
        context: RowContext,
        identity: Identity,
        existing: UserRecord | None,
        projected: dict[str, str],
        raw: dict[str, str],
    ) -> PreparedRow:
        profile_fields = extract_profile_fields(raw)
        now = self.clock()

        final_record: UserRecord | None
        if existing is not None:
            action = Action.UPDATE
            final_record = merge_update(
                projected,
                profile_fields,
                existing,
                identity.username,
                self.policy,
                self.site,
                self.lookup,
                self.auth_registry,
                self.hasher,
                context,
                now,
            )
        else:
            action = Action.CREATE
            final_record = prepare_create(
                projected,
                profile_fields,
                identity.username,
                self.policy,
                self.site,
                self.lookup,
                self.auth_registry,
                self.hasher,
                context,
                now,
            )
            if final_record is None and not context.has_errors:
                context.error(ErrorCode.USER_NOT_ADDED_ERROR)

        return PreparedRow.from_context(
            context,
            identity,
            action=action,
            final_record=final_record,
            existing=existing,
            directives=tuple(parse_directives(raw)),
        )


def _missing_field(projected: dict[str, str]) -> str | None:
    """First mandatory column that is absent or empty in the row itself."""
    for field in MANDATORY_FIELDS:
        if not projected.get(field):
            return field
    return None
