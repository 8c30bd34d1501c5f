"""Tests for row reconciliation."""

import pytest

from uploadpy.core.exceptions import ContractViolationError
from uploadpy.models.outcome import Action, Committed, ErrorCode, Rejected, StatusCode
from uploadpy.models.policy import ForcePasswordChange, ImportMode, UpdateMode
from uploadpy.models.row import RowState, UserRow
from uploadpy.models.user import PASSWORD_TO_BE_GENERATED, UserRecord
from uploadpy.operations.commit_ops import CREATE_PASSWORD_PREFERENCE

ALICE = {
    "username": "alice",
    "firstname": "Alice",
    "lastname": "Liddell",
    "email": "alice@example.com",
}


def prepare(reconciler, raw, line=2):
    row = UserRow(line_number=line, raw=raw)
    return row, reconciler.prepare(row)


def status_codes(statuses):
    return [status.code for status in statuses]


class TestIdentityValidation:
    """Test the identity checks that run before any lookup."""

    def test_empty_username(self, make_policy, make_reconciler):
        """Test that a blank username is rejected."""
        reconciler = make_reconciler(make_policy())
        row, prepared = prepare(reconciler, {**ALICE, "username": "   "})

        assert ErrorCode.INVALID_USERNAME in prepared.errors
        assert row.state is RowState.REJECTED

    def test_username_is_standardised(self, make_policy, make_reconciler):
        """Test that usernames are cleaned before lookup."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {**ALICE, "username": " Al ice! "})

        assert prepared.ok
        assert prepared.identity.username == "alice"

    def test_unstandardised_username_must_already_be_clean(
        self, make_policy, make_reconciler
    ):
        """Test that an uncleaned username is invalid without standardising."""
        reconciler = make_reconciler(make_policy(standardise_usernames=False))
        _, prepared = prepare(reconciler, {**ALICE, "username": "Alice"})

        assert list(prepared.errors) == [ErrorCode.INVALID_USERNAME]

    def test_host_id_not_numeric(self, make_policy, make_reconciler):
        """Test rejection of a non-numeric mnethostid."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {**ALICE, "mnethostid": "abc"})

        assert list(prepared.errors) == [ErrorCode.HOST_ID_NOT_NUMERIC]

    def test_id_not_numeric(self, make_policy, make_reconciler):
        """Test rejection of a non-numeric id."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {**ALICE, "id": "x1"})

        assert list(prepared.errors) == [ErrorCode.ID_NOT_NUMERIC]

    def test_empty_id_counts_as_absent(self, make_policy, make_reconciler):
        """Test that an empty id cell does not reject the row."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {**ALICE, "id": " "})

        assert prepared.ok


class TestDeletes:
    """Test delete rows."""

    @pytest.mark.parametrize("mode", list(ImportMode))
    @pytest.mark.parametrize("allow_deletes", [True, False])
    def test_missing_target_always_reported(
        self, make_policy, make_reconciler, mode, allow_deletes
    ):
        """Test that deleting an unknown user fails whatever the policy."""
        reconciler = make_reconciler(
            make_policy(import_mode=mode, allow_deletes=allow_deletes)
        )
        _, prepared = prepare(reconciler, {"username": "nobody", "deleted": "1"})

        assert list(prepared.errors) == [ErrorCode.DELETE_MISSING_TARGET]
        assert prepared.action is None

    def test_guest_delete_is_protected(self, make_policy, make_reconciler):
        """Test that the guest account can never be deleted."""
        reconciler = make_reconciler(make_policy(allow_deletes=True))
        row, prepared = prepare(reconciler, {"username": "guest", "deleted": "1"})

        assert list(prepared.errors) == [ErrorCode.DELETE_PROTECTED_ACCOUNT]
        assert isinstance(row.outcome, Rejected)

    def test_admin_delete_is_protected(self, make_policy, make_reconciler):
        """Test that the admin account can never be deleted."""
        reconciler = make_reconciler(make_policy(allow_deletes=True))
        _, prepared = prepare(reconciler, {"username": "admin", "deleted": "yes"})

        assert list(prepared.errors) == [ErrorCode.DELETE_PROTECTED_ACCOUNT]

    def test_delete_disallowed(self, make_policy, make_reconciler):
        """Test that deletes need the allow_deletes switch."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {"username": "bobby", "deleted": "1"})

        assert list(prepared.errors) == [ErrorCode.DELETE_DISALLOWED]

    def test_delete_prepared(self, make_policy, make_reconciler):
        """Test a delete that may go ahead."""
        reconciler = make_reconciler(make_policy(allow_deletes=True))
        _, prepared = prepare(reconciler, {"username": "bobby", "deleted": "1"})

        assert prepared.ok
        assert prepared.action is Action.DELETE
        assert prepared.final_record.id == 3

    @pytest.mark.parametrize("flag", ["1", "2", "yes"])
    def test_any_set_flag_deletes(self, make_policy, make_reconciler, flag):
        reconciler = make_reconciler(make_policy(allow_deletes=True))
        _, prepared = prepare(reconciler, {"username": "bobby", "deleted": flag})

        assert prepared.action is Action.DELETE

    def test_delete_removes_user(self, make_policy, run_upload, directory):
        """Test a committed delete."""
        results = run_upload(
            make_policy(allow_deletes=True), [{"username": "bobby", "deleted": "1"}]
        )

        assert results.deleted == 1
        assert directory.lookup("bobby", 1) is None
        assert StatusCode.USER_DELETED in status_codes(results.outcomes[2].statuses)


class TestModeGates:
    """Test how import modes allow or refuse rows."""

    def test_mandatory_fields_for_new_users(self, make_policy, make_reconciler):
        """Test that a new user needs every mandatory field."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {"username": "zed", "lastname": "Z"})

        assert prepared.errors == {
            ErrorCode.MISSING_FIELD: "Missing field: firstname"
        }

    def test_mandatory_fields_not_needed_for_updates(
        self, make_policy, make_reconciler
    ):
        """Test that updates may carry only some fields."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {"username": "bobby", "city": "Oulu"})

        assert prepared.ok
        assert prepared.action is Action.UPDATE

    def test_create_new_refuses_existing(self, make_policy, make_reconciler):
        """Test that create-new never touches an existing user."""
        reconciler = make_reconciler(
            make_policy(
                import_mode=ImportMode.CREATE_NEW, update_mode=UpdateMode.DATA_ONLY
            )
        )
        _, prepared = prepare(reconciler, {"username": "bobby", "city": "Oulu"})

        assert list(prepared.errors) == [ErrorCode.USER_EXISTS_UPDATE_NOT_ALLOWED]

    def test_update_mode_nothing_refuses_existing(self, make_policy, make_reconciler):
        """Test that update mode nothing refuses existing users."""
        reconciler = make_reconciler(make_policy(update_mode=UpdateMode.NOTHING))
        _, prepared = prepare(reconciler, {"username": "bobby", "city": "Oulu"})

        assert list(prepared.errors) == [ErrorCode.USER_EXISTS_UPDATE_NOT_ALLOWED]

    def test_update_only_refuses_new(self, make_policy, make_reconciler):
        """Test that update-only mode never creates."""
        reconciler = make_reconciler(make_policy(import_mode=ImportMode.UPDATE_ONLY))
        _, prepared = prepare(reconciler, ALICE)

        assert list(prepared.errors) == [
            ErrorCode.CREATE_DISALLOWED_IN_UPDATE_ONLY_MODE
        ]

    def test_guest_cannot_be_edited(self, make_policy, make_reconciler):
        """Test that rows naming the guest account are refused."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {"username": "guest", "city": "Oulu"})

        assert list(prepared.errors) == [ErrorCode.GUEST_PROTECTED]

    def test_admin_cannot_be_updated(self, make_policy, make_reconciler):
        """Test that the admin account is never updated."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {"username": "admin", "city": "Oulu"})

        assert list(prepared.errors) == [ErrorCode.CANNOT_MODIFY_ADMIN]

    def test_rejected_rows_have_no_action(self, make_policy, make_reconciler):
        """Test that a rejected row never carries an action."""
        reconciler = make_reconciler(make_policy(import_mode=ImportMode.UPDATE_ONLY))
        row, prepared = prepare(reconciler, ALICE)

        assert prepared.action is None
        assert not prepared.ok
        assert row.outcome.errors == prepared.errors


class TestRenames:
    """Test oldusername handling."""

    def test_rename(self, make_policy, run_upload, directory):
        """Test renaming an existing user."""
        results = run_upload(
            make_policy(allow_renames=True),
            [{"username": "bob", "oldusername": "bobby"}],
        )

        outcome = results.outcomes[2]
        assert isinstance(outcome, Committed)
        assert outcome.action is Action.UPDATE
        assert StatusCode.USER_RENAMED in status_codes(outcome.statuses)
        assert "User renamed from bobby to bob" in [str(s) for s in outcome.statuses]
        assert directory.lookup("bob", 1).id == 3
        assert directory.lookup("bobby", 1) is None

    def test_rename_target_exists(self, make_policy, make_reconciler, run_upload):
        """Test that a rename never overwrites an existing username."""
        run_upload(make_policy(), [ALICE])
        reconciler = make_reconciler(make_policy(allow_renames=True))
        _, prepared = prepare(
            reconciler, {"username": "bobby", "oldusername": "alice"}
        )

        assert list(prepared.errors) == [ErrorCode.RENAME_TARGET_EXISTS]

    def test_rename_target_exists_even_without_source(
        self, make_policy, make_reconciler
    ):
        """Test the target check happens before the source is looked up."""
        reconciler = make_reconciler(make_policy(allow_renames=True))
        _, prepared = prepare(
            reconciler, {"username": "bobby", "oldusername": "nobody"}
        )

        assert list(prepared.errors) == [ErrorCode.RENAME_TARGET_EXISTS]

    def test_rename_requires_update_mode(self, make_policy, make_reconciler):
        """Test renames are refused when existing users cannot be updated."""
        reconciler = make_reconciler(
            make_policy(
                import_mode=ImportMode.UPDATE_ONLY,
                update_mode=UpdateMode.NOTHING,
                allow_renames=True,
            )
        )
        _, prepared = prepare(reconciler, {"username": "bob", "oldusername": "bobby"})

        assert list(prepared.errors) == [ErrorCode.RENAME_REQUIRES_UPDATE_MODE]

    def test_rename_source_missing(self, make_policy, make_reconciler):
        """Test renaming a user that does not exist."""
        reconciler = make_reconciler(make_policy(allow_renames=True))
        _, prepared = prepare(
            reconciler, {"username": "bob", "oldusername": "nobody"}
        )

        assert list(prepared.errors) == [ErrorCode.RENAME_SOURCE_MISSING]

    def test_rename_disallowed(self, make_policy, make_reconciler):
        """Test renames need the allow_renames switch."""
        reconciler = make_reconciler(make_policy())
        _, prepared = prepare(reconciler, {"username": "bob", "oldusername": "bobby"})

        assert list(prepared.errors) == [ErrorCode.RENAME_DISALLOWED]

    def test_rename_id_conflict(self, make_policy, make_reconciler):
        """Test that the id column must belong to the renamed user."""
        reconciler = make_reconciler(make_policy(allow_renames=True))
        _, prepared = prepare(
            reconciler, {"username": "bob", "oldusername": "bobby", "id": "1"}
        )

        assert list(prepared.errors) == [ErrorCode.ID_CONFLICT]

    def test_rename_with_own_id(self, make_policy, make_reconciler):
        """Test that the renamed user's own id is accepted."""
        reconciler = make_reconciler(make_policy(allow_renames=True))
        _, prepared = prepare(
            reconciler, {"username": "bob", "oldusername": "bobby", "id": "3"}
        )

        assert prepared.ok

    def test_rename_of_admin_refused(self, make_policy, make_reconciler):
        """Test that the admin account cannot be renamed."""
        reconciler = make_reconciler(make_policy(allow_renames=True))
        _, prepared = prepare(
            reconciler, {"username": "root", "oldusername": "admin"}
        )

        assert list(prepared.errors) == [ErrorCode.CANNOT_MODIFY_ADMIN]


class TestCreateAll:
    """Test create-all username collisions."""

    def test_collision_gets_incremented_username(self, make_policy, make_reconciler):
        """Test that an existing username is suffixed instead of refused."""
        reconciler = make_reconciler(make_policy(import_mode=ImportMode.CREATE_ALL))
        _, prepared = prepare(
            reconciler,
            {
                "username": "bobby",
                "firstname": "Bobby",
                "lastname": "Tables",
                "email": "tables@example.com",
            },
        )

        assert prepared.ok
        assert prepared.action is Action.CREATE
        assert prepared.final_record.username == "bobby2"
        assert StatusCode.USER_RENAMED in status_codes(prepared.statuses)

    def test_repeated_collisions(self, make_policy, run_upload, directory):
        """Test that each collision finds the next free username."""
        rows = [
            {
                "username": "bobby",
                "firstname": "Bobby",
                "lastname": "Tables",
                "email": f"tables{index}@example.com",
            }
            for index in range(2)
        ]
        results = run_upload(make_policy(import_mode=ImportMode.CREATE_ALL), rows)

        assert results.created == 2
        assert directory.lookup("bobby2", 1) is not None
        assert directory.lookup("bobby3", 1) is not None

    def test_collision_on_remote_host(self, make_policy, run_upload, directory):
        """Test that the free username is looked for on the local host."""
        directory.create(UserRecord(username="carol", host_id=5, confirmed=True))
        directory.create(UserRecord(username="carol2", confirmed=True))
        row = {
            "username": "carol",
            "mnethostid": "5",
            "firstname": "Carol",
            "lastname": "Danvers",
            "email": "carol@example.com",
        }

        results = run_upload(make_policy(import_mode=ImportMode.CREATE_ALL), [row])

        outcome = results.outcomes[2]
        assert isinstance(outcome, Committed)
        assert outcome.final_record.username == "carol3"
        assert outcome.final_record.host_id == 1
        assert directory.lookup("carol3", 1) is not None

    def test_collision_still_needs_mandatory_columns(
        self, make_policy, make_reconciler
    ):
        """Test that defaults do not stand in for missing columns."""
        policy = make_policy(
            import_mode=ImportMode.CREATE_ALL, defaults={"firstname": "Def"}
        )
        row = {"username": "bobby", "lastname": "Tables", "email": "t@example.com"}

        _, prepared = prepare(make_reconciler(policy), row)

        assert not prepared.ok
        assert list(prepared.errors) == [ErrorCode.MISSING_FIELD]
        assert "firstname" in prepared.errors[ErrorCode.MISSING_FIELD]

    def test_new_username_kept(self, make_policy, make_reconciler):
        """Test that a free username is used as given."""
        reconciler = make_reconciler(make_policy(import_mode=ImportMode.CREATE_ALL))
        _, prepared = prepare(reconciler, ALICE)

        assert prepared.final_record.username == "alice"
        assert prepared.statuses == ()


class TestPasswords:
    """Test password handling when creating users."""

    def test_generated_password(self, make_policy, run_upload, directory):
        """Test that new users without a password get one generated later."""
        results = run_upload(make_policy(import_mode=ImportMode.CREATE_NEW), [ALICE])

        outcome = results.outcomes[2]
        assert isinstance(outcome, Committed)
        assert outcome.final_record.password == PASSWORD_TO_BE_GENERATED
        assert StatusCode.USER_ADDED in status_codes(outcome.statuses)
        assert directory.get_preference(
            outcome.assigned_id, CREATE_PASSWORD_PREFERENCE
        ) == "1"

    def test_weak_password_forced_change(self, make_policy, make_reconciler):
        """Test that a weak password is flagged under the weak setting."""
        reconciler = make_reconciler(
            make_policy(force_password_change=ForcePasswordChange.WEAK)
        )
        _, prepared = prepare(reconciler, {**ALICE, "password": "abc"})

        assert prepared.force_password_change
        assert prepared.final_record.password == "hashed:abc"
        assert status_codes(prepared.statuses) == [
            StatusCode.WEAK_PASSWORD,
            StatusCode.FORCE_PASSWORD_CHANGE,
        ]

    def test_strong_password_not_forced(self, make_policy, make_reconciler):
        """Test that a strong password is left alone under the weak setting."""
        reconciler = make_reconciler(
            make_policy(force_password_change=ForcePasswordChange.WEAK)
        )
        _, prepared = prepare(reconciler, {**ALICE, "password": "Secret1!"})

        assert not prepared.force_password_change
        assert prepared.statuses == ()

    def test_all_passwords_forced(self, make_policy, make_reconciler):
        """Test that every new password is flagged under the all setting."""
        reconciler = make_reconciler(
            make_policy(force_password_change=ForcePasswordChange.ALL)
        )
        _, prepared = prepare(reconciler, {**ALICE, "password": "Secret1!"})

        assert prepared.force_password_change


class TestLifecycle:
    """Test the prepare-once contract and ordering between rows."""

    def test_prepare_twice(self, make_policy, make_reconciler):
        """Test that a row cannot be prepared twice."""
        reconciler = make_reconciler(make_policy())
        row, _ = prepare(reconciler, ALICE)

        with pytest.raises(ContractViolationError):
            reconciler.prepare(row)

    def test_prepare_does_not_write(self, make_policy, make_reconciler, directory):
        """Test that preparing leaves the directory untouched."""
        reconciler = make_reconciler(make_policy())
        before = len(directory)
        prepare(reconciler, ALICE)

        assert len(directory) == before
        assert directory.lookup("alice", 1) is None

    def test_same_row_twice_creates_then_updates(self, make_policy, run_upload):
        """Test that a later row sees the user created by an earlier one."""
        results = run_upload(make_policy(), [ALICE, {**ALICE, "city": "Oxford"}])

        assert results.created == 1
        assert results.updated == 1
        assert results.errors == 0
        assert results.outcomes[3].final_record.city == "Oxford"
