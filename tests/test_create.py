"""Tests for building new user records."""

from uploadpy.models.outcome import Action, ErrorCode, StatusCode
from uploadpy.models.policy import PasswordMode
from uploadpy.models.row import UserRow
from uploadpy.models.user import PASSWORD_NOT_CACHED, UserRecord

NEW_USER = {
    "username": "dana",
    "firstname": "Dana",
    "lastname": "Scully",
    "email": "dana@example.com",
}


def prepare_create(reconciler, **values):
    row = UserRow(line_number=2, raw={**NEW_USER, **values})
    return reconciler.prepare(row)


class TestPrepareCreate:
    """Test the record built for a new user."""

    def test_basic_record(self, make_policy, make_reconciler):
        """Test the fields of a plain new user."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, city=" Helsinki ")

        record = prepared.final_record
        assert prepared.action is Action.CREATE
        assert record.username == "dana"
        assert record.city == "Helsinki"
        assert record.auth == "manual"
        assert record.confirmed
        assert not record.suspended
        assert record.time_created == reconciler.clock()
        assert record.id is None

    def test_defaults_fill_empty_cells(self, make_policy, make_reconciler):
        """Test that operator defaults fill empty cells of new users."""
        reconciler = make_reconciler(
            make_policy(defaults={"country": "FI", "city": "Espoo"})
        )
        prepared = prepare_create(reconciler, city="Vantaa")

        assert prepared.final_record.country == "FI"
        assert prepared.final_record.city == "Vantaa"

    def test_mandatory_field_not_taken_from_defaults(
        self, make_policy, make_reconciler
    ):
        """Test that mandatory fields must be present in the row itself."""
        reconciler = make_reconciler(make_policy(defaults={"lastname": "Doe"}))
        prepared = prepare_create(reconciler, lastname="")

        assert prepared.errors == {
            ErrorCode.MISSING_FIELD: "Missing field: lastname"
        }

    def test_always_on_local_host(self, make_policy, make_reconciler):
        """Test that new users live on the local host."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, mnethostid="7")

        assert prepared.final_record.host_id == 1

    def test_id_column_ignored(self, make_policy, run_upload, directory):
        """Test that the id column does not choose the new user's id."""
        results = run_upload(make_policy(), [{**NEW_USER, "id": "99"}])

        assert results.outcomes[2].assigned_id == 4
        assert directory.get_by_id(99) is None

    def test_suspended_new_user(self, make_policy, make_reconciler):
        """Test creating a suspended user."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, suspended="1")

        assert prepared.final_record.suspended

    def test_profile_fields_kept(self, make_policy, make_reconciler):
        """Test that only non-empty custom profile fields are stored."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(
            reconciler, profile_field_Team="Blue", profile_field_Room=""
        )

        assert prepared.final_record.profile_fields == {"Team": "Blue"}

    def test_duplicate_email(self, make_policy, make_reconciler):
        """Test that an email already in use blocks the create."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, email="bob@example.com")

        assert list(prepared.errors) == [ErrorCode.EMAIL_DUPLICATE]

    def test_unknown_lang_cleared(self, make_policy, make_reconciler):
        """Test that an unknown language is dropped with an advisory."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, lang="xx")

        assert prepared.ok
        assert prepared.final_record.lang == ""
        assert [s.code for s in prepared.statuses] == [StatusCode.UNKNOWN_LOCALE]

    def test_known_lang_kept(self, make_policy, make_reconciler):
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, lang="en")

        assert prepared.final_record.lang == "en"


class TestCreateAuth:
    """Test authentication methods of new users."""

    def test_unknown_auth(self, make_policy, make_reconciler):
        """Test that an uninstalled auth method blocks the create."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, auth="carrier-pigeon")

        assert list(prepared.errors) == [ErrorCode.AUTH_PLUGIN_UNAVAILABLE]
        assert prepared.action is None

    def test_external_auth_has_no_password(self, make_policy, make_reconciler):
        """Test that external methods never store a password."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, auth="ldap", password="Secret1!")

        assert prepared.final_record.password == PASSWORD_NOT_CACHED
        assert not prepared.create_password
        assert [s.code for s in prepared.statuses] == [StatusCode.UNSUPPORTED_AUTH]

    def test_password_field_required(self, make_policy, make_reconciler):
        """Test that the password column is required in field mode."""
        reconciler = make_reconciler(make_policy(password_mode=PasswordMode.FIELD))
        prepared = prepare_create(reconciler)

        assert prepared.errors == {
            ErrorCode.MISSING_FIELD: "Missing field: password"
        }

    def test_password_hashed(self, make_policy, make_reconciler):
        """Test that a given password is hashed."""
        reconciler = make_reconciler(make_policy(password_mode=PasswordMode.FIELD))
        prepared = prepare_create(reconciler, password="Secret1!")

        assert prepared.final_record.password == "hashed:Secret1!"
        assert not prepared.create_password

    def test_weak_password_advisory(self, make_policy, make_reconciler):
        """Test that a weak password is kept with an advisory."""
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler, password="short")

        assert prepared.ok
        assert [s.code for s in prepared.statuses] == [StatusCode.WEAK_PASSWORD]
        assert not prepared.force_password_change

    def test_existing_user_is_updated(self, make_policy, make_reconciler, directory):
        """Test that a row for a stored user becomes an update."""
        directory.create(UserRecord(username="dana", email="other@example.com"))
        reconciler = make_reconciler(make_policy())
        prepared = prepare_create(reconciler)

        assert prepared.action is Action.UPDATE
