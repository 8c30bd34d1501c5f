"""Tests for cohort, system role and enrolment directives."""

from unittest.mock import MagicMock

from uploadpy.core.exceptions import StoreError
from uploadpy.models.outcome import StatusCode
from uploadpy.models.schema import (
    CohortDirective,
    EnrolmentDirective,
    SystemRoleDirective,
    parse_directives,
)
from uploadpy.operations.directive_ops import apply_directives

BOBBY_ID = 3


def codes(statuses):
    return [status.code for status in statuses]


class TestParseDirectives:
    """Test turning numbered columns into directives."""

    def test_order_and_grouping(self):
        """Test that directives are grouped by kind and sorted by slot."""
        raw = {
            "course2": "art",
            "course1": "math101",
            "role1": "teacher",
            "group1": "groupa",
            "sysrole1": "-manager",
            "cohort2": "b",
            "cohort1": "a",
            "enrolperiod2": "30",
        }

        assert parse_directives(raw) == [
            CohortDirective(index=1, cohort="a"),
            CohortDirective(index=2, cohort="b"),
            SystemRoleDirective(index=1, role="manager", unassign=True),
            EnrolmentDirective(
                index=1, course="math101", role="teacher", group="groupa"
            ),
            EnrolmentDirective(index=2, course="art", period="30"),
        ]

    def test_empty_cells_ignored(self):
        """Test that empty directive cells produce nothing."""
        raw = {"cohort1": "  ", "course1": "", "role1": "student"}

        assert parse_directives(raw) == []


class TestApplyDirectives:
    """Test applying directives to the in-memory directory."""

    def test_cohort_created_and_joined(self, directory):
        """Test that a missing cohort is created first."""
        statuses = apply_directives(
            [CohortDirective(index=1, cohort="staff")], BOBBY_ID, directory
        )

        assert codes(statuses) == [
            StatusCode.COHORT_CREATED,
            StatusCode.ADDED_TO_COHORT,
        ]
        assert directory.cohorts["staff"] == {BOBBY_ID}

    def test_existing_cohort_joined(self, directory):
        directory.create_cohort("staff")
        statuses = apply_directives(
            [CohortDirective(index=1, cohort="staff")], BOBBY_ID, directory
        )

        assert codes(statuses) == [StatusCode.ADDED_TO_COHORT]

    def test_system_roles(self, directory):
        """Test assigning and unassigning a system role."""
        assigned = apply_directives(
            [SystemRoleDirective(index=1, role="manager")], BOBBY_ID, directory
        )
        assert codes(assigned) == [StatusCode.ROLE_ASSIGNED]
        assert BOBBY_ID in directory.system_roles["manager"]

        unassigned = apply_directives(
            [SystemRoleDirective(index=1, role="manager", unassign=True)],
            BOBBY_ID,
            directory,
        )
        assert codes(unassigned) == [StatusCode.ROLE_UNASSIGNED]
        assert BOBBY_ID not in directory.system_roles["manager"]

    def test_unknown_system_role(self, directory):
        statuses = apply_directives(
            [SystemRoleDirective(index=1, role="overlord")], BOBBY_ID, directory
        )

        assert str(statuses[0]) == "System role not changed: overlord"

    def test_enrolment_with_group(self, directory):
        """Test enrolling with a role and a group."""
        directive = EnrolmentDirective(
            index=1, course="math101", role="teacher", group="groupa", period="10"
        )
        statuses = apply_directives([directive], BOBBY_ID, directory)

        assert codes(statuses) == [StatusCode.ENROLLED, StatusCode.ADDED_TO_GROUP]
        enrolment = directory.courses["math101"]["enrolments"][BOBBY_ID]
        assert enrolment["role"] == "teacher"
        assert enrolment["time_end"] is not None
        assert BOBBY_ID in directory.courses["math101"]["groups"]["groupa"]

    def test_unknown_course(self, directory):
        """Test that an unknown course is reported, not raised."""
        statuses = apply_directives(
            [EnrolmentDirective(index=1, course="nope", group="groupa")],
            BOBBY_ID,
            directory,
        )

        assert codes(statuses) == [StatusCode.USER_NOT_ENROLLED]

    def test_bad_period_and_status(self, directory):
        """Test that bad enrolment options are reported and skipped."""
        directive = EnrolmentDirective(
            index=1, course="math101", period="soon", status="2"
        )
        statuses = apply_directives([directive], BOBBY_ID, directory)

        assert codes(statuses) == [
            StatusCode.INVALID_ENROL_PERIOD,
            StatusCode.UNKNOWN_ENROL_STATUS,
            StatusCode.ENROLLED,
        ]
        enrolment = directory.courses["math101"]["enrolments"][BOBBY_ID]
        assert enrolment["time_end"] is None
        assert not enrolment["suspended"]

    def test_suspended_enrolment(self, directory):
        directive = EnrolmentDirective(index=1, course="math101", status="1")
        apply_directives([directive], BOBBY_ID, directory)

        assert directory.courses["math101"]["enrolments"][BOBBY_ID]["suspended"]

    def test_unknown_group(self, directory):
        directive = EnrolmentDirective(index=1, course="math101", group="groupz")
        statuses = apply_directives([directive], BOBBY_ID, directory)

        assert codes(statuses) == [StatusCode.ENROLLED, StatusCode.GROUP_NOT_ADDED]

    def test_cohort_creation_failure(self):
        """Test that a failed cohort creation skips joining it."""
        store = MagicMock()
        store.cohort_exists.return_value = False
        store.create_cohort.side_effect = StoreError("read only")

        statuses = apply_directives(
            [CohortDirective(index=1, cohort="staff")], BOBBY_ID, store
        )

        assert codes(statuses) == [StatusCode.COHORT_NOT_CREATED]
        store.add_to_cohort.assert_not_called()

    def test_failures_do_not_stop_later_directives(self, directory):
        """Test that each directive is applied independently."""
        statuses = apply_directives(
            [
                SystemRoleDirective(index=1, role="overlord"),
                EnrolmentDirective(index=1, course="math101"),
            ],
            BOBBY_ID,
            directory,
        )

        assert codes(statuses) == [StatusCode.ROLE_NOT_ASSIGNED, StatusCode.ENROLLED]


class TestDirectivesInUpload:
    """Test directives running as part of a full upload."""

    def test_directive_statuses_follow_row_status(self, make_policy, run_upload):
        results = run_upload(
            make_policy(),
            [{"username": "bobby", "cohort1": "staff", "course1": "math101"}],
        )

        assert codes(results.outcomes[2].statuses) == [
            StatusCode.ACCOUNT_UPDATED,
            StatusCode.COHORT_CREATED,
            StatusCode.ADDED_TO_COHORT,
            StatusCode.ENROLLED,
        ]

    def test_rejected_row_runs_no_directives(self, make_policy, run_upload, directory):
        """Test that directives only run for committed rows."""
        results = run_upload(
            make_policy(), [{"username": "guest", "cohort1": "staff"}]
        )

        assert results.errors == 1
        assert directory.cohorts == {}
