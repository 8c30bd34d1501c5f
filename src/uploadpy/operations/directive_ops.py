"""Applying cohort, system role and enrolment directives of a row.

Directives run after the user itself was stored. A failing directive only
produces an advisory status; it never undoes or rejects the row.
"""

from collections.abc import Iterable

from ..core.exceptions import StoreError
from ..core.interfaces import DirectiveStoreProtocol
from ..models.outcome import Status, StatusCode
from ..models.schema import (
    CohortDirective,
    Directive,
    EnrolmentDirective,
    SystemRoleDirective,
)
from ..utils.console_log import print_warning
from ..utils.validators import InputValidator


def _apply_cohort(
    directive: CohortDirective, user_id: int, store: DirectiveStoreProtocol
) -> list[Status]:
    statuses = []
    if not store.cohort_exists(directive.cohort):
        try:
            store.create_cohort(directive.cohort)
        except StoreError:
            return [Status.of(StatusCode.COHORT_NOT_CREATED, cohort=directive.cohort)]
        statuses.append(Status.of(StatusCode.COHORT_CREATED, cohort=directive.cohort))

    try:
        store.add_to_cohort(directive.cohort, user_id)
    except StoreError:
        statuses.append(Status.of(StatusCode.COHORT_NOT_ADDED, cohort=directive.cohort))
    else:
        statuses.append(Status.of(StatusCode.ADDED_TO_COHORT, cohort=directive.cohort))
    return statuses


def _apply_system_role(
    directive: SystemRoleDirective, user_id: int, store: DirectiveStoreProtocol
) -> list[Status]:
    try:
        if directive.unassign:
            store.unassign_system_role(directive.role, user_id)
        else:
            store.assign_system_role(directive.role, user_id)
    except StoreError:
        return [Status.of(StatusCode.ROLE_NOT_ASSIGNED, role=directive.role)]

    if directive.unassign:
        return [Status.of(StatusCode.ROLE_UNASSIGNED, role=directive.role)]
    return [Status.of(StatusCode.ROLE_ASSIGNED, role=directive.role)]


def _apply_enrolment(
    directive: EnrolmentDirective, user_id: int, store: DirectiveStoreProtocol
) -> list[Status]:
    statuses = []

    period_days = None
    if directive.period:
        if InputValidator.is_numeric(directive.period) and int(directive.period) >= 0:
            period_days = int(directive.period)
        else:
            statuses.append(
                Status.of(StatusCode.INVALID_ENROL_PERIOD, period=directive.period)
            )

    suspended = False
    if directive.status:
        if directive.status in ("0", "1"):
            suspended = directive.status == "1"
        else:
            statuses.append(
                Status.of(StatusCode.UNKNOWN_ENROL_STATUS, status=directive.status)
            )

    try:
        store.enrol(
            directive.course,
            user_id,
            role=directive.role,
            period_days=period_days,
            suspended=suspended,
        )
    except StoreError:
        statuses.append(
            Status.of(StatusCode.USER_NOT_ENROLLED, course=directive.course)
        )
        return statuses
    statuses.append(Status.of(StatusCode.ENROLLED, course=directive.course))

    if directive.group:
        try:
            store.add_to_group(directive.course, directive.group, user_id)
        except StoreError:
            statuses.append(
                Status.of(StatusCode.GROUP_NOT_ADDED, group=directive.group)
            )
        else:
            statuses.append(Status.of(StatusCode.ADDED_TO_GROUP, group=directive.group))

    return statuses


def apply_directives(
    directives: Iterable[Directive],
    user_id: int,
    store: DirectiveStoreProtocol,
) -> list[Status]:
    """Apply every directive of a row to a stored user.

    Args:
        directives: Parsed directives, applied in order
        user_id: Id of the stored user
        store: Cohort, role and enrolment store

    Returns:
        list[Status]: One or more advisory statuses per directive
    """
    statuses: list[Status] = []
    for directive in directives:
        if isinstance(directive, CohortDirective):
            result = _apply_cohort(directive, user_id, store)
        elif isinstance(directive, SystemRoleDirective):
            result = _apply_system_role(directive, user_id, store)
        else:
            result = _apply_enrolment(directive, user_id, store)

        for status in result:
            if status.code in FAILURE_CODES:
                print_warning(status.message, operation="directives")
        statuses.extend(result)
    return statuses


FAILURE_CODES = frozenset(
    {
        StatusCode.COHORT_NOT_CREATED,
        StatusCode.COHORT_NOT_ADDED,
        StatusCode.ROLE_NOT_ASSIGNED,
        StatusCode.USER_NOT_ENROLLED,
        StatusCode.GROUP_NOT_ADDED,
        StatusCode.INVALID_ENROL_PERIOD,
        StatusCode.UNKNOWN_ENROL_STATUS,
    }
)
