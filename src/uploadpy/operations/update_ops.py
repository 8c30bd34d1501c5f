"""Merging an upload row into an existing user."""

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from ..core.auth_plugins import NOLOGIN_AUTH
from ..core.exceptions import AuthPluginUnavailableError
from ..core.interfaces import AuthRegistryProtocol, UserLookupProtocol
from ..models.config import SiteConfig
from ..models.outcome import ErrorCode, StatusCode
from ..models.policy import Policy, UpdateMode
from ..models.row import RowContext
from ..models.user import PROFILE_ATTRIBUTES, UserRecord
from ..utils.validators import is_truthy
from .field_rules import accept_email, accept_lang, field_value, prepare_password


def _should_write(new_value: str, current: str, field: str, policy: Policy) -> bool:
    if not new_value:
        return False
    if policy.update_mode is UpdateMode.MISSING_ONLY and current:
        return False
    if policy.update_mode is UpdateMode.DATA_ONLY:
        default = policy.defaults.get(field)
        if default and new_value == default:
            return False
    return new_value != current


def merge_update(
    projected: dict[str, str],
    profile_fields: dict[str, str],
    existing: UserRecord,
    username: str,
    policy: Policy,
    site: SiteConfig,
    lookup: UserLookupProtocol,
    auth_registry: AuthRegistryProtocol,
    hasher: Callable[[str], str],
    context: RowContext,
    now: datetime,
) -> UserRecord:
    """Merge row values into a copy of an existing user.

    Empty row values never clear stored data. Under ``missingonly`` only
    empty stored fields are filled; under ``dataonly`` values equal to the
    operator defaults are ignored; ``dataordefaults`` and ``missingonly``
    fill empty row values from the defaults. Fatal problems are recorded on
    ``context``; the returned record is only committed when it has none.

    Args:
        projected: Trimmed row values of the recognised columns
        profile_fields: Custom profile field values of the row
        existing: Stored user, left untouched
        username: Username the user ends up with (differs when renaming)
        policy: Upload policy
        site: Site settings
        lookup: Directory lookup, for the duplicate email check
        auth_registry: Authentication methods
        hasher: One-way password hash
        context: Row context collecting errors and statuses
        now: Modification timestamp

    Returns:
        UserRecord: Merged record
    """
    use_defaults = policy.update_mode in (
        UpdateMode.DATA_OR_DEFAULTS,
        UpdateMode.MISSING_ONLY,
    )
    record = replace(
        existing,
        username=username,
        profile_fields=dict(existing.profile_fields),
        time_modified=now,
    )

    new_auth = projected.get("auth", "")
    if new_auth and record.auth and new_auth != record.auth:
        try:
            auth_registry.resolve(new_auth)
        except AuthPluginUnavailableError:
            context.error(ErrorCode.AUTH_PLUGIN_UNAVAILABLE, auth=new_auth)
        else:
            if not auth_registry.is_enabled(new_auth):
                context.status(StatusCode.UNSUPPORTED_AUTH, auth=new_auth)
            record.auth = new_auth
            if new_auth == NOLOGIN_AUTH:
                context.invalidate_sessions = True

    for field in PROFILE_ATTRIBUTES:
        new_value = field_value(projected, field, policy, use_defaults)
        if not _should_write(new_value, record.get(field), field, policy):
            continue

        if field == "email":
            if accept_email(new_value, existing.id, policy, lookup, context):
                record.email = new_value
        elif field == "lang":
            if accept_lang(new_value, site, context):
                record.lang = new_value
        else:
            setattr(record, field, new_value)

    for name, value in profile_fields.items():
        if _should_write(value, record.profile_fields.get(name, ""), name, policy):
            record.profile_fields[name] = value

    raw_suspended = projected.get("suspended", "")
    if policy.allow_suspends and raw_suspended:
        suspended = is_truthy(raw_suspended)
        if suspended and not existing.suspended:
            context.status(StatusCode.USER_SUSPENDED)
            context.invalidate_sessions = True
        elif not suspended and existing.suspended:
            context.status(StatusCode.USER_ACTIVATED)
        record.suspended = suspended

    password = projected.get("password", "")
    if policy.update_password and password:
        try:
            plugin = auth_registry.resolve(record.auth)
        except AuthPluginUnavailableError:
            context.error(ErrorCode.AUTH_PLUGIN_UNAVAILABLE, auth=record.auth)
        else:
            if plugin.is_internal:
                record.password = prepare_password(
                    password, policy, site, hasher, context
                )

    return record
