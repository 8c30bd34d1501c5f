"""Building the record of a user about to be created."""

from collections.abc import Callable
from datetime import datetime

from ..core.exceptions import AuthPluginUnavailableError
from ..core.interfaces import AuthRegistryProtocol, UserLookupProtocol
from ..models.config import SiteConfig
from ..models.outcome import ErrorCode, StatusCode
from ..models.policy import PasswordMode, Policy
from ..models.row import RowContext
from ..models.schema import MANDATORY_FIELDS
from ..models.user import (
    PASSWORD_NOT_CACHED,
    PASSWORD_TO_BE_GENERATED,
    PROFILE_ATTRIBUTES,
    UserRecord,
)
from ..utils.validators import is_truthy
from .field_rules import accept_email, accept_lang, field_value, prepare_password


def prepare_create(
    projected: dict[str, str],
    profile_fields: dict[str, str],
    username: str,
    policy: Policy,
    site: SiteConfig,
    lookup: UserLookupProtocol,
    auth_registry: AuthRegistryProtocol,
    hasher: Callable[[str], str],
    context: RowContext,
    now: datetime,
) -> UserRecord | None:
    """Fill in defaults and check the fields of a new user.

    Empty row values fall back to the operator defaults. The record always
    lives on the local host. Internal authentication methods need a
    password, unless passwords are generated; external methods never store
    one.

    Args:
        projected: Trimmed row values of the recognised columns
        profile_fields: Custom profile field values of the row
        username: Username of the new user
        policy: Upload policy
        site: Site settings
        lookup: Directory lookup, for the duplicate email check
        auth_registry: Authentication methods
        hasher: One-way password hash
        context: Row context collecting errors and statuses
        now: Creation timestamp

    Returns:
        UserRecord | None: The new record, or None when the row cannot be
        turned into one
    """
    values = {
        field: field_value(projected, field, policy, use_defaults=True)
        for field in PROFILE_ATTRIBUTES
    }

    for field in MANDATORY_FIELDS:
        if field != "username" and not values.get(field):
            context.error(ErrorCode.MISSING_FIELD, field=field)
            return None

    record = UserRecord(
        username=username,
        host_id=site.local_host_id,
        confirmed=True,
        time_created=now,
        time_modified=now,
        profile_fields={name: value for name, value in profile_fields.items() if value},
        **values,
    )

    raw_suspended = projected.get("suspended", "")
    record.suspended = is_truthy(raw_suspended) if raw_suspended else False

    record.auth = projected.get("auth") or site.default_auth
    try:
        plugin = auth_registry.resolve(record.auth)
    except AuthPluginUnavailableError:
        context.error(ErrorCode.AUTH_PLUGIN_UNAVAILABLE, auth=record.auth)
        return None
    if not auth_registry.is_enabled(record.auth):
        context.status(StatusCode.UNSUPPORTED_AUTH, auth=record.auth)

    accept_email(record.email, None, policy, lookup, context)

    if record.lang and not accept_lang(record.lang, site, context):
        record.lang = ""

    if plugin.is_internal:
        password = projected.get("password", "")
        if password:
            record.password = prepare_password(password, policy, site, hasher, context)
        elif policy.password_mode is PasswordMode.GENERATE:
            record.password = PASSWORD_TO_BE_GENERATED
            context.create_password = True
        else:
            context.error(ErrorCode.MISSING_FIELD, field="password")
            return None
    else:
        record.password = PASSWORD_NOT_CACHED

    return record
