"""Field checks shared by the create and update paths."""

from collections.abc import Callable

from ..core.interfaces import UserLookupProtocol
from ..models.config import SiteConfig
from ..models.outcome import ErrorCode, StatusCode
from ..models.policy import ForcePasswordChange, Policy
from ..models.row import RowContext
from ..utils.password_utils import check_password_policy
from ..utils.validators import InputValidator


def accept_email(
    email: str,
    exclude_id: int | None,
    policy: Policy,
    lookup: UserLookupProtocol,
    context: RowContext,
) -> bool:
    """Check a new email address for duplicates and shape.

    A duplicate is fatal when the policy forbids duplicates and advisory
    otherwise; a malformed address is always advisory.

    Returns:
        bool: Whether the address may be written to the record
    """
    if lookup.email_owned_by_other(email, exclude_id):
        if policy.no_email_duplicates:
            context.error(ErrorCode.EMAIL_DUPLICATE)
            return False
        context.status(StatusCode.EMAIL_DUPLICATE)

    if not InputValidator.validate_email(email).is_valid:
        context.status(StatusCode.INVALID_EMAIL)

    return True


def accept_lang(lang: str, site: SiteConfig, context: RowContext) -> bool:
    """Check a language code; unknown codes are skipped with an advisory."""
    if InputValidator.is_known_locale(lang, site.locales):
        return True
    context.status(StatusCode.UNKNOWN_LOCALE, lang=lang)
    return False


def prepare_password(
    plaintext: str,
    policy: Policy,
    site: SiteConfig,
    hasher: Callable[[str], str],
    context: RowContext,
) -> str:
    """Apply the strength and forced-change policy to a password and hash it.

    Returns:
        str: Hashed password
    """
    weak = not check_password_policy(plaintext, site.password_policy).is_valid
    if weak:
        context.status(StatusCode.WEAK_PASSWORD)

    force = policy.force_password_change
    if force is ForcePasswordChange.ALL or (force is ForcePasswordChange.WEAK and weak):
        context.force_password_change = True
        context.status(StatusCode.FORCE_PASSWORD_CHANGE)

    return hasher(plaintext)


def field_value(
    projected: dict[str, str], field: str, policy: Policy, use_defaults: bool
) -> str:
    """Row value of a field, falling back to the policy default when allowed."""
    value = projected.get(field, "")
    if not value and use_defaults:
        value = policy.defaults.get(field, "")
    return value
