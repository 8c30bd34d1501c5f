"""Identity validation of upload rows."""

from ..models.config import SiteConfig
from ..models.outcome import ErrorCode, Rejected, error_message
from ..models.policy import Policy
from ..models.row import Identity
from ..utils.validators import InputValidator


def _reject(code: ErrorCode) -> Rejected:
    return Rejected(errors={code: error_message(code)})


def normalise_username(username: str, policy: Policy, site: SiteConfig) -> str:
    """Trim a username and, when the policy asks for it, standardise it."""
    username = (username or "").strip()
    if policy.standardise_usernames:
        username = InputValidator.clean_username(
            username, site.extended_username_chars
        )
    return username


def validate_identity(
    raw: dict[str, str], policy: Policy, site: SiteConfig
) -> Identity | Rejected:
    """Validate the identity columns of a row.

    Checks, in order and stopping at the first failure, the username
    grammar, the host id and the ``id`` column. An empty ``id`` cell counts
    as no id.

    Args:
        raw: Raw row keyed by normalised column name
        policy: Upload policy
        site: Site settings

    Returns:
        Identity | Rejected: Normalised identity, or the rejection
    """
    username = normalise_username(raw.get("username", ""), policy, site)
    if not InputValidator.is_valid_username(username, site.extended_username_chars):
        return _reject(ErrorCode.INVALID_USERNAME)

    raw_host_id = (raw.get("mnethostid") or "").strip()
    if not raw_host_id:
        host_id = site.local_host_id
    elif InputValidator.is_numeric(raw_host_id):
        host_id = int(raw_host_id)
    else:
        return _reject(ErrorCode.HOST_ID_NOT_NUMERIC)

    raw_id = (raw.get("id") or "").strip()
    if raw_id and not InputValidator.is_numeric(raw_id):
        return _reject(ErrorCode.ID_NOT_NUMERIC)

    return Identity(username=username, host_id=host_id)
