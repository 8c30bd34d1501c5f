"""Password utilities: strength policy checks and one-way hashing."""

from werkzeug.security import generate_password_hash

from ..models.config import PasswordPolicy
from .validators import ValidationResult


def check_password_policy(password: str, policy: PasswordPolicy) -> ValidationResult:
    """Check a password against the site password policy.

    Args:
        password: Plaintext password
        policy: Site password policy

    Returns:
        ValidationResult: Invalid when the password is weak, with one warning
        per unmet rule
    """
    result = ValidationResult(is_valid=True)
    if not policy.enabled:
        return result

    if len(password) < policy.min_length:
        result.add_warning(f"Passwords must be at least {policy.min_length} characters")
    if sum(ch.isdigit() for ch in password) < policy.min_digits:
        result.add_warning(f"Passwords must have at least {policy.min_digits} digit(s)")
    if sum(ch.islower() for ch in password) < policy.min_lower:
        result.add_warning(
            f"Passwords must have at least {policy.min_lower} lower case letter(s)"
        )
    if sum(ch.isupper() for ch in password) < policy.min_upper:
        result.add_warning(
            f"Passwords must have at least {policy.min_upper} upper case letter(s)"
        )
    if sum(not ch.isalnum() for ch in password) < policy.min_nonalnum:
        result.add_warning(
            f"Passwords must have at least {policy.min_nonalnum} "
            "non-alphanumeric character(s)"
        )

    if result.warnings:
        result.is_valid = False
        result.error_message = "; ".join(result.warnings)
    return result


def hash_password(plaintext: str) -> str:
    """Hash a password for storage in the directory."""
    return generate_password_hash(plaintext)
