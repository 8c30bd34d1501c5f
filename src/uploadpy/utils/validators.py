"""Input validation utilities for upload rows."""

import re
from dataclasses import dataclass, field


@dataclass
class ValidationResult:
    """Result of a validation operation with detailed feedback."""

    is_valid: bool
    error_message: str | None = None
    warnings: list[str] = field(default_factory=list)

    def add_warning(self, warning: str) -> None:
        """Add a warning to the validation result."""
        self.warnings.append(warning)


class InputValidator:
    """Validation of individual upload values."""

    EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+'-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

    # Characters allowed in usernames unless the site allows extended ones
    USERNAME_DISALLOWED = re.compile(r"[^-.@_a-z0-9]")

    LOCALE_PATTERN = re.compile(r"^[a-z]{2,3}(_[a-z0-9]+)*$")

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Check that an email address has a plausible shape.

        Args:
            email: Email address to validate

        Returns:
            ValidationResult: Validation result
        """
        email = (email or "").strip()
        if not email:
            return ValidationResult(is_valid=False, error_message="Email is empty")

        if len(email) > 254:
            return ValidationResult(
                is_valid=False,
                error_message="Email address too long (maximum 254 characters)",
            )

        if not InputValidator.EMAIL_PATTERN.match(email):
            return ValidationResult(
                is_valid=False, error_message="Invalid email format"
            )

        local_part, domain_part = email.split("@")
        if ".." in email:
            return ValidationResult(
                is_valid=False, error_message="Email contains consecutive dots"
            )
        if local_part.startswith(".") or local_part.endswith("."):
            return ValidationResult(
                is_valid=False,
                error_message="Email local part cannot start or end with a dot",
            )
        if domain_part.startswith(".") or domain_part.startswith("-"):
            return ValidationResult(
                is_valid=False, error_message="Email domain has an invalid start"
            )

        return ValidationResult(is_valid=True)

    @staticmethod
    def clean_username(username: str, extended_chars: bool = False) -> str:
        """Clean a username into the canonical form the directory accepts.

        Lower-cases, removes whitespace and, unless ``extended_chars`` is set,
        drops every character outside ``[a-z0-9_.@-]``.

        Args:
            username: Raw username
            extended_chars: Whether the site allows any character

        Returns:
            str: Cleaned username, possibly empty
        """
        cleaned = re.sub(r"\s+", "", username.strip().lower())
        if not extended_chars:
            cleaned = InputValidator.USERNAME_DISALLOWED.sub("", cleaned)
        return cleaned

    @staticmethod
    def is_valid_username(username: str, extended_chars: bool = False) -> bool:
        """A username is valid when non-empty and already in cleaned form."""
        return bool(username) and username == InputValidator.clean_username(
            username, extended_chars
        )

    @staticmethod
    def is_numeric(value: str) -> bool:
        """Whether a raw value is an integer, optionally signed."""
        return bool(re.fullmatch(r"[+-]?\d+", value.strip()))

    @staticmethod
    def is_known_locale(lang: str, locales: tuple[str, ...] | list[str]) -> bool:
        """Whether a language code is installed on the site."""
        return bool(InputValidator.LOCALE_PATTERN.match(lang)) and lang in locales


FALSE_VALUES = ("0", "false", "no", "n", "off")


def is_truthy(value: str | None) -> bool:
    """Interpret a raw column value as a boolean flag.

    Any non-empty value is set unless it is one of ``FALSE_VALUES``.
    """
    if value is None:
        return False
    cleaned = value.strip().lower()
    return bool(cleaned) and cleaned not in FALSE_VALUES
