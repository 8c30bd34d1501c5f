"""Configuration data models for the user upload tool."""

from dataclasses import dataclass, field
from typing import Any


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _as_int(value: str | None, default: int, name: str) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class PasswordPolicy:
    """Password strength rules applied to uploaded passwords."""

    enabled: bool = True
    min_length: int = 8
    min_digits: int = 1
    min_lower: int = 1
    min_upper: int = 1
    min_nonalnum: int = 1

    @classmethod
    def from_env_vars(cls, env_vars: dict[str, str]) -> "PasswordPolicy":
        """Create PasswordPolicy from environment variables.

        Args:
            env_vars: Dictionary of environment variables

        Returns:
            PasswordPolicy: Policy instance
        """

        def setting(name: str, default: int) -> int:
            key = f"UPLOADPY_PASSWORD_{name}"
            return _as_int(env_vars.get(key), default, key)

        return cls(
            enabled=_as_bool(env_vars.get("UPLOADPY_PASSWORD_POLICY"), True),
            min_length=setting("MIN_LENGTH", 8),
            min_digits=setting("MIN_DIGITS", 1),
            min_lower=setting("MIN_LOWER", 1),
            min_upper=setting("MIN_UPPER", 1),
            min_nonalnum=setting("MIN_NONALNUM", 1),
        )


@dataclass
class SiteConfig:
    """Settings of the site users are uploaded into."""

    local_host_id: int = 1
    default_auth: str = "manual"
    enabled_auths: tuple[str, ...] = ("manual", "nologin", "email")
    locales: tuple[str, ...] = ("en",)
    extended_username_chars: bool = False
    admin_usernames: tuple[str, ...] = ("admin",)
    guest_username: str = "guest"
    password_policy: PasswordPolicy = field(default_factory=PasswordPolicy)

    @classmethod
    def from_env_vars(cls, env_vars: dict[str, str]) -> "SiteConfig":
        """Create SiteConfig from environment variables.

        Args:
            env_vars: Dictionary of environment variables

        Returns:
            SiteConfig: Configuration instance

        Raises:
            ValueError: If a numeric setting is not a number
        """
        return cls(
            local_host_id=_as_int(
                env_vars.get("UPLOADPY_LOCAL_HOST_ID"), 1, "UPLOADPY_LOCAL_HOST_ID"
            ),
            default_auth=(env_vars.get("UPLOADPY_DEFAULT_AUTH") or "manual").strip(),
            enabled_auths=_as_list(
                env_vars.get("UPLOADPY_ENABLED_AUTHS"), ("manual", "nologin", "email")
            ),
            locales=_as_list(env_vars.get("UPLOADPY_LOCALES"), ("en",)),
            extended_username_chars=_as_bool(
                env_vars.get("UPLOADPY_EXTENDED_USERNAME_CHARS"), False
            ),
            admin_usernames=_as_list(
                env_vars.get("UPLOADPY_ADMIN_USERNAMES"), ("admin",)
            ),
            guest_username=(env_vars.get("UPLOADPY_GUEST_USERNAME") or "guest").strip(),
            password_policy=PasswordPolicy.from_env_vars(env_vars),
        )

    def is_admin_username(self, username: str) -> bool:
        return username in self.admin_usernames

    def is_guest_username(self, username: str) -> bool:
        return username == self.guest_username

    def validate(self) -> bool:
        """Validate that the settings are usable.

        Returns:
            bool: True if configuration is valid
        """
        if self.local_host_id < 1:
            return False

        if not self.enabled_auths or self.default_auth not in self.enabled_auths:
            return False

        if not self.locales:
            return False

        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary format.

        Returns:
            Dict[str, Any]: Configuration as dictionary
        """
        return {
            "local_host_id": self.local_host_id,
            "default_auth": self.default_auth,
            "enabled_auths": list(self.enabled_auths),
            "locales": list(self.locales),
            "extended_username_chars": self.extended_username_chars,
            "admin_usernames": list(self.admin_usernames),
            "guest_username": self.guest_username,
            "password_policy": {
                "enabled": self.password_policy.enabled,
                "min_length": self.password_policy.min_length,
                "min_digits": self.password_policy.min_digits,
                "min_lower": self.password_policy.min_lower,
                "min_upper": self.password_policy.min_upper,
                "min_nonalnum": self.password_policy.min_nonalnum,
            },
        }


@dataclass
class AppConfig:
    """Main application configuration."""

    site: SiteConfig
    debug: bool = False

    @classmethod
    def create_from_env(cls, env_vars: dict[str, str]) -> "AppConfig":
        """Create application configuration from environment variables.

        Args:
            env_vars: Dictionary of environment variables

        Returns:
            AppConfig: Application configuration
        """
        return cls(
            site=SiteConfig.from_env_vars(env_vars),
            debug=_as_bool(env_vars.get("UPLOADPY_DEBUG"), False),
        )

    def validate(self) -> bool:
        """Validate the entire application configuration."""
        return self.site.validate()

    def to_dict(self) -> dict[str, Any]:
        """Convert entire config to dictionary format."""
        return {"site": self.site.to_dict(), "debug": self.debug}
