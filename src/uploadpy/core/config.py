"""Configuration utilities for the upload site settings."""

import os
from typing import Any

import dotenv

from ..models.config import AppConfig, SiteConfig
from .exceptions import ConfigError

# Environment variables read into the site settings
SITE_ENV_VARS = (
    "UPLOADPY_LOCAL_HOST_ID",
    "UPLOADPY_DEFAULT_AUTH",
    "UPLOADPY_ENABLED_AUTHS",
    "UPLOADPY_LOCALES",
    "UPLOADPY_EXTENDED_USERNAME_CHARS",
    "UPLOADPY_ADMIN_USERNAMES",
    "UPLOADPY_GUEST_USERNAME",
    "UPLOADPY_PASSWORD_POLICY",
    "UPLOADPY_PASSWORD_MIN_LENGTH",
    "UPLOADPY_PASSWORD_MIN_DIGITS",
    "UPLOADPY_PASSWORD_MIN_LOWER",
    "UPLOADPY_PASSWORD_MIN_UPPER",
    "UPLOADPY_PASSWORD_MIN_NONALNUM",
    "UPLOADPY_DEBUG",
)

# Settings that must be non-negative integers when given
NUMERIC_ENV_VARS = (
    "UPLOADPY_LOCAL_HOST_ID",
    "UPLOADPY_PASSWORD_MIN_LENGTH",
    "UPLOADPY_PASSWORD_MIN_DIGITS",
    "UPLOADPY_PASSWORD_MIN_LOWER",
    "UPLOADPY_PASSWORD_MIN_UPPER",
    "UPLOADPY_PASSWORD_MIN_NONALNUM",
)


def check_env_file(env_path: str = ".env") -> None:
    """Check if .env file exists and load it."""
    if os.path.exists(env_path):
        dotenv.load_dotenv(env_path)


def validate_env_var(name: str, value: str | None) -> str | None:
    """Validate an optional numeric environment variable.

    Args:
        name: Environment variable name
        value: Environment variable value

    Returns:
        str | None: The stripped value, or None when unset

    Raises:
        ConfigError: If the value is set but not a non-negative integer
    """
    if value is None or not value.strip():
        return None

    value = value.strip()
    if not value.isdigit():
        raise ConfigError(
            f"Environment variable {name} must be a non-negative integer",
            details=f"Got {value!r}",
        )

    return value


def get_env_config() -> dict[str, Any]:
    """Get upload site settings from environment variables.

    Returns:
        Dict[str, Any]: Settings keyed by environment variable name, unset
        variables omitted

    Raises:
        ConfigError: If a numeric setting is invalid
    """
    check_env_file()

    config: dict[str, Any] = {}
    for name in SITE_ENV_VARS:
        value = os.getenv(name)
        if name in NUMERIC_ENV_VARS:
            value = validate_env_var(name, value)
        if value:
            config[name] = value.strip()

    return config


def load_site_config() -> SiteConfig:
    """Build and validate the site configuration from the environment.

    Returns:
        SiteConfig: Validated site configuration

    Raises:
        ConfigError: If the settings are unusable
    """
    app_config = AppConfig.create_from_env(get_env_config())
    site = app_config.site

    if site.local_host_id < 1:
        raise ConfigError("UPLOADPY_LOCAL_HOST_ID must be at least 1")

    if site.default_auth not in site.enabled_auths:
        raise ConfigError(
            f"Default authentication method {site.default_auth!r} is not enabled",
            details=f"Enabled: {', '.join(site.enabled_auths)}",
        )

    if not app_config.validate():
        raise ConfigError("Invalid site configuration", details=str(site.to_dict()))

    return site
