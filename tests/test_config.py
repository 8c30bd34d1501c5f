"""Tests for environment configuration."""

import os
from unittest.mock import patch

import pytest

from uploadpy.core.config import (
    SITE_ENV_VARS,
    check_env_file,
    get_env_config,
    load_site_config,
    validate_env_var,
)
from uploadpy.core.exceptions import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    """Environment without any uploadpy settings and no .env loading."""
    for name in SITE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch("uploadpy.core.config.check_env_file"):
        yield monkeypatch


class TestValidateEnvVar:
    def test_unset(self):
        assert validate_env_var("UPLOADPY_LOCAL_HOST_ID", None) is None
        assert validate_env_var("UPLOADPY_LOCAL_HOST_ID", "  ") is None

    def test_number(self):
        assert validate_env_var("UPLOADPY_LOCAL_HOST_ID", " 3 ") == "3"

    def test_not_a_number(self):
        with pytest.raises(ConfigError, match="non-negative integer"):
            validate_env_var("UPLOADPY_LOCAL_HOST_ID", "-1")


class TestGetEnvConfig:
    """Test reading settings from the environment."""

    def test_empty(self, clean_env):
        assert get_env_config() == {}

    def test_reads_settings(self, clean_env):
        clean_env.setenv("UPLOADPY_LOCALES", " en,fi ")
        clean_env.setenv("UPLOADPY_PASSWORD_MIN_LENGTH", "10")

        assert get_env_config() == {
            "UPLOADPY_LOCALES": "en,fi",
            "UPLOADPY_PASSWORD_MIN_LENGTH": "10",
        }

    def test_invalid_number(self, clean_env):
        clean_env.setenv("UPLOADPY_PASSWORD_MIN_DIGITS", "many")

        with pytest.raises(ConfigError):
            get_env_config()


class TestLoadSiteConfig:
    """Test building the validated site configuration."""

    def test_defaults(self, clean_env):
        site = load_site_config()

        assert site.local_host_id == 1
        assert site.default_auth == "manual"
        assert site.admin_usernames == ("admin",)

    def test_from_environment(self, clean_env):
        clean_env.setenv("UPLOADPY_DEFAULT_AUTH", "email")
        clean_env.setenv("UPLOADPY_GUEST_USERNAME", "visitor")

        site = load_site_config()

        assert site.default_auth == "email"
        assert site.is_guest_username("visitor")

    def test_default_auth_not_enabled(self, clean_env):
        """Test that the default auth method must be enabled."""
        clean_env.setenv("UPLOADPY_ENABLED_AUTHS", "manual")
        clean_env.setenv("UPLOADPY_DEFAULT_AUTH", "ldap")

        with pytest.raises(ConfigError, match="not enabled"):
            load_site_config()

    def test_host_id_zero(self, clean_env):
        clean_env.setenv("UPLOADPY_LOCAL_HOST_ID", "0")

        with pytest.raises(ConfigError, match="at least 1"):
            load_site_config()


class TestCheckEnvFile:
    def test_loads_env_file(self, tmp_path, monkeypatch):
        """Test that a .env file is loaded into the environment."""
        monkeypatch.setenv("UPLOADPY_GUEST_USERNAME", "guest")
        monkeypatch.delenv("UPLOADPY_GUEST_USERNAME")
        env_file = tmp_path / ".env"
        env_file.write_text("UPLOADPY_GUEST_USERNAME=visitor\n", encoding="utf-8")

        check_env_file(str(env_file))

        assert os.environ["UPLOADPY_GUEST_USERNAME"] == "visitor"

    def test_missing_env_file(self, tmp_path):
        check_env_file(str(tmp_path / ".env"))
