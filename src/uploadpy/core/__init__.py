"""Core functionality: errors, configuration, collaborators and the directory."""

from uploadpy.core.exceptions import (
    AuthPluginUnavailableError,
    ConfigError,
    ContractViolationError,
    FileOperationError,
    StoreError,
    UploadPyError,
    ValidationError,
)
from uploadpy.core.auth_plugins import AuthPlugin, AuthRegistry
from uploadpy.core.config import (
    check_env_file,
    get_env_config,
    load_site_config,
    validate_env_var,
)
from uploadpy.core.directory import JsonUserDirectory, UserDirectory
from uploadpy.core.interfaces import (
    AuthRegistryProtocol,
    DirectiveStoreProtocol,
    RunTrackerProtocol,
    UserLookupProtocol,
    UserStoreProtocol,
)

__all__ = [
    # Exceptions
    "UploadPyError",
    "ConfigError",
    "ValidationError",
    "FileOperationError",
    "StoreError",
    "AuthPluginUnavailableError",
    "ContractViolationError",
    # Authentication methods
    "AuthPlugin",
    "AuthRegistry",
    # Configuration
    "check_env_file",
    "get_env_config",
    "load_site_config",
    "validate_env_var",
    # Directory
    "UserDirectory",
    "JsonUserDirectory",
    # Protocols
    "UserLookupProtocol",
    "AuthRegistryProtocol",
    "UserStoreProtocol",
    "DirectiveStoreProtocol",
    "RunTrackerProtocol",
]
