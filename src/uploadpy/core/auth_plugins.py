"""Authentication method registry.

Users either keep their password in the directory (internal methods) or
authenticate somewhere else (external methods). The engine only needs to
know which kind a method is and whether the site has it enabled.
"""

from dataclasses import dataclass

from .exceptions import AuthPluginUnavailableError

# Methods whose passwords are stored in the directory
INTERNAL_AUTH_METHODS = ("manual", "nologin", "email")

# Methods that authenticate against an outside service
EXTERNAL_AUTH_METHODS = ("ldap", "cas", "oauth2", "shibboleth", "db")

# Method that blocks every login of the user
NOLOGIN_AUTH = "nologin"


@dataclass(frozen=True)
class AuthPlugin:
    """An installed authentication method."""

    name: str
    is_internal: bool


class AuthRegistry:
    """Registry of installed and enabled authentication methods."""

    def __init__(
        self,
        enabled: tuple[str, ...] | list[str] = INTERNAL_AUTH_METHODS,
        internal: tuple[str, ...] = INTERNAL_AUTH_METHODS,
        external: tuple[str, ...] = EXTERNAL_AUTH_METHODS,
    ):
        self._plugins: dict[str, AuthPlugin] = {}
        for name in internal:
            self._plugins[name] = AuthPlugin(name, is_internal=True)
        for name in external:
            self._plugins[name] = AuthPlugin(name, is_internal=False)
        self._enabled = frozenset(enabled)

    def resolve(self, method: str) -> AuthPlugin:
        """Resolve an authentication method to its plugin.

        Args:
            method: Authentication method name

        Returns:
            AuthPlugin: Installed plugin

        Raises:
            AuthPluginUnavailableError: If the method is not installed
        """
        plugin = self._plugins.get(method)
        if plugin is None:
            raise AuthPluginUnavailableError(method)
        return plugin

    def is_enabled(self, method: str) -> bool:
        return method in self._enabled

    @property
    def installed(self) -> list[str]:
        return sorted(self._plugins)
