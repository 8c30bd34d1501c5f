"""Per-run upload policy models."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..core.exceptions import ValidationError
from .schema import IDENTITY_FIELDS, VALID_FIELDS


class ImportMode(Enum):
    """What to do with rows depending on whether the user exists."""

    CREATE_NEW = "createnew"
    CREATE_ALL = "createall"
    CREATE_OR_UPDATE = "createorupdate"
    UPDATE_ONLY = "update"


class UpdateMode(Enum):
    """How existing users are updated."""

    NOTHING = "nothing"
    DATA_ONLY = "dataonly"
    DATA_OR_DEFAULTS = "dataordefaults"
    MISSING_ONLY = "missingonly"


class PasswordMode(Enum):
    """Where passwords of new internal-auth users come from."""

    GENERATE = "generate"
    FIELD = "field"


class ForcePasswordChange(Enum):
    """Which new or updated passwords must be changed at next login."""

    NONE = "none"
    WEAK = "weak"
    ALL = "all"


def _parse_enum(enum_cls: type[Enum], value: Any, option: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {option}",
            field=option,
            value=str(value),
            details=f"Choose one of: {choices}",
        ) from None


@dataclass(frozen=True)
class Policy:
    """Operating parameters for one upload run.

    Built once when the run starts and shared read-only by every row.
    ``defaults`` holds operator-chosen default field values used by the
    data-or-defaults update modes and when creating users.
    """

    import_mode: ImportMode
    update_mode: UpdateMode = UpdateMode.NOTHING
    password_mode: PasswordMode = PasswordMode.GENERATE
    force_password_change: ForcePasswordChange = ForcePasswordChange.NONE
    allow_renames: bool = False
    allow_deletes: bool = False
    allow_suspends: bool = True
    standardise_usernames: bool = True
    update_password: bool = False
    no_email_duplicates: bool = True
    defaults: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Freeze the defaults table and reject identity defaults."""
        for name in self.defaults:
            if name not in VALID_FIELDS or name in IDENTITY_FIELDS:
                raise ValidationError(
                    "Defaults can only be set for profile fields", field=name
                )
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    @classmethod
    def from_options(
        cls,
        mode: str,
        update_mode: str = "nothing",
        password_mode: str = "generate",
        force_password_change: str = "none",
        **flags: Any,
    ) -> "Policy":
        """Create a policy from command-line style option values.

        Args:
            mode: createnew, createall, createorupdate or update
            update_mode: nothing, dataonly, dataordefaults or missingonly
            password_mode: generate or field
            force_password_change: none, weak or all
            **flags: Boolean switches and ``defaults``

        Returns:
            Policy: Validated policy

        Raises:
            ValidationError: If any option value is unknown
        """
        import_mode = _parse_enum(ImportMode, mode, "mode")
        parsed_update_mode = _parse_enum(UpdateMode, update_mode, "update mode")

        return cls(
            import_mode=import_mode,
            update_mode=parsed_update_mode,
            password_mode=_parse_enum(PasswordMode, password_mode, "password mode"),
            force_password_change=_parse_enum(
                ForcePasswordChange, force_password_change, "force password change"
            ),
            **flags,
        )

    @property
    def can_update(self) -> bool:
        """Whether existing users may be updated under this policy."""
        return (
            self.import_mode in (ImportMode.UPDATE_ONLY, ImportMode.CREATE_OR_UPDATE)
            and self.update_mode is not UpdateMode.NOTHING
        )

    @property
    def can_create(self) -> bool:
        """Whether new users may be created under this policy."""
        return self.import_mode is not ImportMode.UPDATE_ONLY

    def to_dict(self) -> dict[str, Any]:
        """Convert policy to dictionary format for logging.

        Returns:
            Dict[str, Any]: Policy as dictionary
        """
        return {
            "import_mode": self.import_mode.value,
            "update_mode": self.update_mode.value,
            "password_mode": self.password_mode.value,
            "force_password_change": self.force_password_change.value,
            "allow_renames": self.allow_renames,
            "allow_deletes": self.allow_deletes,
            "allow_suspends": self.allow_suspends,
            "standardise_usernames": self.standardise_usernames,
            "update_password": self.update_password,
            "no_email_duplicates": self.no_email_duplicates,
            "defaults": dict(self.defaults),
        }
