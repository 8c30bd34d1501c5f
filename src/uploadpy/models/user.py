"""User data models for the user directory."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

# Profile attributes that map one to one onto upload columns
PROFILE_ATTRIBUTES: tuple[str, ...] = (
    "email",
    "firstname",
    "lastname",
    "city",
    "country",
    "lang",
    "timezone",
    "mailformat",
    "maildisplay",
    "maildigest",
    "htmleditor",
    "autosubscribe",
    "institution",
    "department",
    "idnumber",
    "skype",
    "msn",
    "aim",
    "yahoo",
    "icq",
    "phone1",
    "phone2",
    "address",
    "url",
    "description",
    "descriptionformat",
)

# Password placeholders stored instead of a hash
PASSWORD_TO_BE_GENERATED = "to be generated"
PASSWORD_NOT_CACHED = "not cached"


@dataclass
class UserRecord:
    """A user as stored in the directory, or as the engine intends to store it.

    Records handed out by a lookup are never modified in place; merges work
    on copies made with :func:`dataclasses.replace`.
    """

    username: str
    host_id: int = 1
    id: int | None = None
    auth: str = "manual"
    suspended: bool = False
    confirmed: bool = False
    password: str = ""
    email: str = ""
    firstname: str = ""
    lastname: str = ""
    city: str = ""
    country: str = ""
    lang: str = ""
    timezone: str = ""
    mailformat: str = ""
    maildisplay: str = ""
    maildigest: str = ""
    htmleditor: str = ""
    autosubscribe: str = ""
    institution: str = ""
    department: str = ""
    idnumber: str = ""
    skype: str = ""
    msn: str = ""
    aim: str = ""
    yahoo: str = ""
    icq: str = ""
    phone1: str = ""
    phone2: str = ""
    address: str = ""
    url: str = ""
    description: str = ""
    descriptionformat: str = ""
    is_admin: bool = False
    is_guest: bool = False
    time_created: datetime | None = None
    time_modified: datetime | None = None
    profile_fields: dict[str, str] = field(default_factory=dict)

    @property
    def identity(self) -> tuple[str, int]:
        """Natural key of the record: username plus host id."""
        return self.username, self.host_id

    def get(self, name: str) -> Any:
        """Return a profile attribute by upload column name."""
        return getattr(self, name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserRecord":
        """Create a UserRecord from its serialised form.

        Unknown keys are ignored so directory files written by newer
        versions still load.

        Args:
            data: Record data as written by :meth:`to_dict`

        Returns:
            UserRecord: Parsed record
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}

        for stamp in ("time_created", "time_modified"):
            if values.get(stamp):
                try:
                    values[stamp] = datetime.fromisoformat(values[stamp])
                except (ValueError, TypeError):
                    values[stamp] = None

        values["profile_fields"] = dict(values.get("profile_fields") or {})
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert UserRecord to dictionary format.

        Returns:
            Dict[str, Any]: Record data as dictionary
        """
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, dict):
                value = dict(value)
            data[f.name] = value
        return data

    def summary(self) -> dict[str, str]:
        """Fields echoed back to the run tracker for this user."""
        return {
            "username": self.username,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "id": "" if self.id is None else str(self.id),
        }
