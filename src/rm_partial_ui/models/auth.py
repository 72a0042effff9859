"""
Authenticated identity models.

Only these fields are ever persisted between application reloads.
"""

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """The operator acting on RM records."""

    username: str
    display_name: str = ""

    @property
    def label(self) -> str:
        """Return the name shown in the header."""
        return self.display_name or self.username

    def to_dict(self) -> dict[str, str]:
        return {"username": self.username, "display_name": self.display_name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "UserIdentity | None":
        """Deserialize; returns None when no usable username is present."""
        if not isinstance(data, Mapping):
            return None
        username = data.get("username")
        if not isinstance(username, str) or not username.strip():
            return None
        display_name = data.get("display_name")
        return cls(
            username=username.strip(),
            display_name=display_name if isinstance(display_name, str) else "",
        )


@dataclass(frozen=True, slots=True)
class LoginGrant:
    """Credential and identity returned by a successful login."""

    token: str
    user: UserIdentity
