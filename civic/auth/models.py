"""Role model for platform users."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Platform roles: admin > moderator > council_member > staff > resident."""

    admin = "admin"
    moderator = "moderator"
    council_member = "council_member"
    staff = "staff"
    resident = "resident"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more privileges)."""
        return {
            Role.admin: 50,
            Role.moderator: 40,
            Role.council_member: 30,
            Role.staff: 20,
            Role.resident: 10,
        }[self]

    @property
    def can_view_raw(self) -> bool:
        """Whether this role may see raw (unredacted) comment bodies."""
        return self.level >= Role.staff.level


@dataclass
class User:
    """The identity attached to a request."""

    id: str
    role: Role = Role.resident
    name: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.role, str):
            self.role = Role(self.role)
