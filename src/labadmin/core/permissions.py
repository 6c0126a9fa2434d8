"""Role levels for program staff and the admin gate used by bulk operations."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Staff roles, highest privilege first."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    LEAD_INSTRUCTOR = "lead_instructor"
    INSTRUCTOR = "instructor"
    GUEST = "guest"


ROLE_LEVELS: dict[str, int] = {
    Role.SUPERADMIN.value: 5,
    Role.ADMIN.value: 4,
    Role.LEAD_INSTRUCTOR.value: 3,
    Role.INSTRUCTOR.value: 2,
    Role.GUEST.value: 1,
}


def get_role_level(role: Role | str) -> int:
    """Numeric level for a role; unknown roles get 0."""
    value = role.value if isinstance(role, Role) else role
    return ROLE_LEVELS.get(value, 0)


def has_min_role(role: Role | str, required: Role) -> bool:
    return get_role_level(role) >= ROLE_LEVELS[required.value]


def can_access_admin(role: Role | str) -> bool:
    return has_min_role(role, Role.ADMIN)


@dataclass(frozen=True)
class Actor:
    """The authenticated staff member a bulk operation is performed for."""

    email: str
    role: str
    user_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return can_access_admin(self.role)
