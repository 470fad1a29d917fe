"""Role-based access control.

Two roles:
- ADMIN (level 1): Manages the catalog and sees every enrollment
- STUDENT (level 0): Enrolls in published courses and tracks progress
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles. Higher level = more permissions."""

    STUDENT = "student"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 0,
    UserRole.ADMIN: 1,
}


def parse_role(role: UserRole | str | None) -> UserRole:
    """Coerce a claim value into a role, defaulting to STUDENT."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return UserRole.STUDENT


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role (unknown roles are level 0)."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.STUDENT)
        True
        >>> has_permission("student", "admin")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str) -> bool:
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN
