"""Role-based access control.

Two regular roles plus an override:
- USER: registered learner, sees lectures of subscribed courses only
- ADMIN: manages courses and lectures, sees every lecture
- SUPERADMIN: stored as the user's *main role*; may additionally toggle
  other users between USER and ADMIN
"""

from enum import Enum


class UserRole(str, Enum):
    """Regular user roles (the ``role`` column)."""

    USER = "user"
    ADMIN = "admin"


class MainRole(str, Enum):
    """Role override (the ``main_role`` column)."""

    SUPERADMIN = "superadmin"


def is_superadmin(main_role: MainRole | str | None) -> bool:
    """Check if the main role is SUPERADMIN."""
    if main_role is None:
        return False
    return MainRole.SUPERADMIN.value == (
        main_role.value if isinstance(main_role, MainRole) else main_role
    )


def is_admin(role: UserRole | str, main_role: MainRole | str | None = None) -> bool:
    """Check if a user has admin privileges (ADMIN role or SUPERADMIN override).

    Examples:
        >>> is_admin("admin")
        True
        >>> is_admin("user", "superadmin")
        True
        >>> is_admin("user")
        False
    """
    if is_superadmin(main_role):
        return True
    if isinstance(role, UserRole):
        return role == UserRole.ADMIN
    return role == UserRole.ADMIN.value


def toggled_role(role: UserRole | str) -> UserRole:
    """Return the role a USER/ADMIN toggle produces.

    Raises:
        ValueError: If the role is not one of the toggleable roles.
    """
    current = UserRole(role)
    return UserRole.ADMIN if current == UserRole.USER else UserRole.USER
