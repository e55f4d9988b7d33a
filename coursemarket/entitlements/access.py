"""Entitlement checks.

A user may read a course's lectures when any of these hold:
- role is ADMIN
- main role is SUPERADMIN
- the course id is in the user's subscription set
"""

from typing import NamedTuple
from uuid import UUID

from coursemarket.auth.models import User
from coursemarket.core.exceptions import ForbiddenError


NOT_SUBSCRIBED = "not subscribed"


class AccessDecision(NamedTuple):
    """Outcome of an entitlement check."""

    allowed: bool
    reason: str | None = None


class AccessDeniedError(ForbiddenError):
    """User is not entitled to the course."""

    def __init__(self, message: str = "You have not subscribed to this course"):
        super().__init__(message, "not_subscribed")


def check_access(user: User, course_id: UUID) -> AccessDecision:
    """Decide whether the user may read the course's lectures."""
    if user.is_admin or user.is_subscribed(course_id):
        return AccessDecision(allowed=True)
    return AccessDecision(allowed=False, reason=NOT_SUBSCRIBED)


def ensure_access(user: User, course_id: UUID) -> None:
    """Raise AccessDeniedError unless the user may read the course."""
    if not check_access(user, course_id).allowed:
        raise AccessDeniedError
