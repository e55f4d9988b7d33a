"""Database models for users.

The subscription set lives on the user row as a ``SET<UUID>`` so that a
membership test is a single partition read. A secondary index on the set
values answers "who is subscribed to course X" for cascading deletes.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from coursemarket.auth.permissions import UserRole, is_admin, is_superadmin


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    name TEXT,
    email TEXT,
    password_hash TEXT,
    role TEXT,
    main_role TEXT,
    subscription SET<UUID>,
    created_at TIMESTAMP
)
"""

USER_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_email_idx ON {keyspace}.users (email)
"""

USER_SUBSCRIPTION_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_subscription_idx
ON {keyspace}.users (VALUES(subscription))
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_EMAIL_INDEX_CQL,
    USER_SUBSCRIPTION_INDEX_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class User:
    """User entity.

    Attributes:
        id: Unique identifier
        name: Display name
        email: Lower-cased email, unique by lookup
        password_hash: Argon2id hash
        role: ``user`` or ``admin``
        main_role: ``superadmin`` override or None
        subscription: Ids of courses the user is entitled to
        created_at: Registration timestamp
    """

    def __init__(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: str = UserRole.USER.value,
        main_role: str | None = None,
        subscription: set[UUID] | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.name = name
        self.email = email
        self.password_hash = password_hash
        self.role = role
        self.main_role = main_role
        self.subscription: set[UUID] = set(subscription or ())
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @property
    def is_admin(self) -> bool:
        """Admin privileges (ADMIN role or SUPERADMIN override)."""
        return is_admin(self.role, self.main_role)

    @property
    def is_superadmin(self) -> bool:
        """SUPERADMIN override present."""
        return is_superadmin(self.main_role)

    def is_subscribed(self, course_id: UUID) -> bool:
        """Check if the course id is in the subscription set."""
        return course_id in self.subscription

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            name=row.name or "",
            email=row.email,
            password_hash=row.password_hash,
            role=row.role or UserRole.USER.value,
            main_role=row.main_role,
            subscription=set(row.subscription or ()),
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
