# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""User persistence on Cassandra."""

from typing import TYPE_CHECKING
from uuid import UUID

from coursemarket.auth.models import User


if TYPE_CHECKING:
    from cassandra.cluster import Session


class UserRepository:
    """CRUD and subscription-set updates for users."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, name, email, password_hash, role, main_role, subscription, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_user_by_email = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE email = ?"
        )
        self._list_users = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users"
        )
        self._count_users = self.session.prepare(
            f"SELECT COUNT(*) FROM {self.keyspace}.users"
        )
        self._update_role = self.session.prepare(
            f"UPDATE {self.keyspace}.users SET role = ? WHERE id = ?"
        )
        self._find_subscribers = self.session.prepare(
            f"SELECT id FROM {self.keyspace}.users WHERE subscription CONTAINS ?"
        )
        self._remove_subscription = self.session.prepare(
            f"UPDATE {self.keyspace}.users SET subscription = subscription - ? WHERE id = ?"
        )

    async def create(self, user: User) -> User:
        """Insert a new user row."""
        await self.session.aexecute(
            self._insert_user,
            [
                user.id,
                user.name,
                user.email,
                user.password_hash,
                user.role,
                user.main_role,
                user.subscription,
                user.created_at,
            ],
        )
        return user

    async def get(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        result = await self.session.aexecute(self._get_user_by_id, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def get_by_email(self, email: str) -> User | None:
        """Get user by (lower-cased) email."""
        result = await self.session.aexecute(self._get_user_by_email, [email.lower()])
        row = result.one()
        return User.from_row(row) if row else None

    async def list_all(self, exclude_id: UUID | None = None) -> list[User]:
        """List users, optionally leaving one out.

        Note: Full table scan; acceptable for the admin user list.
        """
        rows = await self.session.aexecute(self._list_users)
        return [User.from_row(row) for row in rows if row.id != exclude_id]

    async def count(self) -> int:
        """Count all users."""
        result = await self.session.aexecute(self._count_users)
        row = result.one()
        return row.count if row else 0

    async def update_role(self, user_id: UUID, role: str) -> None:
        """Overwrite the user's role."""
        await self.session.aexecute(self._update_role, [role, user_id])

    async def find_subscribers(self, course_id: UUID) -> list[UUID]:
        """Ids of every user whose subscription set contains the course."""
        rows = await self.session.aexecute(self._find_subscribers, [course_id])
        return [row.id for row in rows]

    async def remove_subscription(self, user_id: UUID, course_id: UUID) -> None:
        """Remove one course id from the user's subscription set."""
        await self.session.aexecute(self._remove_subscription, [{course_id}, user_id])
