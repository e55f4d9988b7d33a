"""Database models for lecture progress.

One row per (user, course) pair, partitioned by user so that a user's rows
sit together. Completed lecture ids are a Cassandra ``SET``: adding an id
that is already present is a no-op in the store.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from coursemarket.auth.models import ensure_utc_aware


PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_progress (
    user_id UUID,
    course_id UUID,
    id UUID,
    completed_lectures SET<UUID>,
    created_at TIMESTAMP,
    PRIMARY KEY ((user_id), course_id)
)
"""

PROGRESS_TABLES_CQL = [PROGRESS_TABLE_CQL]


class Progress:
    """Progress record for one user in one course.

    Attributes:
        id: Record identifier
        user_id: Owning user
        course_id: Tracked course
        completed_lectures: Ids of lectures marked complete
        created_at: Creation timestamp (set when the course is purchased)
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        completed_lectures: set[UUID] | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.user_id = user_id
        self.course_id = course_id
        self.completed_lectures: set[UUID] = set(completed_lectures or ())
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    def has_completed(self, lecture_id: UUID) -> bool:
        return lecture_id in self.completed_lectures

    @classmethod
    def from_row(cls, row: Any) -> "Progress":
        """Create Progress instance from Cassandra row."""
        return cls(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            completed_lectures=set(row.completed_lectures or ()),
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<Progress user={self.user_id} course={self.course_id} "
            f"completed={len(self.completed_lectures)}>"
        )
