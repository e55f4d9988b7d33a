"""Database models for the course catalogue.

Cassandra table definitions for:
- Courses: priced catalogue entries with an optional cover image
- Lectures: video lessons owned by exactly one course

Lectures are looked up by course through a secondary index on ``course_id``.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from coursemarket.auth.models import ensure_utc_aware
from coursemarket.storage.schemas import UploadedMedia


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    category TEXT,
    created_by UUID,
    price DECIMAL,
    duration INT,
    image_url TEXT,
    image_handle TEXT,
    created_at TIMESTAMP
)
"""

LECTURE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lectures (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    video_url TEXT,
    video_handle TEXT,
    course_id UUID,
    created_at TIMESTAMP
)
"""

LECTURE_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS lectures_course_idx ON {keyspace}.lectures (course_id)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    LECTURE_TABLE_CQL,
    LECTURE_COURSE_INDEX_CQL,
]


def _media(url: str | None, handle: str | None) -> UploadedMedia | None:
    if url and handle:
        return UploadedMedia(url=url, handle=handle)
    return None


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier (UUID)
        title: Course title
        description: Course description
        category: Free-form category label
        created_by: Id of the admin who created the course
        price: Price in major currency units
        duration: Duration in hours
        image: Cover image, if one was uploaded
        created_at: Creation timestamp
    """

    def __init__(
        self,
        title: str,
        description: str = "",
        category: str = "",
        created_by: UUID | None = None,
        price: Decimal = Decimal(0),
        duration: int = 0,
        image: UploadedMedia | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.category = category
        self.created_by = created_by
        self.price = Decimal(price)
        self.duration = duration
        self.image = image
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description or "",
            category=row.category or "",
            created_by=row.created_by,
            price=row.price if row.price is not None else Decimal(0),
            duration=row.duration or 0,
            image=_media(row.image_url, row.image_handle),
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Course {self.title} ({self.price})>"


class Lecture:
    """Lecture entity.

    Attributes:
        id: Unique identifier (UUID)
        title: Lecture title
        description: Lecture description
        video: Uploaded video, if any
        course_id: Owning course
        created_at: Creation timestamp
    """

    def __init__(
        self,
        title: str,
        course_id: UUID,
        description: str = "",
        video: UploadedMedia | None = None,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.video = video
        self.course_id = course_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Lecture":
        """Create Lecture instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description or "",
            video=_media(row.video_url, row.video_handle),
            course_id=row.course_id,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Lecture {self.title} (course={self.course_id})>"
