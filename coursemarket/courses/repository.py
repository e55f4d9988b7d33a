# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Course and lecture persistence on Cassandra."""

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID

from coursemarket.courses.models import Course, Lecture


if TYPE_CHECKING:
    from cassandra.cluster import Session


class CourseRepository:
    """CRUD for courses."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, category, created_by, price, duration,
             image_url, image_handle, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._list_courses = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses"
        )
        self._count_courses = self.session.prepare(
            f"SELECT COUNT(*) FROM {self.keyspace}.courses"
        )
        self._delete_course = self.session.prepare(
            f"DELETE FROM {self.keyspace}.courses WHERE id = ?"
        )

    async def create(self, course: Course) -> Course:
        """Insert a course row."""
        await self.session.aexecute(
            self._insert_course,
            [
                course.id,
                course.title,
                course.description,
                course.category,
                course.created_by,
                course.price,
                course.duration,
                course.image.url if course.image else None,
                course.image.handle if course.image else None,
                course.created_at,
            ],
        )
        return course

    async def get(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def list_all(self) -> list[Course]:
        """List every course, newest first."""
        rows = await self.session.aexecute(self._list_courses)
        courses = [Course.from_row(row) for row in rows]
        return sorted(courses, key=lambda c: c.created_at, reverse=True)

    async def list_by_ids(self, course_ids: set[UUID]) -> list[Course]:
        """Fetch the given courses, skipping ids that no longer exist."""
        if not course_ids:
            return []
        courses = await asyncio.gather(*(self.get(cid) for cid in course_ids))
        return sorted(
            (c for c in courses if c is not None),
            key=lambda c: c.created_at,
            reverse=True,
        )

    async def count(self) -> int:
        """Count all courses."""
        result = await self.session.aexecute(self._count_courses)
        row = result.one()
        return row.count if row else 0

    async def delete(self, course_id: UUID) -> None:
        """Delete the course row."""
        await self.session.aexecute(self._delete_course, [course_id])


class LectureRepository:
    """CRUD for lectures."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_lecture = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lectures
            (id, title, description, video_url, video_handle, course_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_lecture = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lectures WHERE id = ?"
        )
        self._list_by_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lectures WHERE course_id = ?"
        )
        self._count_lectures = self.session.prepare(
            f"SELECT COUNT(*) FROM {self.keyspace}.lectures"
        )
        self._delete_lecture = self.session.prepare(
            f"DELETE FROM {self.keyspace}.lectures WHERE id = ?"
        )

    async def create(self, lecture: Lecture) -> Lecture:
        """Insert a lecture row."""
        await self.session.aexecute(
            self._insert_lecture,
            [
                lecture.id,
                lecture.title,
                lecture.description,
                lecture.video.url if lecture.video else None,
                lecture.video.handle if lecture.video else None,
                lecture.course_id,
                lecture.created_at,
            ],
        )
        return lecture

    async def get(self, lecture_id: UUID) -> Lecture | None:
        """Get lecture by ID."""
        result = await self.session.aexecute(self._get_lecture, [lecture_id])
        row = result.one()
        return Lecture.from_row(row) if row else None

    async def list_by_course(self, course_id: UUID) -> list[Lecture]:
        """Lectures of a course in creation order."""
        rows = await self.session.aexecute(self._list_by_course, [course_id])
        lectures = [Lecture.from_row(row) for row in rows]
        return sorted(lectures, key=lambda lec: lec.created_at)

    async def count(self) -> int:
        """Count all lectures."""
        result = await self.session.aexecute(self._count_lectures)
        row = result.one()
        return row.count if row else 0

    async def delete(self, lecture_id: UUID) -> None:
        """Delete the lecture row."""
        await self.session.aexecute(self._delete_lecture, [lecture_id])
