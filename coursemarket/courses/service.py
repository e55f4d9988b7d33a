"""Course catalogue service layer.

Business logic for:
- Public course listing and detail
- Entitlement-gated lecture listing and detail
- The caller's purchased courses
"""

from uuid import UUID

from coursemarket.auth.models import User
from coursemarket.auth.repository import UserRepository
from coursemarket.auth.service import UserNotFoundError
from coursemarket.core.exceptions import NotFoundError
from coursemarket.courses.models import Course, Lecture
from coursemarket.courses.repository import CourseRepository, LectureRepository
from coursemarket.entitlements.access import ensure_access


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseNotFoundError(NotFoundError):
    """Course not found."""

    def __init__(self, message: str = "No course with this id"):
        super().__init__(message, "course_not_found")


class LectureNotFoundError(NotFoundError):
    """Lecture not found."""

    def __init__(self, message: str = "No lecture with this id"):
        super().__init__(message, "lecture_not_found")


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Read side of the catalogue."""

    def __init__(
        self,
        courses: CourseRepository,
        lectures: LectureRepository,
        users: UserRepository,
    ):
        self.courses = courses
        self.lectures = lectures
        self.users = users

    async def _load_user(self, user_id: UUID) -> User:
        user = await self.users.get(user_id)
        if not user:
            raise UserNotFoundError
        return user

    async def list_courses(self) -> list[Course]:
        """Every course in the catalogue."""
        return await self.courses.list_all()

    async def get_course(self, course_id: UUID) -> Course:
        """Get course by ID.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self.courses.get(course_id)
        if not course:
            raise CourseNotFoundError
        return course

    async def list_lectures(self, user_id: UUID, course_id: UUID) -> list[Lecture]:
        """Lectures of a course, for entitled users.

        Raises:
            CourseNotFoundError: If the course does not exist
            AccessDeniedError: If the user is not entitled
        """
        await self.get_course(course_id)
        user = await self._load_user(user_id)
        ensure_access(user, course_id)
        return await self.lectures.list_by_course(course_id)

    async def get_lecture(self, user_id: UUID, lecture_id: UUID) -> Lecture:
        """Single lecture, for users entitled to its course.

        Raises:
            LectureNotFoundError: If the lecture does not exist
            AccessDeniedError: If the user is not entitled
        """
        lecture = await self.lectures.get(lecture_id)
        if not lecture:
            raise LectureNotFoundError
        user = await self._load_user(user_id)
        ensure_access(user, lecture.course_id)
        return lecture

    async def my_courses(self, user_id: UUID) -> list[Course]:
        """Courses in the user's subscription set."""
        user = await self._load_user(user_id)
        return await self.courses.list_by_ids(user.subscription)
