"""Progress tracking service layer.

Business logic for:
- Marking a lecture complete (idempotent)
- Completion percentage for a course
"""

from uuid import UUID

from coursemarket.core.exceptions import InvalidInputError, NotFoundError
from coursemarket.core.logging import get_logger
from coursemarket.courses.repository import LectureRepository
from coursemarket.progress.models import Progress
from coursemarket.progress.repository import ProgressRepository
from coursemarket.progress.schemas import CourseProgress, ProgressResponse


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressNotFoundError(NotFoundError):
    """No progress record for the (user, course) pair."""

    def __init__(self, message: str = "No progress found for this course"):
        super().__init__(message, "progress_not_found")


class LectureNotInCourseError(InvalidInputError):
    """Lecture does not exist or belongs to another course."""

    def __init__(self, message: str = "Lecture does not belong to this course"):
        super().__init__(message, "lecture_not_in_course")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for lecture completion tracking."""

    def __init__(self, progress: ProgressRepository, lectures: LectureRepository):
        self.progress = progress
        self.lectures = lectures

    async def _load(self, user_id: UUID, course_id: UUID) -> Progress:
        record = await self.progress.get(user_id, course_id)
        if not record:
            raise ProgressNotFoundError
        return record

    async def mark_complete(
        self, user_id: UUID, course_id: UUID, lecture_id: UUID
    ) -> None:
        """Record a lecture as completed.

        Raises:
            ProgressNotFoundError: If the user has no progress for the course
            LectureNotInCourseError: If the lecture is not part of the course
        """
        record = await self._load(user_id, course_id)

        if record.has_completed(lecture_id):
            logger.debug(
                "lecture_already_completed",
                course_id=str(course_id),
                lecture_id=str(lecture_id),
            )
            return

        lecture = await self.lectures.get(lecture_id)
        if not lecture or lecture.course_id != course_id:
            raise LectureNotInCourseError

        await self.progress.add_completed_lecture(user_id, course_id, lecture_id)
        logger.info(
            "lecture_completed",
            course_id=str(course_id),
            lecture_id=str(lecture_id),
        )

    async def get_progress(self, user_id: UUID, course_id: UUID) -> CourseProgress:
        """Completion summary for the course.

        Only completed ids of lectures that still belong to the course count.

        Raises:
            ProgressNotFoundError: If the user has no progress for the course
        """
        record = await self._load(user_id, course_id)

        lectures = await self.lectures.list_by_course(course_id)
        total_count = len(lectures)
        live_ids = {lecture.id for lecture in lectures}
        completed_count = len(record.completed_lectures & live_ids)

        percentage = completed_count * 100 / total_count if total_count else 0.0

        return CourseProgress(
            percentage=percentage,
            completed_count=completed_count,
            total_count=total_count,
            progress=ProgressResponse.model_validate(record),
        )
