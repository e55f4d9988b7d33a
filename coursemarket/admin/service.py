"""Admin operations service layer.

Business logic for:
- Course and lecture creation (with media upload)
- Cascading course deletion and lecture deletion
- Role toggling (superadmin only)
- Platform statistics and user listing

Releasing a blob is best effort: a failing delete call is logged and the
record deletion carries on.
"""

import asyncio
from uuid import UUID

from coursemarket.admin.schemas import PlatformStats
from coursemarket.auth.models import User
from coursemarket.auth.permissions import UserRole, toggled_role
from coursemarket.auth.repository import UserRepository
from coursemarket.auth.service import UserNotFoundError
from coursemarket.core.exceptions import ForbiddenError
from coursemarket.core.logging import get_logger
from coursemarket.courses.models import Course, Lecture
from coursemarket.courses.repository import CourseRepository, LectureRepository
from coursemarket.courses.schemas import CreateCourseRequest, CreateLectureRequest
from coursemarket.courses.service import CourseNotFoundError, LectureNotFoundError
from coursemarket.progress.repository import ProgressRepository
from coursemarket.storage.schemas import MediaFile, MediaKind, UploadedMedia
from coursemarket.storage.service import FirebaseStorageService


logger = get_logger(__name__)


class NotSuperadminError(ForbiddenError):
    """Caller lacks the superadmin main role."""

    def __init__(self, message: str = "This endpoint is assigned to superadmin"):
        super().__init__(message, "not_superadmin")


class SuperadminTargetError(ForbiddenError):
    """A superadmin's role cannot be toggled."""

    def __init__(self, message: str = "Cannot change the role of a superadmin"):
        super().__init__(message, "superadmin_target")


class AdminService:
    """Service for catalogue management and user administration."""

    def __init__(
        self,
        courses: CourseRepository,
        lectures: LectureRepository,
        users: UserRepository,
        progress: ProgressRepository,
        storage: FirebaseStorageService,
    ):
        self.courses = courses
        self.lectures = lectures
        self.users = users
        self.progress = progress
        self.storage = storage

    # ==========================================================================
    # Media
    # ==========================================================================

    async def _upload(
        self, media: MediaFile | None, kind: MediaKind
    ) -> UploadedMedia | None:
        if media is None:
            return None
        return await self.storage.upload_media(
            media.content, media.content_type, kind, filename=media.filename
        )

    async def _release(self, media: UploadedMedia | None) -> None:
        """Delete a blob, logging instead of raising on failure."""
        if media is None:
            return
        try:
            await self.storage.delete_media(media.handle)
        except Exception as e:  # noqa: BLE001
            logger.warning("blob_release_failed", handle=media.handle, error=str(e))

    # ==========================================================================
    # Courses and lectures
    # ==========================================================================

    async def create_course(
        self,
        data: CreateCourseRequest,
        image: MediaFile | None,
        creator_id: UUID,
    ) -> Course:
        """Upload the optional cover image, then store the course."""
        uploaded = await self._upload(image, MediaKind.IMAGE)
        course = Course(
            title=data.title,
            description=data.description,
            category=data.category,
            created_by=creator_id,
            price=data.price,
            duration=data.duration,
            image=uploaded,
        )
        await self.courses.create(course)
        logger.info("course_created", course_id=str(course.id))
        return course

    async def add_lecture(
        self,
        course_id: UUID,
        data: CreateLectureRequest,
        video: MediaFile | None,
    ) -> Lecture:
        """Upload the optional video, then store the lecture.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        if not await self.courses.get(course_id):
            raise CourseNotFoundError

        uploaded = await self._upload(video, MediaKind.VIDEO)
        lecture = Lecture(
            title=data.title,
            description=data.description,
            video=uploaded,
            course_id=course_id,
        )
        await self.lectures.create(lecture)
        logger.info(
            "lecture_created",
            course_id=str(course_id),
            lecture_id=str(lecture.id),
        )
        return lecture

    async def _remove_lecture(self, lecture: Lecture) -> None:
        await self._release(lecture.video)
        await self.lectures.delete(lecture.id)

    async def _unsubscribe(self, user_id: UUID, course_id: UUID) -> None:
        await self.users.remove_subscription(user_id, course_id)
        await self.progress.delete(user_id, course_id)

    async def delete_course(self, course_id: UUID) -> None:
        """Delete a course with its lectures, media and subscriptions.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self.courses.get(course_id)
        if not course:
            raise CourseNotFoundError

        lectures = await self.lectures.list_by_course(course_id)
        await asyncio.gather(*(self._remove_lecture(lec) for lec in lectures))

        await self._release(course.image)

        subscribers = await self.users.find_subscribers(course_id)
        await asyncio.gather(*(self._unsubscribe(uid, course_id) for uid in subscribers))

        await self.courses.delete(course_id)
        logger.info(
            "course_deleted",
            course_id=str(course_id),
            lectures=len(lectures),
            subscribers=len(subscribers),
        )

    async def delete_lecture(self, lecture_id: UUID) -> None:
        """Delete a lecture and release its video.

        Raises:
            LectureNotFoundError: If the lecture does not exist
        """
        lecture = await self.lectures.get(lecture_id)
        if not lecture:
            raise LectureNotFoundError

        await self._remove_lecture(lecture)
        logger.info("lecture_deleted", lecture_id=str(lecture_id))

    # ==========================================================================
    # Users
    # ==========================================================================

    async def update_role(self, acting_user_id: UUID, target_user_id: UUID) -> UserRole:
        """Toggle the target between USER and ADMIN.

        Raises:
            NotSuperadminError: If the caller is not a superadmin
            UserNotFoundError: If the target does not exist
            SuperadminTargetError: If the target is a superadmin
        """
        acting = await self.users.get(acting_user_id)
        if not acting or not acting.is_superadmin:
            raise NotSuperadminError

        target = await self.users.get(target_user_id)
        if not target:
            raise UserNotFoundError
        if target.is_superadmin:
            raise SuperadminTargetError

        new_role = toggled_role(target.role)
        await self.users.update_role(target.id, new_role.value)
        logger.info(
            "role_updated",
            target_user_id=str(target.id),
            role=new_role.value,
        )
        return new_role

    async def list_users(self, exclude_id: UUID) -> list[User]:
        """Every user except the caller."""
        return await self.users.list_all(exclude_id=exclude_id)

    async def get_all_stats(self) -> PlatformStats:
        """Course, lecture and user totals."""
        total_courses, total_lectures, total_users = await asyncio.gather(
            self.courses.count(),
            self.lectures.count(),
            self.users.count(),
        )
        return PlatformStats(
            total_courses=total_courses,
            total_lectures=total_lectures,
            total_users=total_users,
        )
