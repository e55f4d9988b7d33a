"""Lecture progress API endpoints.

Provides routes for:
- Marking a lecture complete
- Completion percentage for a course
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from coursemarket.auth.dependencies import CurrentUser

from .dependencies import ProgressServiceDep
from .schemas import CourseProgress, MessageResponse


router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.post(
    "/complete",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Lecture not in course"},
        404: {"description": "No progress for this course"},
    },
)
async def mark_lecture_complete(
    current_user: CurrentUser,
    progress_service: ProgressServiceDep,
    course: UUID = Query(..., description="Course ID"),
    lecture_id: UUID = Query(..., description="Lecture ID"),
) -> MessageResponse:
    """Mark a lecture complete. Repeating the call is a no-op."""
    await progress_service.mark_complete(current_user.id, course, lecture_id)
    return MessageResponse(message="Progress updated")


@router.get(
    "",
    response_model=CourseProgress,
    responses={404: {"description": "No progress for this course"}},
)
async def get_course_progress(
    current_user: CurrentUser,
    progress_service: ProgressServiceDep,
    course: UUID = Query(..., description="Course ID"),
) -> CourseProgress:
    """Completion summary for the caller in one course."""
    return await progress_service.get_progress(current_user.id, course)
