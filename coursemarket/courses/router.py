"""Course catalogue API endpoints.

Provides routes for:
- Courses: public listing and detail, the caller's purchased courses
- Lectures: listing and detail for entitled users
"""

from uuid import UUID

from fastapi import APIRouter

from coursemarket.auth.dependencies import CurrentUser
from coursemarket.courses.dependencies import CourseServiceDep
from coursemarket.courses.schemas import (
    CourseListResponse,
    CourseResponse,
    LectureListResponse,
    LectureResponse,
)


router_courses = APIRouter(prefix="/v1/courses", tags=["courses"])
router_lectures = APIRouter(prefix="/v1/lectures", tags=["lectures"])


@router_courses.get("", response_model=CourseListResponse)
async def list_courses(course_service: CourseServiceDep) -> CourseListResponse:
    """List every course (public)."""
    courses = await course_service.list_courses()
    return CourseListResponse(courses=[CourseResponse.from_course(c) for c in courses])


@router_courses.get("/mine", response_model=CourseListResponse)
async def my_courses(
    current_user: CurrentUser,
    course_service: CourseServiceDep,
) -> CourseListResponse:
    """Courses the caller has purchased."""
    courses = await course_service.my_courses(current_user.id)
    return CourseListResponse(courses=[CourseResponse.from_course(c) for c in courses])


@router_courses.get(
    "/{course_id}",
    response_model=CourseResponse,
    responses={404: {"description": "Course not found"}},
)
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
) -> CourseResponse:
    """Course detail (public)."""
    course = await course_service.get_course(course_id)
    return CourseResponse.from_course(course)


@router_courses.get(
    "/{course_id}/lectures",
    response_model=LectureListResponse,
    responses={
        403: {"description": "Not subscribed"},
        404: {"description": "Course not found"},
    },
)
async def list_lectures(
    course_id: UUID,
    current_user: CurrentUser,
    course_service: CourseServiceDep,
) -> LectureListResponse:
    """Lectures of a course, for admins and subscribers."""
    lectures = await course_service.list_lectures(current_user.id, course_id)
    return LectureListResponse(
        lectures=[LectureResponse.from_lecture(lec) for lec in lectures]
    )


@router_lectures.get(
    "/{lecture_id}",
    response_model=LectureResponse,
    responses={
        403: {"description": "Not subscribed"},
        404: {"description": "Lecture not found"},
    },
)
async def get_lecture(
    lecture_id: UUID,
    current_user: CurrentUser,
    course_service: CourseServiceDep,
) -> LectureResponse:
    """Single lecture, for admins and subscribers of its course."""
    lecture = await course_service.get_lecture(current_user.id, lecture_id)
    return LectureResponse.from_lecture(lecture)
