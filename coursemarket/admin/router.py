"""Admin API endpoints.

Provides routes for:
- Course and lecture creation (multipart, with media upload)
- Course and lecture deletion
- Platform statistics and user listing
- Role toggling (superadmin only)
"""

from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Form, UploadFile, status

from coursemarket.admin.dependencies import AdminServiceDep, read_upload
from coursemarket.admin.schemas import (
    CourseCreatedResponse,
    LectureCreatedResponse,
    MessageResponse,
    StatsResponse,
)
from coursemarket.auth.dependencies import AdminUser, SuperAdminUser
from coursemarket.auth.schemas import RoleUpdateResponse, UserListResponse, UserResponse
from coursemarket.courses.schemas import (
    CourseResponse,
    CreateCourseRequest,
    CreateLectureRequest,
    LectureResponse,
)


router = APIRouter(prefix="/v1/admin", tags=["admin"])


# ==============================================================================
# Courses and Lectures
# ==============================================================================


@router.post(
    "/courses",
    response_model=CourseCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid image"}, 503: {"description": "Storage off"}},
)
async def create_course(
    admin: AdminUser,
    admin_service: AdminServiceDep,
    title: Annotated[str, Form(min_length=1, max_length=200)],
    category: Annotated[str, Form(min_length=1, max_length=100)],
    price: Annotated[Decimal, Form(ge=0)],
    description: Annotated[str, Form(max_length=5000)] = "",
    duration: Annotated[int, Form(ge=0)] = 0,
    file: Annotated[UploadFile | None, File(description="Cover image")] = None,
) -> CourseCreatedResponse:
    """Create a course with an optional cover image."""
    data = CreateCourseRequest(
        title=title,
        description=description,
        category=category,
        price=price,
        duration=duration,
    )
    course = await admin_service.create_course(data, await read_upload(file), admin.id)
    return CourseCreatedResponse(
        message="Course Created Successfully",
        course=CourseResponse.from_course(course),
    )


@router.post(
    "/courses/{course_id}/lectures",
    response_model=LectureCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Course not found"}},
)
async def add_lecture(
    course_id: UUID,
    admin: AdminUser,
    admin_service: AdminServiceDep,
    title: Annotated[str, Form(min_length=1, max_length=200)],
    description: Annotated[str, Form(max_length=5000)] = "",
    file: Annotated[UploadFile | None, File(description="Lecture video")] = None,
) -> LectureCreatedResponse:
    """Add a lecture with an optional video to a course."""
    data = CreateLectureRequest(title=title, description=description)
    lecture = await admin_service.add_lecture(course_id, data, await read_upload(file))
    return LectureCreatedResponse(
        message="Lecture Added",
        lecture=LectureResponse.from_lecture(lecture),
    )


@router.delete(
    "/courses/{course_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Course not found"}},
)
async def delete_course(
    course_id: UUID,
    admin: AdminUser,
    admin_service: AdminServiceDep,
) -> MessageResponse:
    """Delete a course, its lectures and media, and every subscription to it."""
    await admin_service.delete_course(course_id)
    return MessageResponse(message="Course Deleted")


@router.delete(
    "/lectures/{lecture_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Lecture not found"}},
)
async def delete_lecture(
    lecture_id: UUID,
    admin: AdminUser,
    admin_service: AdminServiceDep,
) -> MessageResponse:
    """Delete a lecture and its video."""
    await admin_service.delete_lecture(lecture_id)
    return MessageResponse(message="Lecture Deleted")


# ==============================================================================
# Stats and Users
# ==============================================================================


@router.get("/stats", response_model=StatsResponse)
async def get_stats(admin: AdminUser, admin_service: AdminServiceDep) -> StatsResponse:
    """Course, lecture and user totals."""
    return StatsResponse(stats=await admin_service.get_all_stats())


@router.get("/users", response_model=UserListResponse)
async def list_users(admin: AdminUser, admin_service: AdminServiceDep) -> UserListResponse:
    """Every user except the caller."""
    users = await admin_service.list_users(exclude_id=admin.id)
    return UserListResponse(users=[UserResponse.from_user(u) for u in users])


@router.put(
    "/users/{user_id}/role",
    response_model=RoleUpdateResponse,
    responses={
        403: {"description": "Not superadmin, or target is superadmin"},
        404: {"description": "User not found"},
    },
)
async def update_role(
    user_id: UUID,
    superadmin: SuperAdminUser,
    admin_service: AdminServiceDep,
) -> RoleUpdateResponse:
    """Toggle a user between user and admin."""
    role = await admin_service.update_role(superadmin.id, user_id)
    return RoleUpdateResponse(message="Role updated", role=role)
