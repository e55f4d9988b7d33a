"""Pydantic schemas for the course catalogue.

Request and response models for:
- Courses: creation form and catalogue responses
- Lectures: creation form and gated responses
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coursemarket.courses.models import Course, Lecture


# ==============================================================================
# Course Schemas
# ==============================================================================


class CreateCourseRequest(BaseModel):
    """Course creation fields (sent as multipart form alongside the image)."""

    title: str = Field(..., min_length=1, max_length=200, description="Course title")
    description: str = Field("", max_length=5000, description="Course description")
    category: str = Field(..., min_length=1, max_length=100, description="Category")
    price: Decimal = Field(..., ge=0, description="Price in major currency units")
    duration: int = Field(0, ge=0, description="Duration in hours")


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    category: str
    created_by: UUID | None = None
    price: Decimal
    duration: int
    image_url: str | None = None
    created_at: datetime

    @classmethod
    def from_course(cls, course: Course) -> "CourseResponse":
        """Create response from Course entity."""
        return cls(
            id=course.id,
            title=course.title,
            description=course.description,
            category=course.category,
            created_by=course.created_by,
            price=course.price,
            duration=course.duration,
            image_url=course.image.url if course.image else None,
            created_at=course.created_at,
        )


class CourseListResponse(BaseModel):
    """Course list response."""

    courses: list[CourseResponse]


# ==============================================================================
# Lecture Schemas
# ==============================================================================


class CreateLectureRequest(BaseModel):
    """Lecture creation fields (sent as multipart form alongside the video)."""

    title: str = Field(..., min_length=1, max_length=200, description="Lecture title")
    description: str = Field("", max_length=5000, description="Lecture description")


class LectureResponse(BaseModel):
    """Lecture response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    video_url: str | None = None
    course_id: UUID
    created_at: datetime

    @classmethod
    def from_lecture(cls, lecture: Lecture) -> "LectureResponse":
        """Create response from Lecture entity."""
        return cls(
            id=lecture.id,
            title=lecture.title,
            description=lecture.description,
            video_url=lecture.video.url if lecture.video else None,
            course_id=lecture.course_id,
            created_at=lecture.created_at,
        )


class LectureListResponse(BaseModel):
    """Lecture list response."""

    lectures: list[LectureResponse]
