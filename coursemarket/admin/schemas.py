"""Pydantic schemas for admin operations."""

from pydantic import BaseModel, Field

from coursemarket.courses.schemas import CourseResponse, LectureResponse


class PlatformStats(BaseModel):
    """Platform totals."""

    total_courses: int = Field(..., ge=0)
    total_lectures: int = Field(..., ge=0)
    total_users: int = Field(..., ge=0)


class StatsResponse(BaseModel):
    """Stats endpoint response."""

    stats: PlatformStats


class CourseCreatedResponse(BaseModel):
    """Course creation response."""

    message: str
    course: CourseResponse


class LectureCreatedResponse(BaseModel):
    """Lecture creation response."""

    message: str
    lecture: LectureResponse


class MessageResponse(BaseModel):
    """Simple acknowledgement."""

    message: str
