"""Pydantic schemas for progress tracking."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProgressResponse(BaseModel):
    """Stored progress record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    completed_lectures: list[UUID] = Field(default_factory=list)
    created_at: datetime

    @field_validator("completed_lectures", mode="before")
    @classmethod
    def sort_ids(cls, v: Any) -> list[UUID]:
        return sorted(v or (), key=str)


class CourseProgress(BaseModel):
    """Completion summary for one course."""

    model_config = ConfigDict(from_attributes=True)

    percentage: float = Field(..., ge=0, le=100)
    completed_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)
    progress: ProgressResponse


class MessageResponse(BaseModel):
    """Simple acknowledgement."""

    message: str
