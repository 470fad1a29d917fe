"""Pydantic schemas for the course catalog.

Request and response models for:
- Courses: CRUD operations
- Lessons: CRUD and reordering
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.courses.models import ContentStatus


if TYPE_CHECKING:
    from src.courses.models import Course, Lesson


# ==============================================================================
# Course Schemas
# ==============================================================================


class CreateCourseRequest(BaseModel):
    """Course creation request."""

    title: str = Field(..., min_length=1, max_length=200, description="Course title")
    description: str | None = Field(
        None, max_length=5000, description="Course description"
    )
    thumbnail_url: str | None = Field(
        None, max_length=500, description="Thumbnail image URL"
    )
    status: ContentStatus = Field(
        ContentStatus.DRAFT, description="Publication status"
    )


class UpdateCourseRequest(BaseModel):
    """Course update request. Omitted fields are left unchanged."""

    title: str | None = Field(
        None, min_length=1, max_length=200, description="Course title"
    )
    description: str | None = Field(
        None, max_length=5000, description="Course description"
    )
    thumbnail_url: str | None = Field(
        None, max_length=500, description="Thumbnail image URL"
    )
    status: ContentStatus | None = Field(None, description="Publication status")


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    status: ContentStatus
    instructor_id: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    lesson_count: int = 0

    @classmethod
    def from_entity(cls, course: "Course", lesson_count: int = 0) -> "CourseResponse":
        return cls(**course.to_dict(), lesson_count=lesson_count)


class CourseListResponse(BaseModel):
    """Course list response."""

    items: list[CourseResponse]
    total: int


# ==============================================================================
# Lesson Schemas
# ==============================================================================


class CreateLessonRequest(BaseModel):
    """Lesson creation request. ``order`` defaults to after the last lesson."""

    title: str = Field(..., min_length=1, max_length=200, description="Lesson title")
    content: str | None = Field(None, description="Lesson body (markdown)")
    video_url: str | None = Field(None, max_length=1000, description="Video URL")
    order: int | None = Field(None, ge=0, description="Sort position")


class UpdateLessonRequest(BaseModel):
    """Lesson update request. Omitted fields are left unchanged."""

    title: str | None = Field(
        None, min_length=1, max_length=200, description="Lesson title"
    )
    content: str | None = Field(None, description="Lesson body (markdown)")
    video_url: str | None = Field(None, max_length=1000, description="Video URL")
    order: int | None = Field(None, ge=0, description="Sort position")


class LessonResponse(BaseModel):
    """Lesson response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    content: str | None = None
    video_url: str | None = None
    embed_url: str | None = None
    order: int
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, lesson: "Lesson") -> "LessonResponse":
        return cls(**lesson.to_dict())


class LessonListResponse(BaseModel):
    """Ordered lesson list response."""

    items: list[LessonResponse]
    total: int


class ReorderLessonsRequest(BaseModel):
    """New lesson order: position in the list becomes the lesson's order."""

    lesson_ids: list[UUID] = Field(
        ..., min_length=1, description="Lesson IDs in the desired order"
    )


# ==============================================================================
# Detail Response (Nested)
# ==============================================================================


class CourseDetailResponse(CourseResponse):
    """Course with its ordered lessons."""

    lessons: list[LessonResponse] = []


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
