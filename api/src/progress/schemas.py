"""Pydantic schemas for enrollments and lesson progress.

Request and response models for:
- Enrollment creation, listing and detail
- Lesson progress toggles
- Progress summaries
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.courses.models import ContentStatus, Course
from src.courses.schemas import LessonResponse

from .models import Enrollment, EnrollmentStatus, LessonProgress


# ==============================================================================
# Enrollment Schemas
# ==============================================================================


class EnrollRequest(BaseModel):
    """Request to enroll in a course."""

    course_id: UUID = Field(..., description="Course UUID")


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    status: EnrollmentStatus
    enrolled_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: Enrollment) -> "EnrollmentResponse":
        return cls(**entity.to_dict())


class CourseSummary(BaseModel):
    """Course fields shown next to an enrollment."""

    id: UUID
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    status: ContentStatus

    @classmethod
    def from_entity(cls, course: Course) -> "CourseSummary":
        return cls(
            id=course.id,
            title=course.title,
            description=course.description,
            thumbnail_url=course.thumbnail_url,
            status=ContentStatus(course.status),
        )


class ProgressCounts(BaseModel):
    """Completed lessons out of total, with an integer percentage."""

    completed: int = 0
    total: int = 0
    percent: int = Field(0, ge=0, le=100)


class EnrollmentWithProgressResponse(EnrollmentResponse):
    """Enrollment with its course and progress counts."""

    course: CourseSummary | None = None
    progress: ProgressCounts = Field(default_factory=ProgressCounts)


class EnrollmentListResponse(BaseModel):
    items: list[EnrollmentWithProgressResponse]
    total: int


class AdminEnrollmentListResponse(EnrollmentListResponse):
    """Every enrollment, with per-status counts."""

    counts: dict[EnrollmentStatus, int]


# ==============================================================================
# Lesson Progress Schemas
# ==============================================================================


class SetLessonProgressRequest(BaseModel):
    """Mark a lesson completed or not completed."""

    lesson_id: UUID = Field(..., description="Lesson UUID")
    completed: bool = Field(..., description="New completion flag")


class LessonProgressResponse(BaseModel):
    """Lesson progress row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    enrollment_id: UUID
    lesson_id: UUID
    completed: bool
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> "LessonProgressResponse":
        return cls(**entity.to_dict())


class SetLessonProgressResponse(BaseModel):
    """Result of a toggle: the row and whether the whole course is now done."""

    progress: LessonProgressResponse
    course_completed: bool


class LessonProgressEntry(BaseModel):
    completed: bool
    completed_at: datetime | None = None


class ProgressSummaryResponse(BaseModel):
    """Per-lesson completion map for one enrollment plus totals."""

    enrollment_id: UUID
    enrollment_status: EnrollmentStatus
    per_lesson: dict[UUID, LessonProgressEntry]
    total: int
    completed: int
    percent: int


class EnrollmentDetailResponse(EnrollmentWithProgressResponse):
    """Enrollment with its course, ordered lessons and progress rows."""

    lessons: list[LessonResponse] = []
    lesson_progress: list[LessonProgressResponse] = []
