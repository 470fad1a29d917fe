"""Database models for enrollments and lesson progress.

Cassandra table definitions for:
- Enrollments: One row per enrollment, keyed by id
- Enrollments by user: Lookup keyed by (user_id, course_id); guarantees at
  most one enrollment per pair
- Lesson progress: One completion row per (enrollment, lesson)

Also holds the pure aggregation rules used by the lifecycle service.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from src.courses.models import ensure_utc_aware


class EnrollmentStatus(str, Enum):
    """Course enrollment status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


# ==============================================================================
# Helper Functions
# ==============================================================================


def is_aggregate_complete(rows: Iterable["LessonProgress"]) -> bool:
    """True iff there is at least one row and every row is completed."""
    seen = False
    for row in rows:
        if not row.completed:
            return False
        seen = True
    return seen


def next_enrollment_status(current: str, aggregate_complete: bool) -> str:
    """Status an enrollment should move to after its aggregate is recomputed.

    Dropped enrollments are never touched.
    """
    if current == EnrollmentStatus.ACTIVE.value and aggregate_complete:
        return EnrollmentStatus.COMPLETED.value
    if current == EnrollmentStatus.COMPLETED.value and not aggregate_complete:
        return EnrollmentStatus.ACTIVE.value
    return current


def calculate_percent(completed: int, total: int) -> int:
    """Integer percentage, rounded half-up. Zero when there is nothing to do.

    Examples:
        >>> calculate_percent(1, 2)
        50
        >>> calculate_percent(1, 8)
        13
        >>> calculate_percent(0, 0)
        0
    """
    if total <= 0:
        return 0
    percent = Decimal(completed) * 100 / Decimal(total)
    return int(percent.quantize(Decimal(1), rounding=ROUND_HALF_UP))


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    id UUID PRIMARY KEY,
    user_id UUID,
    course_id UUID,
    status TEXT,
    enrolled_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Needed by the course deletion cascade
ENROLLMENTS_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS enrollments_course_id_idx
ON {keyspace}.enrollments (course_id)
"""

# Lookup: one enrollment per (user, course); also serves "my enrollments"
ENROLLMENTS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_user (
    user_id UUID,
    course_id UUID,
    enrollment_id UUID,
    PRIMARY KEY (user_id, course_id)
)
"""

LESSON_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_progress (
    enrollment_id UUID,
    lesson_id UUID,
    id UUID,
    completed BOOLEAN,
    completed_at TIMESTAMP,
    PRIMARY KEY ((enrollment_id), lesson_id)
)
"""

# Needed by the lesson deletion cascade
LESSON_PROGRESS_BY_LESSON_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS lesson_progress_lesson_idx
ON {keyspace}.lesson_progress (lesson_id)
"""

PROGRESS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_COURSE_INDEX_CQL,
    ENROLLMENTS_BY_USER_TABLE_CQL,
    LESSON_PROGRESS_TABLE_CQL,
    LESSON_PROGRESS_BY_LESSON_INDEX_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonProgress:
    """Completion state of one lesson within one enrollment.

    Attributes:
        enrollment_id: Owning enrollment
        lesson_id: Lesson UUID
        id: Row identifier
        completed: Whether the lesson is done
        completed_at: Set iff completed
    """

    def __init__(
        self,
        enrollment_id: UUID,
        lesson_id: UUID,
        id: UUID | None = None,
        completed: bool = False,
        completed_at: datetime | None = None,
    ):
        self.enrollment_id = enrollment_id
        self.lesson_id = lesson_id
        self.id = id or uuid4()
        self.completed = completed
        self.completed_at = ensure_utc_aware(completed_at) if completed else None

    def mark(self, completed: bool, now: datetime | None = None) -> None:
        """Set the flag; ``completed_at`` follows it and is never preserved."""
        self.completed = completed
        self.completed_at = (now or datetime.now(UTC)) if completed else None

    @classmethod
    def from_row(cls, row: Any) -> "LessonProgress":
        """Create LessonProgress instance from Cassandra row."""
        return cls(
            enrollment_id=row.enrollment_id,
            lesson_id=row.lesson_id,
            id=row.id,
            completed=bool(row.completed),
            completed_at=row.completed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "enrollment_id": self.enrollment_id,
            "lesson_id": self.lesson_id,
            "completed": self.completed,
            "completed_at": self.completed_at,
        }

    def __repr__(self) -> str:
        return (
            f"<LessonProgress enrollment={self.enrollment_id} "
            f"lesson={self.lesson_id} completed={self.completed}>"
        )


class Enrollment:
    """A user's enrollment in a course.

    Attributes:
        id: Unique identifier (stable across drop/reactivate)
        user_id: Enrolled user
        course_id: Course UUID
        status: active, completed or dropped
        enrolled_at: First enrollment timestamp
        updated_at: Last status change
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        id: UUID | None = None,
        status: str = EnrollmentStatus.ACTIVE.value,
        enrolled_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.user_id = user_id
        self.course_id = course_id
        self.status = status
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.enrolled_at

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.ACTIVE.value

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED.value

    @property
    def is_dropped(self) -> bool:
        return self.status == EnrollmentStatus.DROPPED.value

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            status=row.status or EnrollmentStatus.ACTIVE.value,
            enrolled_at=row.enrolled_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "status": self.status,
            "enrolled_at": self.enrolled_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Enrollment user={self.user_id} course={self.course_id} {self.status}>"
        )
