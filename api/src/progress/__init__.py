"""Enrollment and lesson progress module.

Provides:
- Enrollment creation, reactivation and cancellation
- Per-lesson completion tracking
- Aggregate recomputation and enrollment status transitions
"""

from .models import (
    PROGRESS_TABLES_CQL,
    Enrollment,
    EnrollmentStatus,
    LessonProgress,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "Enrollment",
    "EnrollmentStatus",
    "LessonProgress",
]
