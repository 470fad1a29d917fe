"""Enrollment lifecycle service layer.

Business logic for:
- Enrollment creation, reactivation and cancellation
- Progress seeding and lesson completion toggles
- Aggregate recomputation and enrollment status transitions
- Progress summaries and enrollment listings

Every toggle re-reads all progress rows of the enrollment; there is no
incremental counter to drift.
"""

from collections import Counter
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.auth.schemas import Principal
from src.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from src.courses.models import Course, Lesson
from src.courses.schemas import LessonResponse
from src.courses.service import CourseNotFoundError, LessonNotFoundError

from .models import (
    Enrollment,
    EnrollmentStatus,
    LessonProgress,
    calculate_percent,
    is_aggregate_complete,
    next_enrollment_status,
)
from .schemas import (
    AdminEnrollmentListResponse,
    CourseSummary,
    EnrollmentDetailResponse,
    EnrollmentWithProgressResponse,
    LessonProgressEntry,
    LessonProgressResponse,
    ProgressCounts,
    ProgressSummaryResponse,
)


if TYPE_CHECKING:
    from src.courses.repository import CourseRepository, LessonRepository

    from .repository import EnrollmentRepository, LessonProgressRepository

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class EnrollmentNotFoundError(NotFoundError):
    """No enrollment visible to the caller."""

    def __init__(self, message: str = "Enrollment not found"):
        super().__init__(message, "enrollment_not_found")


class CourseNotEnrollableError(InvalidStateError):
    """Course is not published."""

    def __init__(self, message: str = "Course not enrollable"):
        super().__init__(message, "course_not_enrollable")


class AlreadyEnrolledError(ConflictError):
    def __init__(self, message: str = "Already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class AlreadyDroppedError(ConflictError):
    def __init__(self, message: str = "Enrollment already dropped"):
        super().__init__(message, "already_dropped")


class EnrollmentNotActiveError(InvalidStateError):
    """Progress cannot change on a dropped enrollment."""

    def __init__(self, message: str = "Enrollment is not active"):
        super().__init__(message, "enrollment_not_active")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for the enrollment and progress lifecycle."""

    def __init__(
        self,
        enrollments: "EnrollmentRepository",
        progress: "LessonProgressRepository",
        courses: "CourseRepository",
        lessons: "LessonRepository",
    ):
        self.enrollments = enrollments
        self.progress = progress
        self.courses = courses
        self.lessons = lessons

    # --------------------------------------------------------------------------
    # Enrollment
    # --------------------------------------------------------------------------

    async def create_enrollment(
        self, principal: Principal, course_id: UUID
    ) -> tuple[Enrollment, bool]:
        """Enroll the caller in a published course.

        A dropped enrollment is reactivated with its progress intact; a
        completed one is returned unchanged.

        Returns:
            Tuple of (enrollment, created) where created is True only when a
            new enrollment row was written

        Raises:
            CourseNotFoundError: If the course does not exist
            CourseNotEnrollableError: If the course is not published
            AlreadyEnrolledError: If an active enrollment exists
        """
        course = await self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError
        if not course.is_published:
            raise CourseNotEnrollableError

        existing = await self.enrollments.get_for_user_course(principal.id, course_id)
        if existing is not None:
            if existing.is_active:
                raise AlreadyEnrolledError
            if existing.is_completed:
                return existing, False

            existing.status = EnrollmentStatus.ACTIVE.value
            existing.updated_at = datetime.now(UTC)
            await self.enrollments.update_status(existing)
            logger.info(
                "enrollment_reactivated",
                enrollment_id=str(existing.id),
                course_id=str(course_id),
            )
            return existing, False

        enrollment = Enrollment(user_id=principal.id, course_id=course_id)
        if not await self.enrollments.insert(enrollment):
            # a concurrent request enrolled the same user first
            raise AlreadyEnrolledError

        lessons = await self.lessons.list_for_course(course_id)
        await self.progress.seed(enrollment.id, [lesson.id for lesson in lessons])

        logger.info(
            "user_enrolled",
            enrollment_id=str(enrollment.id),
            course_id=str(course_id),
            lessons_seeded=len(lessons),
        )
        return enrollment, True

    async def cancel_enrollment(
        self, principal: Principal, enrollment_id: UUID
    ) -> Enrollment:
        """Drop the caller's enrollment. Progress rows are kept.

        Raises:
            EnrollmentNotFoundError: If missing or owned by someone else
            AlreadyDroppedError: If already dropped
        """
        enrollment = await self.enrollments.get(enrollment_id)
        if enrollment is None or enrollment.user_id != principal.id:
            raise EnrollmentNotFoundError
        if enrollment.is_dropped:
            raise AlreadyDroppedError

        previous = enrollment.status
        enrollment.status = EnrollmentStatus.DROPPED.value
        enrollment.updated_at = datetime.now(UTC)
        await self.enrollments.update_status(enrollment)

        logger.info(
            "enrollment_dropped",
            enrollment_id=str(enrollment.id),
            previous_status=previous,
        )
        return enrollment

    # --------------------------------------------------------------------------
    # Progress
    # --------------------------------------------------------------------------

    async def set_lesson_progress(
        self, principal: Principal, lesson_id: UUID, completed: bool
    ) -> tuple[LessonProgress, bool]:
        """Set a lesson's completion flag and re-evaluate the enrollment.

        A missing progress row (lesson added after enrollment) is created on
        demand. Re-applying the same flag changes nothing observable except
        ``completed_at``.

        Returns:
            Tuple of (progress row, course_completed)

        Raises:
            LessonNotFoundError: If the lesson does not exist
            EnrollmentNotFoundError: If the caller is not enrolled in its course
            EnrollmentNotActiveError: If the enrollment is dropped
        """
        lesson = await self.lessons.get(lesson_id)
        if lesson is None:
            raise LessonNotFoundError

        enrollment = await self.enrollments.get_for_user_course(
            principal.id, lesson.course_id
        )
        if enrollment is None:
            raise EnrollmentNotFoundError
        if enrollment.is_dropped:
            raise EnrollmentNotActiveError

        row = await self.progress.get(enrollment.id, lesson_id)
        if row is None:
            row = LessonProgress(enrollment_id=enrollment.id, lesson_id=lesson_id)
            logger.info(
                "lesson_progress_materialized",
                enrollment_id=str(enrollment.id),
                lesson_id=str(lesson_id),
            )
        row.mark(completed)
        await self.progress.save(row)

        course_completed = await self._sync_enrollment_status(enrollment.id)

        logger.info(
            "lesson_progress_updated",
            enrollment_id=str(enrollment.id),
            lesson_id=str(lesson_id),
            completed=completed,
            course_completed=course_completed,
        )
        return row, course_completed

    async def _sync_enrollment_status(self, enrollment_id: UUID) -> bool:
        """Recompute the aggregate and move the persisted status to match it.

        Returns:
            Whether every progress row is completed
        """
        rows = await self.progress.list_for_enrollment(enrollment_id)
        complete = is_aggregate_complete(rows)

        # Transition from what is stored now, not from the earlier read
        current = await self.enrollments.get(enrollment_id)
        if current is None:
            raise EnrollmentNotFoundError

        new_status = next_enrollment_status(current.status, complete)
        if new_status != current.status:
            previous = current.status
            current.status = new_status
            current.updated_at = datetime.now(UTC)
            await self.enrollments.update_status(current)
            logger.info(
                "enrollment_status_changed",
                enrollment_id=str(enrollment_id),
                from_status=previous,
                to_status=new_status,
            )

        return complete

    async def get_progress_summary(
        self, principal: Principal, course_id: UUID
    ) -> ProgressSummaryResponse:
        """Per-lesson completion for the caller's enrollment in a course.

        Totals count progress rows, so a course with no lessons reports 0/0.
        """
        enrollment = await self.enrollments.get_for_user_course(principal.id, course_id)
        if enrollment is None:
            raise EnrollmentNotFoundError

        rows = await self.progress.list_for_enrollment(enrollment.id)
        completed = sum(1 for row in rows if row.completed)

        return ProgressSummaryResponse(
            enrollment_id=enrollment.id,
            enrollment_status=EnrollmentStatus(enrollment.status),
            per_lesson={
                row.lesson_id: LessonProgressEntry(
                    completed=row.completed, completed_at=row.completed_at
                )
                for row in rows
            },
            total=len(rows),
            completed=completed,
            percent=calculate_percent(completed, len(rows)),
        )

    # --------------------------------------------------------------------------
    # Listings
    # --------------------------------------------------------------------------

    async def _progress_counts(
        self, enrollment: Enrollment, lessons: list[Lesson]
    ) -> ProgressCounts:
        """Completed rows out of the course's current lesson count."""
        lesson_ids = {lesson.id for lesson in lessons}
        rows = await self.progress.list_for_enrollment(enrollment.id)
        completed = sum(
            1 for row in rows if row.completed and row.lesson_id in lesson_ids
        )
        return ProgressCounts(
            completed=completed,
            total=len(lessons),
            percent=calculate_percent(completed, len(lessons)),
        )

    async def _with_progress(
        self,
        enrollments: list[Enrollment],
    ) -> list[EnrollmentWithProgressResponse]:
        catalog: dict[UUID, tuple[Course | None, list[Lesson]]] = {}
        items = []
        for enrollment in enrollments:
            if enrollment.course_id not in catalog:
                course = await self.courses.get(enrollment.course_id)
                lessons = await self.lessons.list_for_course(enrollment.course_id)
                catalog[enrollment.course_id] = (course, lessons)
            course, lessons = catalog[enrollment.course_id]

            items.append(
                EnrollmentWithProgressResponse(
                    **enrollment.to_dict(),
                    course=CourseSummary.from_entity(course) if course else None,
                    progress=await self._progress_counts(enrollment, lessons),
                )
            )
        return items

    async def list_user_enrollments(
        self, principal: Principal, include_dropped: bool = True
    ) -> list[EnrollmentWithProgressResponse]:
        """The caller's enrollments, newest first, with progress counts."""
        enrollments = await self.enrollments.list_for_user(principal.id)
        if not include_dropped:
            enrollments = [e for e in enrollments if not e.is_dropped]
        return await self._with_progress(enrollments)

    async def get_enrollment_detail(
        self, principal: Principal, enrollment_id: UUID
    ) -> EnrollmentDetailResponse:
        """Enrollment with course, ordered lessons and progress rows.

        Visible to its owner and to admins.
        """
        enrollment = await self.enrollments.get(enrollment_id)
        if enrollment is None or (
            enrollment.user_id != principal.id and not principal.is_admin
        ):
            raise EnrollmentNotFoundError

        course = await self.courses.get(enrollment.course_id)
        lessons = await self.lessons.list_for_course(enrollment.course_id)
        rows = await self.progress.list_for_enrollment(enrollment.id)

        return EnrollmentDetailResponse(
            **enrollment.to_dict(),
            course=CourseSummary.from_entity(course) if course else None,
            progress=await self._progress_counts(enrollment, lessons),
            lessons=[LessonResponse.from_entity(lesson) for lesson in lessons],
            lesson_progress=[LessonProgressResponse.from_entity(row) for row in rows],
        )

    async def list_all_enrollments(
        self, principal: Principal
    ) -> AdminEnrollmentListResponse:
        """Every enrollment, newest first, with per-status counts (ADMIN only)."""
        if not principal.is_admin:
            raise ForbiddenError()

        enrollments = await self.enrollments.list_all()
        counts = Counter(EnrollmentStatus(e.status) for e in enrollments)
        items = await self._with_progress(enrollments)

        return AdminEnrollmentListResponse(
            items=items,
            total=len(items),
            counts={status: counts.get(status, 0) for status in EnrollmentStatus},
        )
