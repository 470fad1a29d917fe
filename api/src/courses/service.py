"""Course catalog service layer.

Business logic for:
- Course CRUD with publication visibility rules
- Lesson CRUD and reordering
- Cascade deletes into enrollments and progress
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.auth.schemas import Principal
from src.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from src.courses.models import ContentStatus, Course, Lesson
from src.courses.schemas import (
    CourseDetailResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    LessonResponse,
    UpdateCourseRequest,
    UpdateLessonRequest,
)


if TYPE_CHECKING:
    from src.courses.repository import CourseRepository, LessonRepository
    from src.progress.repository import (
        EnrollmentRepository,
        LessonProgressRepository,
    )

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseNotFoundError(NotFoundError):
    """Course not found (or not visible to the caller)."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class LessonNotFoundError(NotFoundError):
    """Lesson not found."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


class InvalidLessonOrderError(ValidationError):
    """Reorder request names lessons outside the course."""

    def __init__(self, message: str = "Lesson order does not match the course"):
        super().__init__(message, "invalid_lesson_order")


def require_admin(principal: Principal | None) -> Principal:
    """Raise unless the caller is an admin."""
    if principal is None or not principal.is_admin:
        raise ForbiddenError()
    return principal


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Service for course management."""

    def __init__(
        self,
        courses: "CourseRepository",
        lessons: "LessonRepository",
        enrollments: "EnrollmentRepository",
        progress: "LessonProgressRepository",
    ):
        self.courses = courses
        self.lessons = lessons
        self.enrollments = enrollments
        self.progress = progress

    async def get_visible_course(
        self, course_id: UUID, principal: Principal | None = None
    ) -> Course:
        """Fetch a course, hiding non-published ones from non-admins.

        Raises:
            CourseNotFoundError: If missing or hidden
        """
        course = await self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError
        if not course.is_published and not (principal and principal.is_admin):
            raise CourseNotFoundError
        return course

    async def list_courses(
        self,
        principal: Principal | None = None,
        status: ContentStatus | None = None,
    ) -> list[CourseResponse]:
        """List courses, newest first.

        Non-admin callers only ever see published courses; admins may filter
        by any status.
        """
        if not (principal and principal.is_admin):
            status = ContentStatus.PUBLISHED

        courses = await self.courses.list_all()
        if status is not None:
            courses = [c for c in courses if c.status == status.value]

        items = []
        for course in courses:
            lessons = await self.lessons.list_for_course(course.id)
            items.append(CourseResponse.from_entity(course, lesson_count=len(lessons)))
        return items

    async def get_course_detail(
        self, course_id: UUID, principal: Principal | None = None
    ) -> CourseDetailResponse:
        """Course with its lessons in order."""
        course = await self.get_visible_course(course_id, principal)
        lessons = await self.lessons.list_for_course(course.id)
        return CourseDetailResponse(
            **course.to_dict(),
            lesson_count=len(lessons),
            lessons=[LessonResponse.from_entity(lesson) for lesson in lessons],
        )

    async def create_course(
        self, principal: Principal, data: CreateCourseRequest
    ) -> Course:
        require_admin(principal)

        course = Course(
            title=data.title,
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            status=data.status.value,
            instructor_id=principal.id,
        )
        await self.courses.save(course)

        logger.info("course_created", course_id=str(course.id), status=course.status)
        return course

    async def update_course(
        self, principal: Principal, course_id: UUID, data: UpdateCourseRequest
    ) -> Course:
        """Partial update; omitted fields are kept."""
        require_admin(principal)

        course = await self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError

        changes = data.model_dump(exclude_unset=True)
        if changes.get("title") is not None:
            course.title = changes["title"].strip()
        if "description" in changes:
            course.description = changes["description"]
        if "thumbnail_url" in changes:
            course.thumbnail_url = changes["thumbnail_url"]
        if changes.get("status") is not None:
            course.status = ContentStatus(changes["status"]).value
        course.updated_at = datetime.now(UTC)

        await self.courses.save(course)

        logger.info(
            "course_updated",
            course_id=str(course.id),
            fields=sorted(changes),
        )
        return course

    async def delete_course(self, principal: Principal, course_id: UUID) -> None:
        """Delete a course with its lessons, enrollments and progress rows."""
        require_admin(principal)

        course = await self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError

        enrollments = await self.enrollments.list_for_course(course_id)
        for enrollment in enrollments:
            await self.progress.delete_for_enrollment(enrollment.id)
            await self.enrollments.delete(enrollment)

        lessons = await self.lessons.list_for_course(course_id)
        for lesson in lessons:
            await self.lessons.delete(lesson.id)

        await self.courses.delete(course_id)

        logger.info(
            "course_deleted",
            course_id=str(course_id),
            lessons_deleted=len(lessons),
            enrollments_deleted=len(enrollments),
        )


# ==============================================================================
# Lesson Service
# ==============================================================================


class LessonService:
    """Service for lesson management."""

    def __init__(
        self,
        courses: "CourseRepository",
        lessons: "LessonRepository",
        progress: "LessonProgressRepository",
    ):
        self.courses = courses
        self.lessons = lessons
        self.progress = progress

    async def _get_course(self, course_id: UUID) -> Course:
        course = await self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def _get_course_lesson(self, course_id: UUID, lesson_id: UUID) -> Lesson:
        lesson = await self.lessons.get(lesson_id)
        if lesson is None or lesson.course_id != course_id:
            raise LessonNotFoundError
        return lesson

    async def get_lesson(self, lesson_id: UUID) -> Lesson:
        lesson = await self.lessons.get(lesson_id)
        if lesson is None:
            raise LessonNotFoundError
        return lesson

    async def list_lessons(
        self, course_id: UUID, principal: Principal | None = None
    ) -> list[Lesson]:
        """Lessons ordered by ``order``, ties broken by creation time."""
        course = await self._get_course(course_id)
        if not course.is_published and not (principal and principal.is_admin):
            raise CourseNotFoundError
        return await self.lessons.list_for_course(course_id)

    async def create_lesson(
        self, principal: Principal, course_id: UUID, data: CreateLessonRequest
    ) -> Lesson:
        """Append a lesson. Without an explicit order it goes after the last one."""
        require_admin(principal)
        await self._get_course(course_id)

        order = data.order
        if order is None:
            existing = await self.lessons.list_for_course(course_id)
            order = max((lesson.order for lesson in existing), default=-1) + 1

        lesson = Lesson(
            course_id=course_id,
            title=data.title,
            content=data.content,
            video_url=data.video_url,
            order=order,
        )
        await self.lessons.save(lesson)

        logger.info(
            "lesson_created",
            course_id=str(course_id),
            lesson_id=str(lesson.id),
            order=lesson.order,
        )
        return lesson

    async def update_lesson(
        self,
        principal: Principal,
        course_id: UUID,
        lesson_id: UUID,
        data: UpdateLessonRequest,
    ) -> Lesson:
        require_admin(principal)
        lesson = await self._get_course_lesson(course_id, lesson_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("title") is not None:
            lesson.title = changes["title"].strip()
        if "content" in changes:
            lesson.content = changes["content"]
        if "video_url" in changes:
            lesson.video_url = changes["video_url"]
        if changes.get("order") is not None:
            lesson.order = changes["order"]
        lesson.updated_at = datetime.now(UTC)

        await self.lessons.save(lesson)

        logger.info("lesson_updated", lesson_id=str(lesson.id), fields=sorted(changes))
        return lesson

    async def delete_lesson(
        self, principal: Principal, course_id: UUID, lesson_id: UUID
    ) -> None:
        """Delete a lesson and every progress row that references it."""
        require_admin(principal)
        lesson = await self._get_course_lesson(course_id, lesson_id)

        removed = await self.progress.delete_for_lesson(lesson.id)
        await self.lessons.delete(lesson.id)

        logger.info(
            "lesson_deleted",
            course_id=str(course_id),
            lesson_id=str(lesson.id),
            progress_rows_deleted=removed,
        )

    async def reorder_lessons(
        self, principal: Principal, course_id: UUID, lesson_ids: list[UUID]
    ) -> list[Lesson]:
        """Set ``order = index`` for each id, in sequence.

        Raises:
            InvalidLessonOrderError: If an id is repeated or not in the course.
                Nothing is written in that case.
        """
        require_admin(principal)
        await self._get_course(course_id)

        lessons = {
            lesson.id: lesson for lesson in await self.lessons.list_for_course(course_id)
        }
        if len(set(lesson_ids)) != len(lesson_ids) or any(
            lesson_id not in lessons for lesson_id in lesson_ids
        ):
            raise InvalidLessonOrderError

        now = datetime.now(UTC)
        for index, lesson_id in enumerate(lesson_ids):
            lesson = lessons[lesson_id]
            lesson.order = index
            lesson.updated_at = now
            await self.lessons.update_order(lesson)

        logger.info(
            "lessons_reordered", course_id=str(course_id), count=len(lesson_ids)
        )
        return sorted(lessons.values(), key=lambda lesson: lesson.sort_key)
