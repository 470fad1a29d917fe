"""Shared fixtures: in-memory repositories, principals, tokens and the app."""

import copy
import os
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key-for-learnhub-tests")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "learnhub-logs"))
os.environ.setdefault("LOG_REQUESTS", "false")

from fastapi.testclient import TestClient  # noqa: E402

from src.auth.permissions import UserRole  # noqa: E402
from src.auth.schemas import Principal  # noqa: E402
from src.auth.security import create_access_token  # noqa: E402
from src.courses.models import ContentStatus, Course, Lesson  # noqa: E402
from src.courses.service import CourseService, LessonService  # noqa: E402
from src.progress.models import Enrollment, LessonProgress  # noqa: E402
from src.progress.service import ProgressService  # noqa: E402


# ==============================================================================
# In-memory repositories
# ==============================================================================
# Stored entities are copies, so a service mutation is only visible after the
# matching write call.


class FakeCourseRepository:
    def __init__(self):
        self.rows: dict[UUID, Course] = {}

    async def get(self, course_id: UUID) -> Course | None:
        row = self.rows.get(course_id)
        return copy.copy(row) if row else None

    async def list_all(self) -> list[Course]:
        courses = [copy.copy(c) for c in self.rows.values()]
        courses.sort(key=lambda c: c.created_at, reverse=True)
        return courses

    async def save(self, course: Course) -> None:
        self.rows[course.id] = copy.copy(course)

    async def delete(self, course_id: UUID) -> None:
        self.rows.pop(course_id, None)


class FakeLessonRepository:
    def __init__(self):
        self.rows: dict[UUID, Lesson] = {}

    async def get(self, lesson_id: UUID) -> Lesson | None:
        row = self.rows.get(lesson_id)
        return copy.copy(row) if row else None

    async def list_for_course(self, course_id: UUID) -> list[Lesson]:
        lessons = [copy.copy(x) for x in self.rows.values() if x.course_id == course_id]
        lessons.sort(key=lambda lesson: lesson.sort_key)
        return lessons

    async def save(self, lesson: Lesson) -> None:
        self.rows[lesson.id] = copy.copy(lesson)

    async def update_order(self, lesson: Lesson) -> None:
        stored = self.rows[lesson.id]
        stored.order = lesson.order
        stored.updated_at = lesson.updated_at

    async def delete(self, lesson_id: UUID) -> None:
        self.rows.pop(lesson_id, None)


class FakeEnrollmentRepository:
    def __init__(self):
        self.rows: dict[UUID, Enrollment] = {}
        self.by_user: dict[tuple[UUID, UUID], UUID] = {}

    async def get(self, enrollment_id: UUID) -> Enrollment | None:
        row = self.rows.get(enrollment_id)
        return copy.copy(row) if row else None

    async def get_for_user_course(
        self, user_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        enrollment_id = self.by_user.get((user_id, course_id))
        return await self.get(enrollment_id) if enrollment_id else None

    async def list_for_user(self, user_id: UUID) -> list[Enrollment]:
        rows = [copy.copy(e) for e in self.rows.values() if e.user_id == user_id]
        rows.sort(key=lambda e: e.enrolled_at, reverse=True)
        return rows

    async def list_for_course(self, course_id: UUID) -> list[Enrollment]:
        return [copy.copy(e) for e in self.rows.values() if e.course_id == course_id]

    async def list_all(self) -> list[Enrollment]:
        rows = [copy.copy(e) for e in self.rows.values()]
        rows.sort(key=lambda e: e.enrolled_at, reverse=True)
        return rows

    async def insert(self, enrollment: Enrollment) -> bool:
        key = (enrollment.user_id, enrollment.course_id)
        if key in self.by_user:
            return False
        self.rows[enrollment.id] = copy.copy(enrollment)
        self.by_user[key] = enrollment.id
        return True

    async def update_status(self, enrollment: Enrollment) -> None:
        stored = self.rows[enrollment.id]
        stored.status = enrollment.status
        stored.updated_at = enrollment.updated_at

    async def delete(self, enrollment: Enrollment) -> None:
        self.rows.pop(enrollment.id, None)
        self.by_user.pop((enrollment.user_id, enrollment.course_id), None)


class FakeLessonProgressRepository:
    def __init__(self):
        self.rows: dict[tuple[UUID, UUID], LessonProgress] = {}

    async def get(self, enrollment_id: UUID, lesson_id: UUID) -> LessonProgress | None:
        row = self.rows.get((enrollment_id, lesson_id))
        return copy.copy(row) if row else None

    async def list_for_enrollment(self, enrollment_id: UUID) -> list[LessonProgress]:
        return [
            copy.copy(row)
            for (eid, _), row in self.rows.items()
            if eid == enrollment_id
        ]

    async def save(self, progress: LessonProgress) -> None:
        self.rows[(progress.enrollment_id, progress.lesson_id)] = copy.copy(progress)

    async def seed(
        self, enrollment_id: UUID, lesson_ids: list[UUID]
    ) -> list[LessonProgress]:
        rows = []
        for lesson_id in lesson_ids:
            row = LessonProgress(enrollment_id=enrollment_id, lesson_id=lesson_id)
            await self.save(row)
            rows.append(row)
        return rows

    async def delete_for_enrollment(self, enrollment_id: UUID) -> None:
        for key in [k for k in self.rows if k[0] == enrollment_id]:
            del self.rows[key]

    async def delete_for_lesson(self, lesson_id: UUID) -> int:
        keys = [k for k in self.rows if k[1] == lesson_id]
        for key in keys:
            del self.rows[key]
        return len(keys)


class Catalog:
    """Synchronous helpers for seeding courses and lessons in the fakes."""

    def __init__(self, courses: FakeCourseRepository, lessons: FakeLessonRepository):
        self.courses = courses
        self.lessons = lessons
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    def _tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def course(
        self,
        status: ContentStatus = ContentStatus.PUBLISHED,
        title: str = "Intro to Python",
    ) -> Course:
        course = Course(title=title, status=status.value, created_at=self._tick())
        self.courses.rows[course.id] = course
        return course

    def lesson(
        self,
        course: Course,
        order: int | None = None,
        title: str = "Lesson",
        video_url: str | None = None,
    ) -> Lesson:
        if order is None:
            existing = [
                x.order for x in self.lessons.rows.values() if x.course_id == course.id
            ]
            order = max(existing, default=-1) + 1
        lesson = Lesson(
            course_id=course.id,
            title=title,
            order=order,
            video_url=video_url,
            created_at=self._tick(),
        )
        self.lessons.rows[lesson.id] = lesson
        return lesson


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def course_repo() -> FakeCourseRepository:
    return FakeCourseRepository()


@pytest.fixture
def lesson_repo() -> FakeLessonRepository:
    return FakeLessonRepository()


@pytest.fixture
def enrollment_repo() -> FakeEnrollmentRepository:
    return FakeEnrollmentRepository()


@pytest.fixture
def progress_repo() -> FakeLessonProgressRepository:
    return FakeLessonProgressRepository()


@pytest.fixture
def catalog(course_repo, lesson_repo) -> Catalog:
    return Catalog(course_repo, lesson_repo)


@pytest.fixture
def progress_service(
    enrollment_repo, progress_repo, course_repo, lesson_repo
) -> ProgressService:
    return ProgressService(enrollment_repo, progress_repo, course_repo, lesson_repo)


@pytest.fixture
def course_service(
    course_repo, lesson_repo, enrollment_repo, progress_repo
) -> CourseService:
    return CourseService(course_repo, lesson_repo, enrollment_repo, progress_repo)


@pytest.fixture
def lesson_service(course_repo, lesson_repo, progress_repo) -> LessonService:
    return LessonService(course_repo, lesson_repo, progress_repo)


@pytest.fixture
def student() -> Principal:
    return Principal(id=uuid4(), role=UserRole.STUDENT)


@pytest.fixture
def other_student() -> Principal:
    return Principal(id=uuid4(), role=UserRole.STUDENT)


@pytest.fixture
def admin() -> Principal:
    return Principal(id=uuid4(), role=UserRole.ADMIN)


def auth_headers(principal: Principal) -> dict[str, str]:
    token = create_access_token({"sub": str(principal.id), "role": principal.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers(student) -> dict[str, str]:
    return auth_headers(student)


@pytest.fixture
def other_student_headers(other_student) -> dict[str, str]:
    return auth_headers(other_student)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture
def client(progress_service, course_service, lesson_service) -> Iterator[TestClient]:
    """Test client backed by the in-memory repositories (no lifespan)."""
    from src.main import app, app_state

    app_state.course_service = course_service
    app_state.lesson_service = lesson_service
    app_state.progress_service = progress_service
    try:
        yield TestClient(app)
    finally:
        app_state.course_service = None
        app_state.lesson_service = None
        app_state.progress_service = None
