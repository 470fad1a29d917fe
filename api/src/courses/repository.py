"""Cassandra access for courses and lessons.

Each repository prepares its statements once and runs them through
``session.aexecute``.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from src.courses.models import Course, Lesson


if TYPE_CHECKING:
    from cassandra.cluster import Session


class CourseRepository:
    """Persistence for course rows."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._list_courses = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses"
        )
        self._upsert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, thumbnail_url, status, instructor_id,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_course = self.session.prepare(
            f"DELETE FROM {self.keyspace}.courses WHERE id = ?"
        )

    async def get(self, course_id: UUID) -> Course | None:
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def list_all(self) -> list[Course]:
        """All courses, newest first."""
        rows = await self.session.aexecute(self._list_courses)
        courses = [Course.from_row(row) for row in rows]
        courses.sort(key=lambda c: c.created_at, reverse=True)
        return courses

    async def save(self, course: Course) -> None:
        """Insert or overwrite a course row."""
        await self.session.aexecute(
            self._upsert_course,
            [
                course.id,
                course.title,
                course.description,
                course.thumbnail_url,
                course.status,
                course.instructor_id,
                course.created_at,
                course.updated_at,
            ],
        )

    async def delete(self, course_id: UUID) -> None:
        await self.session.aexecute(self._delete_course, [course_id])


class LessonRepository:
    """Persistence for lesson rows."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_lesson = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lessons WHERE id = ?"
        )
        self._list_course_lessons = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lessons WHERE course_id = ?"
        )
        self._upsert_lesson = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lessons
            (id, course_id, title, content, video_url, lesson_order,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_lesson_order = self.session.prepare(f"""
            UPDATE {self.keyspace}.lessons
            SET lesson_order = ?, updated_at = ?
            WHERE id = ?
        """)
        self._delete_lesson = self.session.prepare(
            f"DELETE FROM {self.keyspace}.lessons WHERE id = ?"
        )

    async def get(self, lesson_id: UUID) -> Lesson | None:
        result = await self.session.aexecute(self._get_lesson, [lesson_id])
        row = result.one()
        return Lesson.from_row(row) if row else None

    async def list_for_course(self, course_id: UUID) -> list[Lesson]:
        """Lessons of a course, sorted by order then creation time."""
        rows = await self.session.aexecute(self._list_course_lessons, [course_id])
        lessons = [Lesson.from_row(row) for row in rows]
        lessons.sort(key=lambda lesson: lesson.sort_key)
        return lessons

    async def save(self, lesson: Lesson) -> None:
        """Insert or overwrite a lesson row."""
        await self.session.aexecute(
            self._upsert_lesson,
            [
                lesson.id,
                lesson.course_id,
                lesson.title,
                lesson.content,
                lesson.video_url,
                lesson.order,
                lesson.created_at,
                lesson.updated_at,
            ],
        )

    async def update_order(self, lesson: Lesson) -> None:
        await self.session.aexecute(
            self._update_lesson_order,
            [lesson.order, lesson.updated_at, lesson.id],
        )

    async def delete(self, lesson_id: UUID) -> None:
        await self.session.aexecute(self._delete_lesson, [lesson_id])
