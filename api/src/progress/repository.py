"""Cassandra access for enrollments and lesson progress."""

from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.progress.models import Enrollment, LessonProgress


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class EnrollmentRepository:
    """Enrollment rows plus the (user, course) lookup table.

    Writes go to the main table first, then the lookup.
    """

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_enrollment = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments WHERE id = ?"
        )
        self._list_course_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments WHERE course_id = ?"
        )
        self._list_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments"
        )
        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (id, user_id, course_id, status, enrolled_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)
        self._update_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET status = ?, updated_at = ?
            WHERE id = ?
        """)
        self._delete_enrollment = self.session.prepare(
            f"DELETE FROM {self.keyspace}.enrollments WHERE id = ?"
        )

        # Lookup by user
        self._get_lookup = self.session.prepare(f"""
            SELECT enrollment_id FROM {self.keyspace}.enrollments_by_user
            WHERE user_id = ? AND course_id = ?
        """)
        self._list_user_lookups = self.session.prepare(f"""
            SELECT enrollment_id FROM {self.keyspace}.enrollments_by_user
            WHERE user_id = ?
        """)
        self._insert_lookup = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_user
            (user_id, course_id, enrollment_id)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)
        self._delete_lookup = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.enrollments_by_user
            WHERE user_id = ? AND course_id = ?
            IF EXISTS
        """)

    async def get(self, enrollment_id: UUID) -> Enrollment | None:
        result = await self.session.aexecute(self._get_enrollment, [enrollment_id])
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def get_for_user_course(
        self, user_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        """The single enrollment for a (user, course) pair, if any."""
        result = await self.session.aexecute(self._get_lookup, [user_id, course_id])
        row = result.one()
        if not row:
            return None
        return await self.get(row.enrollment_id)

    async def list_for_user(self, user_id: UUID) -> list[Enrollment]:
        """A user's enrollments, newest first."""
        rows = await self.session.aexecute(self._list_user_lookups, [user_id])
        enrollments = []
        for row in rows:
            enrollment = await self.get(row.enrollment_id)
            if enrollment is None:
                # Lookup written but main row gone
                logger.warning(
                    "enrollment_lookup_orphaned",
                    user_id=str(user_id),
                    enrollment_id=str(row.enrollment_id),
                )
                continue
            enrollments.append(enrollment)
        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)
        return enrollments

    async def list_for_course(self, course_id: UUID) -> list[Enrollment]:
        rows = await self.session.aexecute(self._list_course_enrollments, [course_id])
        return [Enrollment.from_row(row) for row in rows]

    async def list_all(self) -> list[Enrollment]:
        """Every enrollment, newest first."""
        rows = await self.session.aexecute(self._list_enrollments)
        enrollments = [Enrollment.from_row(row) for row in rows]
        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)
        return enrollments

    async def insert(self, enrollment: Enrollment) -> bool:
        """Write the enrollment row, then claim the (user, course) pair.

        The claim is a lightweight transaction, so of two concurrent inserts
        for the same pair exactly one wins. The loser removes its own row.

        Returns:
            False if another enrollment already holds the pair
        """
        await self.session.aexecute(
            self._insert_enrollment,
            [
                enrollment.id,
                enrollment.user_id,
                enrollment.course_id,
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.updated_at,
            ],
        )
        claim = await self.session.aexecute(
            self._insert_lookup,
            [enrollment.user_id, enrollment.course_id, enrollment.id],
        )
        if claim.was_applied:
            return True

        await self.session.aexecute(self._delete_enrollment, [enrollment.id])
        logger.warning(
            "enrollment_claim_lost",
            enrollment_id=str(enrollment.id),
            user_id=str(enrollment.user_id),
            course_id=str(enrollment.course_id),
        )
        return False

    async def update_status(self, enrollment: Enrollment) -> None:
        await self.session.aexecute(
            self._update_status,
            [enrollment.status, enrollment.updated_at, enrollment.id],
        )

    async def delete(self, enrollment: Enrollment) -> None:
        await self.session.aexecute(self._delete_enrollment, [enrollment.id])
        await self.session.aexecute(
            self._delete_lookup, [enrollment.user_id, enrollment.course_id]
        )


class LessonProgressRepository:
    """One row per (enrollment, lesson); writes are upserts."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE enrollment_id = ? AND lesson_id = ?
        """)
        self._list_enrollment_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE enrollment_id = ?
        """)
        self._list_lesson_progress = self.session.prepare(f"""
            SELECT enrollment_id, lesson_id FROM {self.keyspace}.lesson_progress
            WHERE lesson_id = ?
        """)
        self._upsert_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (enrollment_id, lesson_id, id, completed, completed_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._delete_progress = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.lesson_progress
            WHERE enrollment_id = ? AND lesson_id = ?
        """)
        self._delete_enrollment_progress = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.lesson_progress
            WHERE enrollment_id = ?
        """)

    async def get(self, enrollment_id: UUID, lesson_id: UUID) -> LessonProgress | None:
        result = await self.session.aexecute(
            self._get_progress, [enrollment_id, lesson_id]
        )
        row = result.one()
        return LessonProgress.from_row(row) if row else None

    async def list_for_enrollment(self, enrollment_id: UUID) -> list[LessonProgress]:
        rows = await self.session.aexecute(
            self._list_enrollment_progress, [enrollment_id]
        )
        return [LessonProgress.from_row(row) for row in rows]

    async def save(self, progress: LessonProgress) -> None:
        await self.session.aexecute(
            self._upsert_progress,
            [
                progress.enrollment_id,
                progress.lesson_id,
                progress.id,
                progress.completed,
                progress.completed_at,
            ],
        )

    async def seed(
        self, enrollment_id: UUID, lesson_ids: Sequence[UUID]
    ) -> list[LessonProgress]:
        """Create one not-completed row per lesson, in the given order."""
        rows = []
        for lesson_id in lesson_ids:
            progress = LessonProgress(enrollment_id=enrollment_id, lesson_id=lesson_id)
            await self.save(progress)
            rows.append(progress)
        return rows

    async def delete_for_enrollment(self, enrollment_id: UUID) -> None:
        await self.session.aexecute(self._delete_enrollment_progress, [enrollment_id])

    async def delete_for_lesson(self, lesson_id: UUID) -> int:
        """Delete every progress row referencing a lesson. Returns the count."""
        rows = await self.session.aexecute(self._list_lesson_progress, [lesson_id])
        deleted = 0
        for row in rows:
            await self.session.aexecute(
                self._delete_progress, [row.enrollment_id, row.lesson_id]
            )
            deleted += 1
        return deleted
