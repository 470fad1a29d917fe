"""Tests for the Cassandra progress repositories (mocked session)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from src.progress.models import Enrollment, EnrollmentStatus, LessonProgress
from src.progress.repository import EnrollmentRepository, LessonProgressRepository


class _ResultSet(list):
    """ResultSet stand-in: iterable with ``one()`` and ``was_applied``."""

    def __init__(self, rows: list, was_applied: bool = True):
        super().__init__(rows)
        self.was_applied = was_applied

    def one(self):
        return self[0] if self else None


def _result(rows: list, was_applied: bool = True) -> _ResultSet:
    return _ResultSet(rows, was_applied)


@pytest.fixture
def mock_session():
    """Mock Cassandra session; prepared statements are the CQL strings."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: cql)
    session.aexecute = AsyncMock(return_value=_result([]))
    return session


def _enrollment_row(**overrides):
    values = {
        "id": uuid4(),
        "user_id": uuid4(),
        "course_id": uuid4(),
        "status": EnrollmentStatus.ACTIVE.value,
        "enrolled_at": None,
        "updated_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestEnrollmentRepository:
    @pytest.mark.asyncio
    async def test_insert_writes_main_row_then_claims_lookup(self, mock_session) -> None:
        repo = EnrollmentRepository(mock_session, "test_keyspace")
        enrollment = Enrollment(user_id=uuid4(), course_id=uuid4())

        assert await repo.insert(enrollment) is True

        calls = mock_session.aexecute.await_args_list
        assert len(calls) == 2
        main_cql, main_params = calls[0].args
        lookup_cql, lookup_params = calls[1].args
        assert "test_keyspace.enrollments\n" in main_cql
        assert main_params[0] == enrollment.id
        assert "enrollments_by_user" in lookup_cql
        assert "IF NOT EXISTS" in lookup_cql
        assert lookup_params == [
            enrollment.user_id,
            enrollment.course_id,
            enrollment.id,
        ]

    @pytest.mark.asyncio
    async def test_insert_lost_claim_removes_own_row(self, mock_session) -> None:
        repo = EnrollmentRepository(mock_session, "test_keyspace")
        enrollment = Enrollment(user_id=uuid4(), course_id=uuid4())
        holder = SimpleNamespace(enrollment_id=uuid4())
        mock_session.aexecute = AsyncMock(
            side_effect=[
                _result([]),
                _result([holder], was_applied=False),
                _result([]),
            ]
        )

        assert await repo.insert(enrollment) is False

        cleanup_cql, cleanup_params = mock_session.aexecute.await_args.args
        assert cleanup_cql.startswith("DELETE FROM test_keyspace.enrollments ")
        assert cleanup_params == [enrollment.id]

    @pytest.mark.asyncio
    async def test_get_for_user_course_follows_lookup(self, mock_session) -> None:
        repo = EnrollmentRepository(mock_session, "test_keyspace")
        row = _enrollment_row()
        mock_session.aexecute = AsyncMock(
            side_effect=[
                _result([SimpleNamespace(enrollment_id=row.id)]),
                _result([row]),
            ]
        )

        enrollment = await repo.get_for_user_course(row.user_id, row.course_id)

        assert enrollment is not None
        assert enrollment.id == row.id
        assert mock_session.aexecute.await_args_list[1].args[1] == [row.id]

    @pytest.mark.asyncio
    async def test_get_for_user_course_none_without_lookup(self, mock_session) -> None:
        repo = EnrollmentRepository(mock_session, "test_keyspace")

        assert await repo.get_for_user_course(uuid4(), uuid4()) is None
        assert mock_session.aexecute.await_count == 1

    @pytest.mark.asyncio
    async def test_list_for_user_skips_orphaned_lookup(self, mock_session) -> None:
        repo = EnrollmentRepository(mock_session, "test_keyspace")
        row = _enrollment_row()
        mock_session.aexecute = AsyncMock(
            side_effect=[
                _result(
                    [
                        SimpleNamespace(enrollment_id=row.id),
                        SimpleNamespace(enrollment_id=uuid4()),
                    ]
                ),
                _result([row]),
                _result([]),
            ]
        )

        enrollments = await repo.list_for_user(row.user_id)

        assert [e.id for e in enrollments] == [row.id]

    @pytest.mark.asyncio
    async def test_update_status(self, mock_session) -> None:
        repo = EnrollmentRepository(mock_session, "test_keyspace")
        enrollment = Enrollment(
            user_id=uuid4(), course_id=uuid4(), status=EnrollmentStatus.DROPPED.value
        )

        await repo.update_status(enrollment)

        cql, params = mock_session.aexecute.await_args.args
        assert cql.strip().startswith("UPDATE test_keyspace.enrollments")
        assert params == ["dropped", enrollment.updated_at, enrollment.id]

    @pytest.mark.asyncio
    async def test_delete_removes_lookup(self, mock_session) -> None:
        repo = EnrollmentRepository(mock_session, "test_keyspace")
        enrollment = Enrollment(user_id=uuid4(), course_id=uuid4())

        await repo.delete(enrollment)

        last_cql, last_params = mock_session.aexecute.await_args.args
        assert "enrollments_by_user" in last_cql
        assert last_params == [enrollment.user_id, enrollment.course_id]


class TestLessonProgressRepository:
    @pytest.mark.asyncio
    async def test_seed_creates_rows_in_order(self, mock_session) -> None:
        repo = LessonProgressRepository(mock_session, "test_keyspace")
        enrollment_id = uuid4()
        lesson_ids = [uuid4(), uuid4(), uuid4()]

        rows = await repo.seed(enrollment_id, lesson_ids)

        assert [row.lesson_id for row in rows] == lesson_ids
        assert all(not row.completed for row in rows)
        written = [call.args[1] for call in mock_session.aexecute.await_args_list]
        assert [params[1] for params in written] == lesson_ids
        assert all(params[3] is False and params[4] is None for params in written)

    @pytest.mark.asyncio
    async def test_seed_nothing_for_empty_course(self, mock_session) -> None:
        repo = LessonProgressRepository(mock_session, "test_keyspace")

        assert await repo.seed(uuid4(), []) == []
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_for_enrollment_maps_rows(self, mock_session) -> None:
        repo = LessonProgressRepository(mock_session, "test_keyspace")
        enrollment_id = uuid4()
        raw = SimpleNamespace(
            enrollment_id=enrollment_id,
            lesson_id=uuid4(),
            id=uuid4(),
            completed=None,
            completed_at=None,
        )
        mock_session.aexecute = AsyncMock(return_value=_result([raw]))

        rows = await repo.list_for_enrollment(enrollment_id)

        assert len(rows) == 1
        assert isinstance(rows[0], LessonProgress)
        assert rows[0].completed is False

    @pytest.mark.asyncio
    async def test_delete_for_lesson_deletes_each_row(self, mock_session) -> None:
        repo = LessonProgressRepository(mock_session, "test_keyspace")
        lesson_id = uuid4()
        refs = [
            SimpleNamespace(enrollment_id=uuid4(), lesson_id=lesson_id)
            for _ in range(2)
        ]
        mock_session.aexecute = AsyncMock(
            side_effect=[_result(refs), _result([]), _result([])]
        )

        deleted = await repo.delete_for_lesson(lesson_id)

        assert deleted == 2
        deletes = mock_session.aexecute.await_args_list[1:]
        assert [call.args[1] for call in deletes] == [
            [ref.enrollment_id, lesson_id] for ref in refs
        ]
