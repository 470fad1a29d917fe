"""Tests for auth permissions."""

import pytest

from src.auth.permissions import (
    ROLE_HIERARCHY,
    UserRole,
    get_role_level,
    has_permission,
    is_admin,
    parse_role,
)


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        assert UserRole.STUDENT.value == "student"
        assert UserRole.ADMIN.value == "admin"

    def test_all_roles_have_levels(self) -> None:
        """All UserRole members should have defined levels."""
        for role in UserRole:
            assert role in ROLE_HIERARCHY


class TestParseRole:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("admin", UserRole.ADMIN),
            ("student", UserRole.STUDENT),
            (UserRole.ADMIN, UserRole.ADMIN),
            ("superuser", UserRole.STUDENT),
            (None, UserRole.STUDENT),
        ],
    )
    def test_parse(self, value, expected: UserRole) -> None:
        assert parse_role(value) == expected


class TestGetRoleLevel:
    @pytest.mark.parametrize(
        "role,expected",
        [
            (UserRole.STUDENT, 0),
            (UserRole.ADMIN, 1),
            ("admin", 1),
            ("unknown", 0),
        ],
    )
    def test_levels(self, role, expected: int) -> None:
        assert get_role_level(role) == expected


class TestHasPermission:
    """Tests for has_permission function."""

    def test_admin_has_student_permission(self) -> None:
        assert has_permission(UserRole.ADMIN, UserRole.STUDENT) is True

    def test_student_lacks_admin_permission(self) -> None:
        assert has_permission("student", "admin") is False

    def test_same_role(self) -> None:
        assert has_permission(UserRole.STUDENT, UserRole.STUDENT) is True


def test_is_admin() -> None:
    assert is_admin("admin") is True
    assert is_admin(UserRole.ADMIN) is True
    assert is_admin(UserRole.STUDENT) is False
