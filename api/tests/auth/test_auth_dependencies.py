"""Tests for authentication dependencies."""

from unittest.mock import Mock
from uuid import uuid4

import pytest

from src.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    get_token_from_header,
    principal_from_token,
    require_permission,
)
from src.auth.permissions import UserRole
from src.auth.schemas import Principal
from src.auth.security import create_access_token
from src.core.exceptions import ForbiddenError, UnauthorizedError


def _request(authorization: str | None) -> Mock:
    request = Mock()
    request.headers = {"Authorization": authorization} if authorization else {}
    return request


class TestGetTokenFromHeader:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc", "abc"),
            ("bearer abc", "abc"),
            ("Basic abc", None),
            ("Bearer", None),
            (None, None),
        ],
    )
    def test_parsing(self, header, expected) -> None:
        assert get_token_from_header(_request(header)) == expected


class TestPrincipalFromToken:
    def test_role_claim(self) -> None:
        user_id = uuid4()
        token = create_access_token({"sub": str(user_id), "role": "admin"})

        principal = principal_from_token(token)

        assert principal.id == user_id
        assert principal.is_admin is True

    def test_unknown_role_is_student(self) -> None:
        token = create_access_token({"sub": str(uuid4()), "role": "owner"})

        assert principal_from_token(token).role == UserRole.STUDENT

    def test_non_uuid_subject(self) -> None:
        token = create_access_token({"sub": "alice"})

        with pytest.raises(UnauthorizedError):
            principal_from_token(token)


class TestCurrentUser:
    @pytest.mark.asyncio
    async def test_missing_token(self) -> None:
        with pytest.raises(UnauthorizedError, match="not provided"):
            await get_current_user(None)

    @pytest.mark.asyncio
    async def test_optional_swallows_bad_token(self) -> None:
        assert await get_current_user_optional("garbage") is None
        assert await get_current_user_optional(None) is None


class TestRequirePermission:
    @pytest.mark.asyncio
    async def test_admin_passes(self) -> None:
        check = require_permission(UserRole.ADMIN)
        admin = Principal(id=uuid4(), role=UserRole.ADMIN)

        assert await check(admin) is admin

    @pytest.mark.asyncio
    async def test_student_forbidden(self) -> None:
        check = require_permission(UserRole.ADMIN)

        with pytest.raises(ForbiddenError):
            await check(Principal(id=uuid4()))
