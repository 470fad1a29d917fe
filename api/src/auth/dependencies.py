"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Principal extraction from the bearer token
- Role-based access control
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from jose import JWTError

from src.auth.permissions import UserRole, has_permission, parse_role
from src.auth.schemas import Principal
from src.auth.security import decode_access_token, role_from_claims
from src.core.context import set_user_id
from src.core.exceptions import ForbiddenError, UnauthorizedError


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def principal_from_token(token: str) -> Principal:
    """Build a principal from an access token.

    Raises:
        UnauthorizedError: If the token is invalid or expired
    """
    try:
        payload = decode_access_token(token)
        user_id = UUID(str(payload["sub"]))
    except (JWTError, ValueError) as e:
        raise UnauthorizedError("Invalid or expired token") from e

    set_user_id(user_id)
    return Principal(id=user_id, role=parse_role(role_from_claims(payload)))


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Principal:
    """Get the authenticated principal.

    Raises:
        UnauthorizedError: If the token is missing, invalid, or expired
    """
    if not token:
        raise UnauthorizedError("Access token not provided")
    return principal_from_token(token)


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Principal | None:
    """Get the principal if authenticated, None otherwise."""
    if not token:
        return None
    try:
        return principal_from_token(token)
    except UnauthorizedError:
        return None


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level.

    Example:
        @router.post("/courses")
        async def create_course(
            user: Annotated[Principal, Depends(require_permission(UserRole.ADMIN))]
        ):
            ...
    """

    async def permission_checker(
        user: Annotated[Principal, Depends(get_current_user)],
    ) -> Principal:
        if not has_permission(user.role, required_role):
            raise ForbiddenError()
        return user

    return permission_checker


CurrentUser = Annotated[Principal, Depends(get_current_user)]

OptionalUser = Annotated[Principal | None, Depends(get_current_user_optional)]

AdminUser = Annotated[Principal, Depends(require_permission(UserRole.ADMIN))]
