"""JWT helpers.

Sessions are issued by the identity provider; this service only validates
access tokens. ``create_access_token`` exists for tooling and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.config.settings import get_settings


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token.

    Args:
        data: Claims (typically {"sub": user_id, "role": role})
        expires_delta: Token lifetime (default from settings)

    Returns:
        Encoded JWT string with ``exp``, ``iat`` and ``type="access"`` added
    """
    settings = get_settings()

    to_encode = data.copy()
    now = datetime.now(UTC)
    expire = now + (
        expires_delta or timedelta(minutes=settings.auth_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "iat": now, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Validates the signature, the expiration time and ``type == "access"``.

    Raises:
        JWTError: If token is invalid, expired, or of the wrong type
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != "access":
        msg = "Invalid token type: expected 'access'"
        raise JWTError(msg)

    if not payload.get("sub"):
        msg = "Token missing sub claim"
        raise JWTError(msg)

    return payload


def role_from_claims(payload: dict[str, Any]) -> str | None:
    """Read the role claim, falling back to ``metadata.role``."""
    role = payload.get("role")
    if role:
        return role
    metadata = payload.get("metadata")
    if isinstance(metadata, dict):
        return metadata.get("role")
    return None
