"""Pydantic schemas for authentication."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.auth.permissions import UserRole


class Principal(BaseModel):
    """The authenticated caller of an operation."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: UserRole = UserRole.STUDENT

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
