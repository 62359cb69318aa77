"""Pydantic schemas for authentication."""

from pydantic import BaseModel, ConfigDict, Field

from src.auth.permissions import UserRole


class AuthenticatedUser(BaseModel):
    """Actor decoded from a bearer token."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="User ID (token subject)")
    email: str = Field(..., description="Email address")
    role: UserRole
    name: str = ""

    @property
    def is_privileged(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.EDITOR)
