"""Pydantic schemas for authors."""

from typing import Annotated

from pydantic import BeforeValidator, EmailStr, Field, field_validator

from src.auth.permissions import UserRole
from src.core.schemas import CamelModel, upper

from .models import AuthorStatus


RoleField = Annotated[UserRole, BeforeValidator(upper)]
AuthorStatusField = Annotated[AuthorStatus, BeforeValidator(upper)]


class AuthorCreateRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    bio: str = Field(..., min_length=10, max_length=1000)
    phone: str | None = Field(None, max_length=30)
    avatar: str | None = None
    role: RoleField = UserRole.AUTHOR
    specialties: list[str] = Field(default_factory=list)
    social_links: dict[str, str] | None = None
    location: str | None = None
    verified: bool = False

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class AuthorUpdateRequest(CamelModel):
    """Partial update. Every accepted change refreshes ``lastActive``."""

    name: str | None = Field(None, min_length=2, max_length=100)
    email: EmailStr | None = None
    bio: str | None = Field(None, min_length=10, max_length=1000)
    phone: str | None = Field(None, max_length=30)
    avatar: str | None = None
    role: RoleField | None = None
    status: AuthorStatusField | None = None
    specialties: list[str] | None = None
    social_links: dict[str, str] | None = None
    location: str | None = None
    verified: bool | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v
