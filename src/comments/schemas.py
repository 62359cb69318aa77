"""Pydantic schemas for comments."""

from typing import Annotated
from uuid import UUID

from pydantic import BeforeValidator, EmailStr, Field, field_validator

from src.core.schemas import CamelModel, upper

from .models import CommentStatus


class CreateCommentRequest(CamelModel):
    """Visitor comment submission. No account required.

    Unknown keys (a ``status`` field, for instance) are ignored, so callers
    cannot choose the initial moderation state.
    """

    article_id: UUID
    content: str = Field(..., min_length=5, max_length=1000)
    author_name: str = Field(..., min_length=2, max_length=100)
    author_email: EmailStr
    parent_id: UUID | None = None

    @field_validator("author_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UpdateCommentRequest(CamelModel):
    content: str = Field(..., min_length=5, max_length=1000)


class UpdateCommentStatusRequest(CamelModel):
    status: Annotated[CommentStatus, BeforeValidator(upper)]
