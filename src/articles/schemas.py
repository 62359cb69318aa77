"""Pydantic schemas for articles.

Request bodies use camelCase on the wire (``isFeatured``, ``categoryId``)
and snake_case in Python.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BeforeValidator, Field, field_validator

from src.core.schemas import CamelModel, upper

from .models import ArticleStatus


CREATABLE_STATUSES = (
    ArticleStatus.DRAFT,
    ArticleStatus.REVIEW,
    ArticleStatus.PUBLISHED,
)

StatusField = Annotated[ArticleStatus, BeforeValidator(upper)]


class ArticleCreateRequest(CamelModel):
    """Request to create an article."""

    title: str = Field(..., min_length=5, max_length=200)
    excerpt: str = Field(..., min_length=10, max_length=500)
    content: str = Field(..., min_length=50)
    category_id: UUID
    author_id: UUID
    images: list[str] = Field(default_factory=list)
    status: StatusField = ArticleStatus.DRAFT
    is_featured: bool = False
    is_breaking: bool = False
    seo_title: str | None = Field(None, max_length=200)
    seo_description: str | None = Field(None, max_length=500)
    seo_keywords: list[str] = Field(default_factory=list)
    published_at: datetime | None = None
    scheduled_for: datetime | None = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ArticleStatus) -> ArticleStatus:
        if v not in CREATABLE_STATUSES:
            msg = "Status must be one of DRAFT, REVIEW, PUBLISHED"
            raise ValueError(msg)
        return v


class ArticleUpdateRequest(CamelModel):
    """Partial update; only fields present in the body are applied."""

    title: str | None = Field(None, min_length=5, max_length=200)
    excerpt: str | None = Field(None, min_length=10, max_length=500)
    content: str | None = Field(None, min_length=50)
    category_id: UUID | None = None
    author_id: UUID | None = None
    images: list[str] | None = None
    status: StatusField | None = None
    is_featured: bool | None = None
    is_breaking: bool | None = None
    seo_title: str | None = Field(None, max_length=200)
    seo_description: str | None = Field(None, max_length=500)
    seo_keywords: list[str] | None = None
    published_at: datetime | None = None
    scheduled_for: datetime | None = None
