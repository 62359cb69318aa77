"""Pydantic schemas for categories."""

from pydantic import Field

from src.core.schemas import CamelModel


HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class CategoryCreateRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    color: str | None = Field(None, pattern=HEX_COLOR)
    icon: str | None = None
    is_active: bool = True
    sort_order: int = Field(0, ge=0)


class CategoryUpdateRequest(CamelModel):
    """Partial update. Renaming regenerates the slug."""

    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    color: str | None = Field(None, pattern=HEX_COLOR)
    icon: str | None = None
    is_active: bool | None = None
    sort_order: int | None = Field(None, ge=0)
