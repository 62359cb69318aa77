"""Pydantic schemas for hero banners."""

from pydantic import Field

from src.core.schemas import CamelModel


class HeroCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    image_url: str = Field(..., min_length=1)
    description: str | None = Field(None, max_length=500)
    is_active: bool = True


class HeroUpdateRequest(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    image_url: str | None = Field(None, min_length=1)
    description: str | None = Field(None, max_length=500)
    is_active: bool | None = None
