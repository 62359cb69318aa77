"""Pydantic schemas for media metadata."""

from pydantic import Field

from src.core.schemas import CamelModel


class MediaUpdateRequest(CamelModel):
    alt_text: str | None = Field(None, max_length=200)
    caption: str | None = Field(None, max_length=500)
    folder: str | None = Field(None, max_length=100)
