"""Database models for the media library.

Cassandra table definitions for:
- Media: one row per stored original, with the relative paths of the
  derived image variants
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.utils.dates import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

MEDIA_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.media (
    id UUID PRIMARY KEY,
    filename TEXT,
    original_name TEXT,
    mime_type TEXT,
    size BIGINT,
    path TEXT,
    url TEXT,
    variants MAP<TEXT, TEXT>,
    alt_text TEXT,
    caption TEXT,
    folder TEXT,
    uploaded_by TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

MEDIA_UPLOADER_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS media_uploaded_by_idx ON {keyspace}.media (uploaded_by)
"""

MEDIA_TABLES_CQL = [
    MEDIA_TABLE_CQL,
    MEDIA_UPLOADER_INDEX_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Media:
    """Stored upload.

    Attributes:
        filename: Generated name on disk
        original_name: Client-supplied name
        path: Location relative to the uploads root (``images/...``)
        url: Public URL under the uploads prefix
        variants: Variant name -> relative path, images only
        uploaded_by: User id of the uploader, for ownership checks
    """

    def __init__(
        self,
        filename: str,
        original_name: str,
        mime_type: str,
        size: int,
        path: str,
        url: str,
        id: UUID | None = None,
        variants: dict[str, str] | None = None,
        alt_text: str | None = None,
        caption: str | None = None,
        folder: str | None = None,
        uploaded_by: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.filename = filename
        self.original_name = original_name
        self.mime_type = mime_type
        self.size = size
        self.path = path
        self.url = url
        self.variants = dict(variants or {})
        self.alt_text = alt_text
        self.caption = caption
        self.folder = folder
        self.uploaded_by = uploaded_by
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def stored_paths(self) -> list[str]:
        """Original plus every variant, relative to the uploads root."""
        return [self.path, *self.variants.values()]

    @classmethod
    def from_row(cls, row: Any) -> "Media":
        return cls(
            id=row.id,
            filename=row.filename or "",
            original_name=row.original_name or "",
            mime_type=row.mime_type or "application/octet-stream",
            size=row.size or 0,
            path=row.path or "",
            url=row.url or "",
            variants=row.variants,
            alt_text=row.alt_text,
            caption=row.caption,
            folder=row.folder,
            uploaded_by=row.uploaded_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def matches(self, term: str) -> bool:
        needle = term.lower()
        return any(
            needle in (value or "").lower()
            for value in (self.original_name, self.alt_text, self.caption)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
            "size": self.size,
            "url": self.url,
            "altText": self.alt_text,
            "caption": self.caption,
            "folder": self.folder,
            "uploadedBy": self.uploaded_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Media {self.path}>"
