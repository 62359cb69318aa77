"""Database models for categories.

Cassandra table definitions for:
- Categories: keyed by id, with secondary indexes for slug and name lookup
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.utils.dates import ensure_utc_aware, utc_now
from src.utils.slug import generate_slug


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

CATEGORY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.categories (
    id UUID PRIMARY KEY,
    name TEXT,
    slug TEXT,
    description TEXT,
    color TEXT,
    icon TEXT,
    is_active BOOLEAN,
    sort_order INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CATEGORY_SLUG_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS categories_slug_idx ON {keyspace}.categories (slug)
"""

CATEGORY_NAME_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS categories_name_idx ON {keyspace}.categories (name)
"""

CATEGORIES_TABLES_CQL = [
    CATEGORY_TABLE_CQL,
    CATEGORY_SLUG_INDEX_CQL,
    CATEGORY_NAME_INDEX_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Category:
    """Category entity.

    Attributes:
        id: Unique identifier (UUID)
        name: Display name, unique
        slug: URL-friendly identifier derived from the name, unique
        description: Optional blurb
        color: Hex colour ``#RRGGBB``
        icon: Optional icon name
        is_active: Inactive categories are hidden from public listings
        sort_order: Ascending display order
    """

    def __init__(
        self,
        id: UUID | None = None,
        name: str = "",
        slug: str | None = None,
        description: str | None = None,
        color: str | None = None,
        icon: str | None = None,
        is_active: bool = True,
        sort_order: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.name = name.strip()
        self.slug = slug or generate_slug(name)
        self.description = description
        self.color = color
        self.icon = icon
        self.is_active = True if is_active is None else bool(is_active)
        self.sort_order = sort_order or 0
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "Category":
        return cls(
            id=row.id,
            name=row.name or "",
            slug=row.slug,
            description=row.description,
            color=row.color,
            icon=row.icon,
            is_active=row.is_active,
            sort_order=row.sort_order,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def summary(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "slug": self.slug}

    def to_dict(self, article_count: int | None = None) -> dict[str, Any]:
        """Convert to the API representation.

        Args:
            article_count: Number of published articles, when known.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "color": self.color,
            "icon": self.icon,
            "isActive": self.is_active,
            "sortOrder": self.sort_order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if article_count is not None:
            data["articleCount"] = article_count
        return data

    def __repr__(self) -> str:
        return f"<Category {self.slug}>"
