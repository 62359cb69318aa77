"""Database models for the homepage hero banner.

At most one hero is active at a time; the service deactivates the others
whenever one is activated.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.utils.dates import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

HERO_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.heroes (
    id UUID PRIMARY KEY,
    title TEXT,
    image_url TEXT,
    description TEXT,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

HERO_ACTIVE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS heroes_active_idx ON {keyspace}.heroes (is_active)
"""

HERO_TABLES_CQL = [HERO_TABLE_CQL, HERO_ACTIVE_INDEX_CQL]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Hero:
    title: str
    image_url: str
    description: str | None = None
    is_active: bool = True
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: Any) -> "Hero":
        created_at = ensure_utc_aware(row.created_at) or utc_now()
        return cls(
            id=row.id,
            title=row.title or "",
            image_url=row.image_url or "",
            description=row.description,
            is_active=bool(row.is_active),
            created_at=created_at,
            updated_at=ensure_utc_aware(row.updated_at) or created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "imageUrl": self.image_url,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
