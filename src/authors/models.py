"""Database models for authors (bylines).

Cassandra table definitions for:
- Authors: keyed by id, with secondary indexes on email (unique by
  service check) and status
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from src.auth.permissions import UserRole
from src.utils.dates import ensure_utc_aware, utc_now


class AuthorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

AUTHOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.authors (
    id UUID PRIMARY KEY,
    name TEXT,
    email TEXT,
    phone TEXT,
    bio TEXT,
    avatar TEXT,
    role TEXT,
    status TEXT,
    specialties LIST<TEXT>,
    social_links MAP<TEXT, TEXT>,
    location TEXT,
    verified BOOLEAN,
    last_active TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

AUTHOR_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS authors_email_idx ON {keyspace}.authors (email)
"""

AUTHOR_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS authors_status_idx ON {keyspace}.authors (status)
"""

AUTHORS_TABLES_CQL = [
    AUTHOR_TABLE_CQL,
    AUTHOR_EMAIL_INDEX_CQL,
    AUTHOR_STATUS_INDEX_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Author:
    """Byline author.

    Authors are editorial records, distinct from the user accounts that sign
    in; ``role`` describes the masthead position.
    """

    def __init__(
        self,
        id: UUID | None = None,
        name: str = "",
        email: str = "",
        phone: str | None = None,
        bio: str = "",
        avatar: str | None = None,
        role: str = UserRole.AUTHOR.value,
        status: str = AuthorStatus.ACTIVE.value,
        specialties: list[str] | None = None,
        social_links: dict[str, str] | None = None,
        location: str | None = None,
        verified: bool = False,
        last_active: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.name = name.strip()
        self.email = email.strip().lower()
        self.phone = phone
        self.bio = bio
        self.avatar = avatar
        self.role = role
        self.status = status
        self.specialties = list(specialties or [])
        self.social_links = dict(social_links or {})
        self.location = location
        self.verified = bool(verified)
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at
        self.last_active = ensure_utc_aware(last_active) or self.created_at

    @property
    def is_active(self) -> bool:
        return self.status == AuthorStatus.ACTIVE.value

    @classmethod
    def from_row(cls, row: Any) -> "Author":
        return cls(
            id=row.id,
            name=row.name or "",
            email=row.email or "",
            phone=row.phone,
            bio=row.bio or "",
            avatar=row.avatar,
            role=row.role or UserRole.AUTHOR.value,
            status=row.status or AuthorStatus.ACTIVE.value,
            specialties=row.specialties,
            social_links=row.social_links,
            location=row.location,
            verified=row.verified or False,
            last_active=row.last_active,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def matches(self, term: str) -> bool:
        needle = term.lower()
        return (
            needle in self.name.lower()
            or needle in self.email.lower()
            or needle in self.bio.lower()
        )

    def to_dict(self, article_count: int | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "bio": self.bio,
            "avatar": self.avatar,
            "role": self.role,
            "status": self.status,
            "specialties": self.specialties,
            "socialLinks": self.social_links,
            "location": self.location,
            "verified": self.verified,
            "lastActive": self.last_active,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if article_count is not None:
            data["articleCount"] = article_count
        return data

    def __repr__(self) -> str:
        return f"<Author {self.email}>"
