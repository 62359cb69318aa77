"""Database models for the back office.

Cassandra table definitions for:
- Users: newsroom accounts, keyed by the id carried in the token ``sub``
  claim; articles reference them through ``articles.created_by``
- Settings: key/value site configuration, values stored as text
"""

from datetime import datetime
from enum import Enum
from typing import Any

from src.auth.permissions import UserRole
from src.utils.dates import ensure_utc_aware, utc_now


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id TEXT PRIMARY KEY,
    email TEXT,
    name TEXT,
    role TEXT,
    status TEXT,
    avatar TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USER_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_email_idx ON {keyspace}.users (email)
"""

SETTINGS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.settings (
    key TEXT PRIMARY KEY,
    value TEXT,
    category TEXT,
    description TEXT,
    is_public BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

ADMIN_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_EMAIL_INDEX_CQL,
    SETTINGS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class User:
    """A newsroom account.

    Credentials are managed by the identity provider that issues tokens;
    only the profile and the role/status pair live here.
    """

    def __init__(
        self,
        id: str,
        email: str,
        name: str = "",
        role: str = UserRole.AUTHOR.value,
        status: str = UserStatus.ACTIVE.value,
        avatar: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id
        self.email = email
        self.name = name
        self.role = role
        self.status = status
        self.avatar = avatar
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "User":
        return cls(
            id=row.id,
            email=row.email or "",
            name=row.name or "",
            role=row.role or UserRole.AUTHOR.value,
            status=row.status or UserStatus.ACTIVE.value,
            avatar=row.avatar,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def matches(self, term: str) -> bool:
        needle = term.lower()
        return needle in self.name.lower() or needle in self.email.lower()

    def to_dict(self, article_count: int | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "status": self.status,
            "avatar": self.avatar,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if article_count is not None:
            data["articleCount"] = article_count
        return data

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class Setting:
    """One site setting. ``value`` is always text."""

    def __init__(
        self,
        key: str,
        value: str,
        category: str | None = None,
        description: str | None = None,
        is_public: bool = False,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.key = key
        self.value = value
        self.category = category
        self.description = description
        self.is_public = is_public
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "Setting":
        return cls(
            key=row.key,
            value=row.value or "",
            category=row.category,
            description=row.description,
            is_public=bool(row.is_public),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "category": self.category,
            "description": self.description,
            "isPublic": self.is_public,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Setting {self.key}>"
