"""Database models for article comments.

Cassandra table definitions for:
- Comments: one table keyed by comment id, with secondary indexes for the
  per-article listing, reply lookup and moderation queue

Architecture: Adjacency list. ``parent_id`` references the replied-to
comment, which must belong to the same article. Replies are rendered one
level deep.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from src.utils.dates import ensure_utc_aware, utc_now


class CommentStatus(str, Enum):
    """Moderation state.

    PENDING is the only initial state, for creation and for content edits.
    Moderators may move a comment between any two states.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SPAM = "SPAM"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    id UUID PRIMARY KEY,
    article_id UUID,
    parent_id UUID,
    content TEXT,
    author_name TEXT,
    author_email TEXT,
    author_ip TEXT,
    status TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COMMENT_ARTICLE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_article_idx ON {keyspace}.comments (article_id)
"""

COMMENT_PARENT_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_parent_idx ON {keyspace}.comments (parent_id)
"""

COMMENT_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_status_idx ON {keyspace}.comments (status)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENT_ARTICLE_INDEX_CQL,
    COMMENT_PARENT_INDEX_CQL,
    COMMENT_STATUS_INDEX_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment entity.

    ``replies`` is not stored; the service fills it with the approved direct
    replies when a comment is returned.
    """

    id: UUID
    article_id: UUID
    parent_id: UUID | None
    content: str
    author_name: str
    author_email: str
    author_ip: str | None
    status: str
    created_at: datetime
    updated_at: datetime
    replies: list["Comment"] = field(default_factory=list)

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        created_at = ensure_utc_aware(row.created_at) or utc_now()
        return cls(
            id=row.id,
            article_id=row.article_id,
            parent_id=row.parent_id,
            content=row.content or "",
            author_name=row.author_name or "",
            author_email=row.author_email or "",
            author_ip=row.author_ip,
            status=row.status or CommentStatus.PENDING.value,
            created_at=created_at,
            updated_at=ensure_utc_aware(row.updated_at) or created_at,
        )

    def to_dict(self, include_private: bool = False) -> dict[str, Any]:
        """Convert to the API representation.

        Args:
            include_private: Include the commenter's e-mail and IP address
                (moderator views only).
        """
        data: dict[str, Any] = {
            "id": self.id,
            "articleId": self.article_id,
            "parentId": self.parent_id,
            "content": self.content,
            "authorName": self.author_name,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "replies": [r.to_dict(include_private) for r in self.replies],
        }
        if include_private:
            data["authorEmail"] = self.author_email
            data["authorIp"] = self.author_ip
        return data


def create_comment(
    article_id: UUID,
    content: str,
    author_name: str,
    author_email: str,
    parent_id: UUID | None = None,
    author_ip: str | None = None,
) -> Comment:
    """Factory for a new comment. Always PENDING."""
    now = utc_now()
    return Comment(
        id=uuid4(),
        article_id=article_id,
        parent_id=parent_id,
        content=content,
        author_name=author_name,
        author_email=author_email,
        author_ip=author_ip,
        status=CommentStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )
