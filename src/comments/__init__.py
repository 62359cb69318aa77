"""Comment moderation module.

Provides:
- Visitor comments and replies on published articles
- Moderation queue and status transitions
- Duplicate submission guard

Note: Router is not exported here to avoid circular imports.
Import directly from src.comments.router when needed.
"""

from .models import COMMENTS_TABLES_CQL, Comment, CommentStatus
from .service import CommentService


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentService",
    "CommentStatus",
]
