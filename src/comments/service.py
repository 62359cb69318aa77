"""Comment moderation engine.

Business logic for:
- Visitor submissions on published articles (always PENDING)
- Parent/article consistency for replies
- Visibility rules for public and moderator listings
- Status transitions, edits (back to PENDING) and one-level cascade delete
- Duplicate submission guard (Redis, optional)
"""

import hashlib
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from src.auth.permissions import Action, authorize, can
from src.core.exceptions import NotFoundError, ValidationError
from src.core.redis import comment_fingerprint_key
from src.utils.dates import sort_key, utc_now

from .models import Comment, CommentStatus, create_comment


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis

    from src.auth.schemas import AuthenticatedUser


logger = structlog.get_logger(__name__)

PUBLISHED = "PUBLISHED"


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentNotFoundError(NotFoundError):
    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class CommentArticleNotFoundError(NotFoundError):
    """Article missing or not published. The two cases are indistinguishable."""

    def __init__(self, message: str = "Article not found"):
        super().__init__(message, "article_not_found")


class InvalidParentCommentError(ValidationError):
    def __init__(self, message: str = "Invalid parent comment"):
        super().__init__(message, "invalid_parent")


class DuplicateCommentError(ValidationError):
    def __init__(
        self,
        message: str = "Duplicate comment detected. Please wait before posting it again.",
    ):
        super().__init__(message, "duplicate_comment")


def content_hash(content: str) -> str:
    """Fingerprint of normalized comment content."""
    normalized = " ".join(content.lower().split())
    return hashlib.sha256(normalized.encode()).hexdigest()[:32]


def by_newest(comments: list[Comment]) -> list[Comment]:
    return sorted(comments, key=lambda c: sort_key(c.created_at), reverse=True)


def by_oldest(comments: list[Comment]) -> list[Comment]:
    return sorted(comments, key=lambda c: sort_key(c.created_at))


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for comment moderation."""

    DUPLICATE_WINDOW_SECONDS = 3600

    def __init__(self, session: "Session", keyspace: str, redis: "Redis | None" = None):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments
            (id, article_id, parent_id, content, author_name, author_email,
             author_ip, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_comment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments WHERE id = ?
        """)

        self._select_by_article = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments WHERE article_id = ?
        """)

        self._select_by_parent = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments WHERE parent_id = ?
        """)

        self._select_by_status = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments WHERE status = ?
        """)

        self._update_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments
            SET status = ?, updated_at = ?
            WHERE id = ?
        """)

        self._update_content = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments
            SET content = ?, status = ?, updated_at = ?
            WHERE id = ?
        """)

        self._delete_comment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments WHERE id = ?
        """)

        self._select_article = self.session.prepare(f"""
            SELECT id, title, slug, status FROM {self.keyspace}.articles WHERE id = ?
        """)

    # ==========================================================================
    # Abuse guard
    # ==========================================================================

    async def check_duplicate(self, article_id: UUID, email: str, content: str) -> None:
        """Reject the same body from the same e-mail on the same article.

        The fingerprint is remembered for one hour. Without Redis the check
        is skipped.
        """
        if not self.redis:
            return

        key = comment_fingerprint_key(str(article_id), email, content_hash(content))
        stored = await self.redis.set(
            key, "1", nx=True, ex=self.DUPLICATE_WINDOW_SECONDS
        )
        if not stored:
            logger.info("duplicate_comment_rejected", article_id=str(article_id))
            raise DuplicateCommentError

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def find_comment(self, comment_id: UUID) -> Comment | None:
        result = await self.session.aexecute(self._select_comment, [comment_id])
        row = result[0] if result else None
        return Comment.from_row(row) if row else None

    async def _get_comment(self, comment_id: UUID) -> Comment:
        comment = await self.find_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError
        return comment

    async def _comments_for_article(self, article_id: UUID) -> list[Comment]:
        rows = await self.session.aexecute(self._select_by_article, [article_id])
        return [Comment.from_row(row) for row in rows]

    async def _direct_replies(self, comment_id: UUID) -> list[Comment]:
        rows = await self.session.aexecute(self._select_by_parent, [comment_id])
        return [Comment.from_row(row) for row in rows]

    async def _approved_replies(self, comment_id: UUID) -> list[Comment]:
        """Approved direct replies, oldest first."""
        replies = await self._direct_replies(comment_id)
        return by_oldest(
            [r for r in replies if r.status == CommentStatus.APPROVED.value]
        )

    async def with_replies(self, comment: Comment) -> Comment:
        comment.replies = await self._approved_replies(comment.id)
        return comment

    async def article_summary(self, article_id: UUID) -> dict[str, Any] | None:
        result = await self.session.aexecute(self._select_article, [article_id])
        row = result[0] if result else None
        if not row:
            return None
        return {"id": row.id, "title": row.title, "slug": row.slug}

    # ==========================================================================
    # Moderation engine
    # ==========================================================================

    async def submit_comment(
        self,
        article_id: UUID,
        content: str,
        author_name: str,
        author_email: str,
        parent_id: UUID | None = None,
        client_ip: str | None = None,
    ) -> Comment:
        """Submit a visitor comment or reply.

        Checks:
        - Article exists and is PUBLISHED (otherwise 404)
        - Parent, when given, exists and belongs to the same article
        - Same body from the same e-mail not posted within the last hour

        The comment is stored as PENDING with the client IP for abuse review.
        """
        result = await self.session.aexecute(self._select_article, [article_id])
        article = result[0] if result else None
        if article is None or article.status != PUBLISHED:
            raise CommentArticleNotFoundError

        if parent_id is not None:
            parent = await self.find_comment(parent_id)
            if parent is None or parent.article_id != article_id:
                raise InvalidParentCommentError

        await self.check_duplicate(article_id, author_email, content)

        comment = create_comment(
            article_id=article_id,
            content=content,
            author_name=author_name,
            author_email=author_email,
            parent_id=parent_id,
            author_ip=client_ip,
        )

        await self.session.aexecute(
            self._insert_comment,
            [
                comment.id,
                comment.article_id,
                comment.parent_id,
                comment.content,
                comment.author_name,
                comment.author_email,
                comment.author_ip,
                comment.status,
                comment.created_at,
                comment.updated_at,
            ],
        )

        logger.info(
            "comment_submitted",
            comment_id=str(comment.id),
            article_id=str(article_id),
            is_reply=comment.is_reply,
        )
        return comment

    async def list_comments(
        self,
        article_id: UUID,
        viewer: "AuthenticatedUser | None" = None,
        status_filter: CommentStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Comment], int]:
        """List comments of an article, newest first.

        Non-privileged viewers only see APPROVED comments whatever filter they
        ask for; privileged viewers get ``status_filter`` as an exact match or
        every status. Embedded replies are always APPROVED only.

        Returns:
            Tuple of (page items with replies, total matching).
        """
        if can(viewer, Action.MODERATE_COMMENTS):
            effective_status = status_filter.value if status_filter else None
        else:
            effective_status = CommentStatus.APPROVED.value

        comments = await self._comments_for_article(article_id)
        if effective_status is not None:
            comments = [c for c in comments if c.status == effective_status]

        ordered = by_newest(comments)
        skip = max(page - 1, 0) * limit
        items = ordered[skip : skip + limit]

        for comment in items:
            await self.with_replies(comment)

        return items, len(ordered)

    async def approved_thread(self, article_id: UUID) -> list[Comment]:
        """Approved top-level comments with approved replies, for article pages."""
        comments = await self._comments_for_article(article_id)
        top_level = by_newest(
            [
                c
                for c in comments
                if c.parent_id is None and c.status == CommentStatus.APPROVED.value
            ]
        )
        for comment in top_level:
            await self.with_replies(comment)
        return top_level

    async def update_status(
        self,
        comment_id: UUID,
        new_status: CommentStatus,
        actor: "AuthenticatedUser",
    ) -> Comment:
        """Moderator transition. Any status may move to any other."""
        authorize(actor, Action.MODERATE_COMMENTS)

        comment = await self._get_comment(comment_id)
        previous = comment.status
        now = utc_now()

        await self.session.aexecute(
            self._update_status, [new_status.value, now, comment.id]
        )

        comment.status = new_status.value
        comment.updated_at = now

        logger.info(
            "comment_status_updated",
            comment_id=str(comment.id),
            from_status=previous,
            to_status=comment.status,
        )
        return await self.with_replies(comment)

    async def edit_comment(
        self,
        comment_id: UUID,
        new_content: str,
        actor: "AuthenticatedUser",
    ) -> Comment:
        """Replace the content and send the comment back to moderation.

        Allowed for the original submitter (matched by e-mail) and for
        privileged users. The status becomes PENDING even for moderator edits.
        """
        comment = await self._get_comment(comment_id)
        authorize(
            actor,
            Action.EDIT_COMMENT,
            comment,
            message="Not authorized to edit this comment",
        )

        now = utc_now()
        await self.session.aexecute(
            self._update_content,
            [new_content, CommentStatus.PENDING.value, now, comment.id],
        )

        comment.content = new_content
        comment.status = CommentStatus.PENDING.value
        comment.updated_at = now

        logger.info("comment_edited", comment_id=str(comment.id))
        return await self.with_replies(comment)

    async def delete_comment(
        self,
        comment_id: UUID,
        actor: "AuthenticatedUser",
    ) -> int:
        """Delete a comment and its direct replies.

        Replies of replies are left in place.

        Returns:
            Number of deleted comments.
        """
        comment = await self._get_comment(comment_id)
        authorize(
            actor,
            Action.DELETE_COMMENT,
            comment,
            message="Not authorized to delete this comment",
        )

        replies = await self._direct_replies(comment.id)
        for reply in replies:
            await self.session.aexecute(self._delete_comment, [reply.id])
        await self.session.aexecute(self._delete_comment, [comment.id])

        logger.info(
            "comment_deleted",
            comment_id=str(comment.id),
            replies_deleted=len(replies),
        )
        return len(replies) + 1

    async def pending(
        self,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[dict[str, Any]], int]:
        """Moderation queue, newest first, each with its article summary."""
        rows = await self.session.aexecute(
            self._select_by_status, [CommentStatus.PENDING.value]
        )
        ordered = by_newest([Comment.from_row(row) for row in rows])
        skip = max(page - 1, 0) * limit

        items = []
        articles: dict[UUID, dict[str, Any] | None] = {}
        for comment in ordered[skip : skip + limit]:
            if comment.article_id not in articles:
                articles[comment.article_id] = await self.article_summary(
                    comment.article_id
                )
            data = comment.to_dict(include_private=True)
            data["article"] = articles[comment.article_id]
            items.append(data)

        return items, len(ordered)

    async def comments_with_status(self, status: CommentStatus) -> list[Comment]:
        rows = await self.session.aexecute(self._select_by_status, [status.value])
        return [Comment.from_row(row) for row in rows]
