"""Back-office service layer.

Business logic for:
- Dashboard totals and rankings
- Article analytics over a trailing period
- User role/status management with a delete guard
- Site settings (upsert of text values)
- Moderation queue (pending comments, articles in review)
"""

from collections import Counter, defaultdict
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import structlog

from src.articles.aggregation import AggregationService, by_popularity
from src.articles.models import ArticleStatus
from src.articles.service import ArticleService
from src.auth.permissions import Action, authorize
from src.authors.models import AuthorStatus
from src.authors.service import AuthorService
from src.categories.service import CategoryService
from src.comments.models import CommentStatus
from src.comments.service import CommentService
from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.core.logging import mask_email
from src.core.responses import paginate
from src.utils.dates import sort_key, utc_now

from .models import Setting, User
from .schemas import UserUpdateRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.auth.schemas import AuthenticatedUser


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found")


class EmptyUserUpdateError(ValidationError):
    def __init__(self, message: str = "At least one field (role or status) is required"):
        super().__init__(message, "empty_user_update")


class UserHasArticlesError(ConflictError):
    def __init__(
        self,
        message: str = (
            "Cannot delete user with articles. "
            "Please reassign or delete articles first."
        ),
    ):
        super().__init__(message, "user_has_articles")


# ==============================================================================
# Admin Service
# ==============================================================================


class AdminService:
    """Service for the back office.

    Owns the ``users`` and ``settings`` tables and reads everything else
    through the resource services.
    """

    RECENT_LIMIT = 10
    TOP_LIMIT = 5
    TOP_AUTHORS_LIMIT = 10
    PENDING_COMMENTS_LIMIT = 50
    REVIEW_LIMIT = 20

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        aggregation: AggregationService,
        article_service: ArticleService,
        category_service: CategoryService,
        author_service: AuthorService,
        comment_service: CommentService,
    ):
        self.session = session
        self.keyspace = keyspace
        self.aggregation = aggregation
        self.article_service = article_service
        self.category_service = category_service
        self.author_service = author_service
        self.comment_service = comment_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._upsert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, email, name, role, status, avatar, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_user = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.users WHERE id = ?
        """)

        self._select_users = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.users
        """)

        self._delete_user = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.users WHERE id = ?
        """)

        self._select_creators = self.session.prepare(f"""
            SELECT created_by FROM {self.keyspace}.articles
        """)

        self._select_created_ids = self.session.prepare(f"""
            SELECT id FROM {self.keyspace}.articles WHERE created_by = ?
        """)

        self._upsert_setting = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.settings
            (key, value, category, description, is_public, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_setting = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.settings WHERE key = ?
        """)

        self._select_settings = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.settings
        """)

    # ==========================================================================
    # Dashboard and analytics
    # ==========================================================================

    async def _category_stats(self) -> list[dict[str, Any]]:
        return [
            category.to_dict(article_count=count)
            for category, count in await self.category_service.list_active()
        ]

    async def dashboard(self) -> dict[str, Any]:
        articles = await self.aggregation.all_articles()
        published = [a for a in articles if a.is_published]
        authors = await self.author_service.all_authors()
        categories = await self.category_service.all_categories()
        approved = await self.comment_service.comments_with_status(
            CommentStatus.APPROVED
        )

        stats = {
            "totalArticles": len(articles),
            "publishedArticles": len(published),
            "draftArticles": sum(
                1 for a in articles if a.status == ArticleStatus.DRAFT.value
            ),
            "totalAuthors": sum(
                1 for a in authors if a.status == AuthorStatus.ACTIVE.value
            ),
            "totalCategories": sum(1 for c in categories if c.is_active),
            "totalViews": sum(a.views for a in articles),
            "totalComments": len(approved),
        }

        recent = sorted(articles, key=lambda a: sort_key(a.created_at), reverse=True)
        return {
            "stats": stats,
            "recentArticles": await self.article_service.expand(
                recent[: self.RECENT_LIMIT]
            ),
            "topArticles": await self.article_service.expand(
                by_popularity(published)[: self.TOP_LIMIT]
            ),
            "categoryStats": await self._category_stats(),
        }

    async def article_analytics(self, period: int = 30) -> dict[str, Any]:
        """Status and category breakdowns plus per-day creation counts.

        Args:
            period: Trailing window in days for ``growthData``.
        """
        articles = await self.aggregation.all_articles()
        start = utc_now() - timedelta(days=period)

        by_status = Counter(a.status for a in articles)

        growth: dict[str, dict[str, int]] = {}
        window = sorted(
            (a for a in articles if a.created_at >= start),
            key=lambda a: a.created_at,
        )
        for article in window:
            day = article.created_at.date().isoformat()
            bucket = growth.setdefault(
                day, defaultdict(int, total=0, published=0, draft=0)
            )
            bucket["total"] += 1
            bucket[article.status.lower()] += 1

        published_counts = await self.author_service.published_counts()
        active_authors = [
            a
            for a in await self.author_service.all_authors()
            if a.status == AuthorStatus.ACTIVE.value
        ]
        active_authors.sort(key=lambda a: published_counts.get(a.id, 0), reverse=True)

        return {
            "articlesByStatus": [
                {"status": status, "count": count} for status, count in by_status.items()
            ],
            "articlesByCategory": await self._category_stats(),
            "growthData": {day: dict(bucket) for day, bucket in growth.items()},
            "topAuthors": [
                author.to_dict(article_count=published_counts.get(author.id, 0))
                for author in active_authors[: self.TOP_AUTHORS_LIMIT]
            ],
        }

    # ==========================================================================
    # Users
    # ==========================================================================

    async def _save_user(self, user: User) -> None:
        await self.session.aexecute(
            self._upsert_user,
            [
                user.id,
                user.email,
                user.name,
                user.role,
                user.status,
                user.avatar,
                user.created_at,
                user.updated_at,
            ],
        )

    async def find_user(self, user_id: str) -> User | None:
        result = await self.session.aexecute(self._select_user, [user_id])
        row = result[0] if result else None
        return User.from_row(row) if row else None

    async def created_article_count(self, user_id: str) -> int:
        rows = await self.session.aexecute(self._select_created_ids, [user_id])
        return len(list(rows))

    async def list_users(
        self,
        actor: "AuthenticatedUser",
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> tuple[list[tuple[User, int]], int]:
        """Users newest first, each with the number of articles they created."""
        authorize(actor, Action.MANAGE_USERS)
        rows = await self.session.aexecute(self._select_users, [])
        users = [User.from_row(row) for row in rows]

        if search:
            users = [u for u in users if u.matches(search)]
        if role:
            users = [u for u in users if u.role == role.upper()]
        if status:
            users = [u for u in users if u.status == status.upper()]

        users.sort(key=lambda u: u.created_at, reverse=True)

        creators = await self.session.aexecute(self._select_creators, [])
        counts = Counter(row.created_by for row in creators if row.created_by)

        page_items = paginate(users, page, limit)
        return [(u, counts.get(u.id, 0)) for u in page_items], len(users)

    async def update_user(
        self,
        user_id: str,
        data: UserUpdateRequest,
        actor: "AuthenticatedUser",
    ) -> User:
        authorize(actor, Action.MANAGE_USERS)
        if data.role is None and data.status is None:
            raise EmptyUserUpdateError

        user = await self.find_user(user_id)
        if user is None:
            raise UserNotFoundError

        if data.role is not None:
            user.role = data.role.value
        if data.status is not None:
            user.status = data.status.value
        user.updated_at = utc_now()
        await self._save_user(user)

        logger.info(
            "user_updated",
            target_user_id=user.id,
            role=user.role,
            status=user.status,
        )
        return user

    async def delete_user(self, user_id: str, actor: "AuthenticatedUser") -> None:
        authorize(actor, Action.MANAGE_USERS)
        user = await self.find_user(user_id)
        if user is None:
            raise UserNotFoundError

        if await self.created_article_count(user.id) > 0:
            raise UserHasArticlesError

        await self.session.aexecute(self._delete_user, [user.id])
        logger.info("user_deleted", target_user_id=user.id, email=mask_email(user.email))

    # ==========================================================================
    # Settings
    # ==========================================================================

    async def find_setting(self, key: str) -> Setting | None:
        result = await self.session.aexecute(self._select_setting, [key])
        row = result[0] if result else None
        return Setting.from_row(row) if row else None

    async def list_settings(self) -> list[Setting]:
        rows = await self.session.aexecute(self._select_settings, [])
        settings = [Setting.from_row(row) for row in rows]
        settings.sort(key=lambda s: (s.category or "", s.key))
        return settings

    async def update_settings(
        self,
        values: dict[str, str],
        actor: "AuthenticatedUser",
    ) -> list[Setting]:
        """Upsert each key; new keys are created private and uncategorised."""
        authorize(actor, Action.UPDATE_SETTINGS)
        now = utc_now()
        saved = []
        for key, value in values.items():
            setting = await self.find_setting(key)
            if setting is None:
                setting = Setting(key=key, value=value, is_public=False, created_at=now)
            else:
                setting.value = value
                setting.updated_at = now

            await self.session.aexecute(
                self._upsert_setting,
                [
                    setting.key,
                    setting.value,
                    setting.category,
                    setting.description,
                    setting.is_public,
                    setting.created_at,
                    setting.updated_at,
                ],
            )
            saved.append(setting)

        logger.info("settings_updated", keys=sorted(values))
        return saved

    # ==========================================================================
    # Moderation
    # ==========================================================================

    async def moderation_queue(self) -> dict[str, Any]:
        pending, _ = await self.comment_service.pending(
            1, self.PENDING_COMMENTS_LIMIT
        )
        in_review = await self.aggregation.articles_with_status(ArticleStatus.REVIEW)
        in_review.sort(key=lambda a: sort_key(a.created_at), reverse=True)
        return {
            "pendingComments": pending,
            "articlesForReview": await self.article_service.expand(
                in_review[: self.REVIEW_LIMIT]
            ),
        }
