"""Article service layer.

Business logic for:
- Article CRUD with globally unique slugs
- Visibility of unpublished articles
- publishedAt bookkeeping on the first transition into PUBLISHED
- Category and author summaries embedded in responses
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from src.auth.permissions import Action, authorize, can
from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.core.responses import paginate
from src.utils.dates import sort_key, utc_now
from src.utils.slug import generate_slug

from .aggregation import AggregationService
from .models import Article, ArticleStatus
from .schemas import ArticleCreateRequest, ArticleUpdateRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.auth.schemas import AuthenticatedUser


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ArticleNotFoundError(NotFoundError):
    def __init__(self, message: str = "Article not found"):
        super().__init__(message, "article_not_found")


class DuplicateSlugError(ConflictError):
    def __init__(self, message: str = "Article with similar title already exists"):
        super().__init__(message, "duplicate_slug")


class UnsluggableTitleError(ValidationError):
    def __init__(
        self, message: str = "Title must contain Latin letters or digits"
    ):
        super().__init__(message, "invalid_title")


class InvalidReferenceError(ValidationError):
    """Category or author id does not exist."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_reference")


def parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


# ==============================================================================
# Article Service
# ==============================================================================


class ArticleService:
    """Service for article management."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        aggregation: AggregationService,
    ):
        self.session = session
        self.keyspace = keyspace
        self.aggregation = aggregation
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        # Full-row upsert, used for create and update
        self._upsert_article = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.articles
            (id, title, slug, excerpt, content, status, is_featured, is_breaking,
             images, category_id, author_id, created_by, seo_title, seo_description,
             seo_keywords, published_at, scheduled_for, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_article = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.articles WHERE id = ?
        """)

        self._delete_article = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.articles WHERE id = ?
        """)

        self._select_slug = self.session.prepare(f"""
            SELECT article_id FROM {self.keyspace}.articles_by_slug WHERE slug = ?
        """)

        self._insert_slug = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.articles_by_slug (slug, article_id)
            VALUES (?, ?)
        """)

        self._delete_slug = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.articles_by_slug WHERE slug = ?
        """)

        self._select_category = self.session.prepare(f"""
            SELECT id, name, slug FROM {self.keyspace}.categories WHERE id = ?
        """)

        self._select_author = self.session.prepare(f"""
            SELECT id, name, bio, avatar FROM {self.keyspace}.authors WHERE id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def _save(self, article: Article) -> None:
        await self.session.aexecute(
            self._upsert_article,
            [
                article.id,
                article.title,
                article.slug,
                article.excerpt,
                article.content,
                article.status,
                article.is_featured,
                article.is_breaking,
                article.images,
                article.category_id,
                article.author_id,
                article.created_by,
                article.seo_title,
                article.seo_description,
                article.seo_keywords,
                article.published_at,
                article.scheduled_for,
                article.created_at,
                article.updated_at,
            ],
        )

    async def find_by_id(self, article_id: UUID) -> Article | None:
        result = await self.session.aexecute(self._select_article, [article_id])
        row = result[0] if result else None
        if not row:
            return None
        views = await self.aggregation.get_views(row.id)
        return Article.from_row(row, views=views)

    async def find_by_slug(self, slug: str) -> Article | None:
        result = await self.session.aexecute(self._select_slug, [slug])
        row = result[0] if result else None
        if not row:
            return None
        return await self.find_by_id(row.article_id)

    async def _slug_owner(self, slug: str) -> UUID | None:
        result = await self.session.aexecute(self._select_slug, [slug])
        row = result[0] if result else None
        return row.article_id if row else None

    async def category_summary(self, category_id: UUID | None) -> dict[str, Any] | None:
        if category_id is None:
            return None
        result = await self.session.aexecute(self._select_category, [category_id])
        row = result[0] if result else None
        if not row:
            return None
        return {"id": row.id, "name": row.name, "slug": row.slug}

    async def author_summary(self, author_id: UUID | None) -> dict[str, Any] | None:
        if author_id is None:
            return None
        result = await self.session.aexecute(self._select_author, [author_id])
        row = result[0] if result else None
        if not row:
            return None
        return {"id": row.id, "name": row.name, "bio": row.bio, "avatar": row.avatar}

    async def expand(self, articles: list[Article]) -> list[dict[str, Any]]:
        """Serialize articles with embedded category and author summaries."""
        categories: dict[UUID, dict[str, Any] | None] = {}
        authors: dict[UUID, dict[str, Any] | None] = {}
        payload = []
        for article in articles:
            if article.category_id not in categories:
                categories[article.category_id] = await self.category_summary(
                    article.category_id
                )
            if article.author_id not in authors:
                authors[article.author_id] = await self.author_summary(
                    article.author_id
                )
            item = article.to_dict()
            item["category"] = categories[article.category_id]
            item["author"] = authors[article.author_id]
            payload.append(item)
        return payload

    async def expand_one(self, article: Article) -> dict[str, Any]:
        return (await self.expand([article]))[0]

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def list_articles(
        self,
        viewer: "AuthenticatedUser | None",
        page: int = 1,
        limit: int = 12,
        category_id: UUID | None = None,
        author_id: UUID | None = None,
        featured: bool | None = None,
        breaking: bool | None = None,
        search: str | None = None,
        status: ArticleStatus | None = None,
    ) -> tuple[list[Article], int]:
        """List articles visible to ``viewer``.

        Non-privileged viewers only ever see PUBLISHED articles; the status
        filter is honoured for privileged viewers only. Breaking news first,
        then newest publication.

        Returns:
            Tuple of (page items, total matching).
        """
        if can(viewer, Action.VIEW_UNPUBLISHED):
            articles = await self.aggregation.all_articles()
            if status is not None:
                articles = [a for a in articles if a.status == status.value]
        else:
            articles = await self.aggregation.published()

        if category_id is not None:
            articles = [a for a in articles if a.category_id == category_id]
        if author_id is not None:
            articles = [a for a in articles if a.author_id == author_id]
        if featured:
            articles = [a for a in articles if a.is_featured]
        if breaking:
            articles = [a for a in articles if a.is_breaking]
        if search:
            articles = [a for a in articles if a.matches(search)]

        ordered = sorted(
            articles,
            key=lambda a: (a.is_breaking, sort_key(a.published_at), sort_key(a.created_at)),
            reverse=True,
        )
        return paginate(ordered, page, limit), len(ordered)

    async def get_article(
        self,
        id_or_slug: str,
        viewer: "AuthenticatedUser | None" = None,
    ) -> Article:
        """Fetch by UUID or slug and count the read.

        Unpublished articles are reported as missing to non-privileged
        viewers.
        """
        article_id = parse_uuid(id_or_slug)
        article = (
            await self.find_by_id(article_id)
            if article_id
            else await self.find_by_slug(id_or_slug)
        )

        if article is None:
            raise ArticleNotFoundError
        if not article.is_published and not can(viewer, Action.VIEW_UNPUBLISHED):
            raise ArticleNotFoundError

        await self.aggregation.record_view(article)
        return article

    async def get_published_by_slug(self, slug: str) -> Article:
        """Public read: 404 unless the article is PUBLISHED."""
        article = await self.find_by_slug(slug)
        if article is None or not article.is_published:
            raise ArticleNotFoundError
        await self.aggregation.record_view(article)
        return article

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def _check_references(
        self, category_id: UUID | None, author_id: UUID | None
    ) -> None:
        if category_id is not None and not await self.category_summary(category_id):
            raise InvalidReferenceError("Invalid category")
        if author_id is not None and not await self.author_summary(author_id):
            raise InvalidReferenceError("Invalid author")

    async def create_article(
        self,
        data: ArticleCreateRequest,
        actor: "AuthenticatedUser",
    ) -> Article:
        """Create an article.

        The slug is derived from the title and must be unused. publishedAt is
        stamped when the article is created directly as PUBLISHED.
        """
        authorize(actor, Action.CREATE_ARTICLE)

        slug = generate_slug(data.title)
        if not slug:
            raise UnsluggableTitleError
        if await self._slug_owner(slug):
            raise DuplicateSlugError

        await self._check_references(data.category_id, data.author_id)

        now = utc_now()
        published_at = None
        if data.status == ArticleStatus.PUBLISHED:
            published_at = data.published_at or now

        article = Article(
            title=data.title,
            slug=slug,
            excerpt=data.excerpt,
            content=data.content,
            status=data.status.value,
            is_featured=data.is_featured,
            is_breaking=data.is_breaking,
            images=data.images,
            category_id=data.category_id,
            author_id=data.author_id,
            created_by=actor.id,
            seo_title=data.seo_title,
            seo_description=data.seo_description,
            seo_keywords=data.seo_keywords,
            published_at=published_at,
            scheduled_for=data.scheduled_for,
            created_at=now,
            updated_at=now,
        )

        await self._save(article)
        await self.session.aexecute(self._insert_slug, [article.slug, article.id])

        logger.info(
            "article_created",
            article_id=str(article.id),
            slug=article.slug,
            status=article.status,
        )
        return article

    async def update_article(
        self,
        article_id: UUID,
        data: ArticleUpdateRequest,
        actor: "AuthenticatedUser",
    ) -> Article:
        """Apply a partial update.

        The slug is regenerated and re-checked only when the title changes.
        publishedAt is set on the first transition into PUBLISHED and never
        cleared afterwards.
        """
        article = await self.find_by_id(article_id)
        if article is None:
            raise ArticleNotFoundError

        authorize(
            actor,
            Action.UPDATE_ARTICLE,
            article,
            message="Not authorized to update this article",
        )

        changes = data.model_dump(exclude_unset=True)
        old_slug = article.slug

        new_title = changes.pop("title", None)
        if new_title is not None and new_title != article.title:
            slug = generate_slug(new_title)
            if not slug:
                raise UnsluggableTitleError
            owner = await self._slug_owner(slug)
            if owner is not None and owner != article.id:
                raise DuplicateSlugError
            article.title = new_title
            article.slug = slug

        await self._check_references(
            changes.get("category_id"), changes.get("author_id")
        )

        status = changes.pop("status", None)
        requested_published_at = changes.pop("published_at", None)
        if status is not None:
            article.status = status.value
            if status == ArticleStatus.PUBLISHED and article.published_at is None:
                article.published_at = requested_published_at or utc_now()

        for field, value in changes.items():
            if value is not None:
                setattr(article, field, value)

        article.updated_at = utc_now()
        await self._save(article)

        if article.slug != old_slug:
            await self.session.aexecute(self._delete_slug, [old_slug])
            await self.session.aexecute(self._insert_slug, [article.slug, article.id])

        logger.info(
            "article_updated",
            article_id=str(article.id),
            status=article.status,
            fields=sorted(data.model_fields_set),
        )
        return article

    async def delete_article(self, article_id: UUID, actor: "AuthenticatedUser") -> None:
        """Delete an article, its slug entry and its view counter.

        Comments referencing the article are left in place.
        """
        authorize(actor, Action.DELETE_ARTICLE)

        article = await self.find_by_id(article_id)
        if article is None:
            raise ArticleNotFoundError

        await self.session.aexecute(self._delete_article, [article.id])
        await self.session.aexecute(self._delete_slug, [article.slug])
        await self.aggregation.reset_views(article.id)

        logger.info("article_deleted", article_id=str(article.id))
