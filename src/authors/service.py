"""Author service layer.

Business logic for:
- Author listing with search and role/status filters
- Author CRUD with unique e-mail
- Delete guard while articles still reference an author
- Per-author publishing statistics
"""

from collections import Counter
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from src.articles.aggregation import AggregationService, by_recency
from src.articles.models import Article
from src.core.exceptions import ConflictError, NotFoundError
from src.core.logging import mask_email
from src.core.responses import paginate
from src.utils.dates import months_ago, utc_now

from .models import Author, AuthorStatus
from .schemas import AuthorCreateRequest, AuthorUpdateRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

# Optional profile fields an update may reset to null
CLEARABLE_FIELDS = frozenset({"phone", "avatar", "location", "social_links"})


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AuthorNotFoundError(NotFoundError):
    def __init__(self, message: str = "Author not found"):
        super().__init__(message, "author_not_found")


class AuthorExistsError(ConflictError):
    def __init__(self, message: str = "Author already exists with this email"):
        super().__init__(message, "author_exists")


class AuthorInUseError(ConflictError):
    def __init__(
        self,
        message: str = (
            "Cannot delete author with published articles. "
            "Please reassign or delete articles first."
        ),
    ):
        super().__init__(message, "author_in_use")


# ==============================================================================
# Author Service
# ==============================================================================


class AuthorService:
    """Service for author management."""

    STATS_MONTHS = 6

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
        self._upsert_author = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.authors
            (id, name, email, phone, bio, avatar, role, status, specialties,
             social_links, location, verified, last_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_author = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.authors WHERE id = ?
        """)

        self._select_by_email = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.authors WHERE email = ?
        """)

        self._select_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.authors
        """)

        self._delete_author = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.authors WHERE id = ?
        """)

        self._select_articles = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.articles WHERE author_id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def _save(self, author: Author) -> None:
        await self.session.aexecute(
            self._upsert_author,
            [
                author.id,
                author.name,
                author.email,
                author.phone,
                author.bio,
                author.avatar,
                author.role,
                author.status,
                author.specialties,
                author.social_links,
                author.location,
                author.verified,
                author.last_active,
                author.created_at,
                author.updated_at,
            ],
        )

    async def find_by_id(self, author_id: UUID) -> Author | None:
        result = await self.session.aexecute(self._select_author, [author_id])
        row = result[0] if result else None
        return Author.from_row(row) if row else None

    async def find_by_email(self, email: str) -> Author | None:
        result = await self.session.aexecute(
            self._select_by_email, [email.strip().lower()]
        )
        row = result[0] if result else None
        return Author.from_row(row) if row else None

    async def get_author(self, author_id: UUID) -> Author:
        author = await self.find_by_id(author_id)
        if author is None:
            raise AuthorNotFoundError
        return author

    async def articles_of(self, author_id: UUID) -> list[Article]:
        """Every article bylined to the author, any status, with views."""
        rows = await self.session.aexecute(self._select_articles, [author_id])
        counts = await self.aggregation.view_counts()
        return [Article.from_row(row, views=counts.get(row.id, 0)) for row in rows]

    async def published_counts(self) -> Counter:
        published = await self.aggregation.published()
        return self.aggregation.count_by(published, "author_id")

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def all_authors(self) -> list[Author]:
        rows = await self.session.aexecute(self._select_all, [])
        return [Author.from_row(row) for row in rows]

    async def list_authors(
        self,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        role: str | None = None,
        status: str | None = None,
    ) -> tuple[list[tuple[Author, int]], int]:
        """Authors ordered by name, ACTIVE only unless a status is given.

        Returns:
            Tuple of ((author, published count) page items, total matching).
        """
        wanted_status = (status or AuthorStatus.ACTIVE.value).upper()
        authors = [a for a in await self.all_authors() if a.status == wanted_status]
        if role:
            authors = [a for a in authors if a.role == role.upper()]
        if search:
            authors = [a for a in authors if a.matches(search)]

        authors.sort(key=lambda a: a.name.lower())
        counts = await self.published_counts()
        items = [(a, counts.get(a.id, 0)) for a in paginate(authors, page, limit)]
        return items, len(authors)

    async def get_with_latest(
        self,
        author_id: UUID,
        limit: int = 10,
    ) -> tuple[Author, list[Article], int]:
        """Author with the newest published articles and the published count."""
        author = await self.get_author(author_id)
        published = [a for a in await self.articles_of(author.id) if a.is_published]
        return author, by_recency(published)[:limit], len(published)

    async def stats(self, author_id: UUID) -> dict[str, Any]:
        """Publishing statistics over the author's PUBLISHED articles."""
        author = await self.get_author(author_id)
        published = [a for a in await self.articles_of(author.id) if a.is_published]

        total_articles = len(published)
        total_views = sum(a.views for a in published)
        average_views = round(total_views / total_articles) if total_articles else 0

        cutoff = months_ago(utc_now(), self.STATS_MONTHS)
        by_month = Counter(
            a.published_at.strftime("%Y-%m")
            for a in published
            if a.published_at and a.published_at >= cutoff
        )

        return {
            "totalArticles": total_articles,
            "totalViews": total_views,
            "averageViews": average_views,
            "articlesByMonth": dict(sorted(by_month.items())),
        }

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_author(self, data: AuthorCreateRequest) -> Author:
        if await self.find_by_email(data.email):
            raise AuthorExistsError

        author = Author(
            name=data.name,
            email=data.email,
            phone=data.phone,
            bio=data.bio,
            avatar=data.avatar,
            role=data.role.value,
            specialties=data.specialties,
            social_links=data.social_links,
            location=data.location,
            verified=data.verified,
        )
        await self._save(author)

        logger.info(
            "author_created",
            author_id=str(author.id),
            email=mask_email(author.email),
        )
        return author

    async def update_author(
        self,
        author_id: UUID,
        data: AuthorUpdateRequest,
    ) -> Author:
        author = await self.get_author(author_id)
        changes = data.model_dump(exclude_unset=True)

        email = changes.pop("email", None)
        if email and email != author.email:
            if await self.find_by_email(email):
                raise AuthorExistsError
            author.email = email

        for field in ("role", "status"):
            value = changes.pop(field, None)
            if value is not None:
                setattr(author, field, value.value)

        for field, value in changes.items():
            if value is not None or field in CLEARABLE_FIELDS:
                setattr(author, field, value)

        now = utc_now()
        author.last_active = now
        author.updated_at = now
        await self._save(author)

        logger.info("author_updated", author_id=str(author.id))
        return author

    async def delete_author(self, author_id: UUID) -> None:
        """Delete an author that no article references."""
        author = await self.get_author(author_id)

        rows = await self.session.aexecute(self._select_articles, [author.id])
        if list(rows):
            raise AuthorInUseError

        await self.session.aexecute(self._delete_author, [author.id])
        logger.info("author_deleted", author_id=str(author.id))
