"""Article aggregation: view counting and reader-facing orderings.

Views live in the ``article_views`` COUNTER table, so concurrent reads each
add exactly one without a read-then-write race. Orderings (trending,
most read, recent, per category, search) are computed in application code
over the published rows returned by the status index.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.core.responses import paginate
from src.utils.dates import sort_key, utc_now

from .models import Article, ArticleStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


def by_recency(articles: Iterable[Article]) -> list[Article]:
    """publishedAt desc, createdAt desc as tie breaker."""
    return sorted(
        articles,
        key=lambda a: (sort_key(a.published_at), sort_key(a.created_at)),
        reverse=True,
    )


def by_popularity(articles: Iterable[Article]) -> list[Article]:
    """views desc, then most recently published."""
    return sorted(
        articles,
        key=lambda a: (a.views, sort_key(a.published_at)),
        reverse=True,
    )


class AggregationService:
    """Computes view increments and published-article orderings."""

    MOST_READ_WINDOW_DAYS = 7

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._select_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.articles
        """)

        self._select_by_status = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.articles WHERE status = ?
        """)

        self._select_by_category = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.articles WHERE category_id = ?
        """)

        self._select_all_views = self.session.prepare(f"""
            SELECT article_id, views FROM {self.keyspace}.article_views
        """)

        self._select_views = self.session.prepare(f"""
            SELECT views FROM {self.keyspace}.article_views WHERE article_id = ?
        """)

        self._increment_views = self.session.prepare(f"""
            UPDATE {self.keyspace}.article_views
            SET views = views + 1
            WHERE article_id = ?
        """)

        self._delete_views = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.article_views WHERE article_id = ?
        """)

    # ==========================================================================
    # Counters
    # ==========================================================================

    async def view_counts(self) -> dict[UUID, int]:
        """All view counters keyed by article id."""
        rows = await self.session.aexecute(self._select_all_views, [])
        return {row.article_id: row.views or 0 for row in rows}

    async def get_views(self, article_id: UUID) -> int:
        result = await self.session.aexecute(self._select_views, [article_id])
        row = result[0] if result else None
        return (row.views or 0) if row else 0

    async def record_view(self, article: Article) -> bool:
        """Count one read of ``article``.

        Only PUBLISHED articles are counted. The returned article keeps the
        value it was read with; the counter itself is incremented atomically.

        Returns:
            True if the view was counted.
        """
        if not article.is_published:
            return False

        await self.session.aexecute(self._increment_views, [article.id])
        logger.debug("article_view_recorded", article_id=str(article.id))
        return True

    async def reset_views(self, article_id: UUID) -> None:
        await self.session.aexecute(self._delete_views, [article_id])

    async def total_views(self) -> int:
        counts = await self.view_counts()
        return sum(counts.values())

    # ==========================================================================
    # Article loading
    # ==========================================================================

    async def _attach_views(self, rows: Iterable) -> list[Article]:
        counts = await self.view_counts()
        return [Article.from_row(row, views=counts.get(row.id, 0)) for row in rows]

    async def all_articles(self) -> list[Article]:
        """Every article regardless of status, with views."""
        rows = await self.session.aexecute(self._select_all, [])
        return await self._attach_views(rows)

    async def articles_with_status(self, status: ArticleStatus | str) -> list[Article]:
        value = status.value if isinstance(status, ArticleStatus) else status
        rows = await self.session.aexecute(self._select_by_status, [value])
        return await self._attach_views(rows)

    async def published(self) -> list[Article]:
        return await self.articles_with_status(ArticleStatus.PUBLISHED)

    # ==========================================================================
    # Orderings
    # ==========================================================================

    async def trending(self, limit: int = 5) -> list[Article]:
        """Published articles by views, all time."""
        return by_popularity(await self.published())[:limit]

    async def most_read(self, limit: int = 5, now: datetime | None = None) -> list[Article]:
        """Published articles by views among those published in the last week.

        Falls back to the all-time ordering when nothing was published inside
        the window.
        """
        articles = await self.published()
        cutoff = (now or utc_now()) - timedelta(days=self.MOST_READ_WINDOW_DAYS)
        recent = [a for a in articles if a.published_at and a.published_at >= cutoff]
        return by_popularity(recent or articles)[:limit]

    async def recent(self, limit: int = 5) -> list[Article]:
        return by_recency(await self.published())[:limit]

    async def featured(self, limit: int = 5) -> list[Article]:
        return by_recency(a for a in await self.published() if a.is_featured)[:limit]

    async def breaking(self, limit: int = 10) -> list[Article]:
        return by_recency(a for a in await self.published() if a.is_breaking)[:limit]

    async def by_category(
        self,
        category_id: UUID,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[Article], int]:
        """Published articles of a category, newest first, paginated.

        Returns:
            Tuple of (page items, total matching).
        """
        rows = await self.session.aexecute(self._select_by_category, [category_id])
        articles = [a for a in await self._attach_views(rows) if a.is_published]
        ordered = by_recency(articles)
        return paginate(ordered, page, limit), len(ordered)

    async def search(
        self,
        term: str,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Article], int]:
        """Published articles whose title, excerpt or content contain ``term``."""
        matches = [a for a in await self.published() if a.matches(term)]
        ordered = by_recency(matches)
        logger.debug("article_search", term=term, matches=len(ordered))
        return paginate(ordered, page, limit), len(ordered)

    async def related(self, article: Article, limit: int = 3) -> list[Article]:
        """Most viewed published articles from the same category."""
        if article.category_id is None:
            return []
        rows = await self.session.aexecute(
            self._select_by_category, [article.category_id]
        )
        candidates = [
            a
            for a in await self._attach_views(rows)
            if a.is_published and a.id != article.id
        ]
        return by_popularity(candidates)[:limit]

    # ==========================================================================
    # Counts
    # ==========================================================================

    @staticmethod
    def count_by(articles: Iterable[Article], attribute: str) -> Counter:
        """Count articles per value of an attribute (e.g. ``category_id``)."""
        return Counter(getattr(a, attribute) for a in articles)
