"""Database models for articles.

Cassandra table definitions for:
- Articles: main table keyed by id, with secondary indexes on the
  columns listings filter by
- Slug lookup: enforces globally unique slugs
- View counters: COUNTER table so increments are atomic
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from src.utils.dates import ensure_utc_aware, utc_now
from src.utils.slug import generate_slug


class ArticleStatus(str, Enum):
    """Publication status. Any status may be set directly."""

    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

ARTICLE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.articles (
    id UUID PRIMARY KEY,
    title TEXT,
    slug TEXT,
    excerpt TEXT,
    content TEXT,
    status TEXT,
    is_featured BOOLEAN,
    is_breaking BOOLEAN,
    images LIST<TEXT>,
    category_id UUID,
    author_id UUID,
    created_by TEXT,
    seo_title TEXT,
    seo_description TEXT,
    seo_keywords LIST<TEXT>,
    published_at TIMESTAMP,
    scheduled_for TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

ARTICLE_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS articles_status_idx ON {keyspace}.articles (status)
"""

ARTICLE_CATEGORY_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS articles_category_idx ON {keyspace}.articles (category_id)
"""

ARTICLE_AUTHOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS articles_author_idx ON {keyspace}.articles (author_id)
"""

ARTICLE_CREATOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS articles_creator_idx ON {keyspace}.articles (created_by)
"""

ARTICLES_BY_SLUG_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.articles_by_slug (
    slug TEXT PRIMARY KEY,
    article_id UUID
)
"""

ARTICLE_VIEWS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.article_views (
    article_id UUID PRIMARY KEY,
    views COUNTER
)
"""

ARTICLES_TABLES_CQL = [
    ARTICLE_TABLE_CQL,
    ARTICLE_STATUS_INDEX_CQL,
    ARTICLE_CATEGORY_INDEX_CQL,
    ARTICLE_AUTHOR_INDEX_CQL,
    ARTICLE_CREATOR_INDEX_CQL,
    ARTICLES_BY_SLUG_TABLE_CQL,
    ARTICLE_VIEWS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Article:
    """Article entity.

    Attributes:
        id: Unique identifier (UUID)
        title: Headline
        slug: URL-friendly identifier, globally unique
        excerpt: Short summary shown in listings
        content: Body text
        status: Publication status
        is_featured: Shown in the featured rail
        is_breaking: Shown in the breaking-news ticker, sorted first
        views: Read count from the article_views counter
        images: Ordered image URLs
        category_id: Owning category
        author_id: Byline author
        created_by: User id of the account that created the article
        published_at: Set once, on the first transition into PUBLISHED
        scheduled_for: Optional planned publication time
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        slug: str | None = None,
        excerpt: str = "",
        content: str = "",
        status: str = ArticleStatus.DRAFT.value,
        is_featured: bool = False,
        is_breaking: bool = False,
        views: int = 0,
        images: list[str] | None = None,
        category_id: UUID | None = None,
        author_id: UUID | None = None,
        created_by: str | None = None,
        seo_title: str | None = None,
        seo_description: str | None = None,
        seo_keywords: list[str] | None = None,
        published_at: datetime | None = None,
        scheduled_for: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.slug = slug or generate_slug(title)
        self.excerpt = excerpt
        self.content = content
        self.status = status
        self.is_featured = bool(is_featured)
        self.is_breaking = bool(is_breaking)
        self.views = views or 0
        self.images = list(images or [])
        self.category_id = category_id
        self.author_id = author_id
        self.created_by = created_by
        self.seo_title = seo_title
        self.seo_description = seo_description
        self.seo_keywords = list(seo_keywords or [])
        self.published_at = ensure_utc_aware(published_at)
        self.scheduled_for = ensure_utc_aware(scheduled_for)
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED.value

    @classmethod
    def from_row(cls, row: Any, views: int = 0) -> "Article":
        """Create Article from a Cassandra row plus its counter value."""
        return cls(
            id=row.id,
            title=row.title or "",
            slug=row.slug,
            excerpt=row.excerpt or "",
            content=row.content or "",
            status=row.status or ArticleStatus.DRAFT.value,
            is_featured=row.is_featured or False,
            is_breaking=row.is_breaking or False,
            views=views,
            images=row.images,
            category_id=row.category_id,
            author_id=row.author_id,
            created_by=row.created_by,
            seo_title=getattr(row, "seo_title", None),
            seo_description=getattr(row, "seo_description", None),
            seo_keywords=getattr(row, "seo_keywords", None),
            published_at=row.published_at,
            scheduled_for=getattr(row, "scheduled_for", None),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on title, excerpt or content."""
        needle = term.lower()
        return (
            needle in self.title.lower()
            or needle in self.excerpt.lower()
            or needle in self.content.lower()
        )

    def summary(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "slug": self.slug}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API representation."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "content": self.content,
            "status": self.status,
            "isFeatured": self.is_featured,
            "isBreaking": self.is_breaking,
            "views": self.views,
            "images": self.images,
            "categoryId": self.category_id,
            "authorId": self.author_id,
            "createdBy": self.created_by,
            "seoTitle": self.seo_title,
            "seoDescription": self.seo_description,
            "seoKeywords": self.seo_keywords,
            "publishedAt": self.published_at,
            "scheduledFor": self.scheduled_for,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Article {self.slug} ({self.status})>"
