"""Articles module.

Provides:
- Article CRUD with unique slugs
- View counting and reader-facing orderings (trending, most read, recent)

Note: Router is not exported here to avoid circular imports.
Import directly from src.articles.router when needed.
"""

from .aggregation import AggregationService
from .models import ARTICLES_TABLES_CQL, Article, ArticleStatus
from .service import ArticleService


__all__ = [
    "ARTICLES_TABLES_CQL",
    "AggregationService",
    "Article",
    "ArticleService",
    "ArticleStatus",
]
