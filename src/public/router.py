"""Public site API endpoints.

No authentication; only PUBLISHED articles and active categories are
ever returned.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Query

from src.articles.dependencies import AggregationServiceDep, ArticleServiceDep
from src.articles.models import Article
from src.categories.dependencies import CategoryServiceDep
from src.comments.dependencies import CommentServiceDep
from src.core.exceptions import ValidationError
from src.core.responses import build_pagination, success_response


router = APIRouter(prefix="/api/public", tags=["public"])

RailLimit = Annotated[int, Query(ge=1, le=50)]


def teaser(article: Article) -> dict[str, Any]:
    """Compact card used by tickers and the sidebar."""
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "publishedAt": article.published_at,
        "views": article.views,
    }


@router.get("/featured-articles", summary="Featured articles")
async def featured_articles(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    limit: RailLimit = 5,
) -> dict[str, Any]:
    articles = await aggregation.featured(limit)
    return success_response({"articles": await article_service.expand(articles)})


@router.get("/breaking-news", summary="Breaking news ticker")
async def breaking_news(
    aggregation: AggregationServiceDep,
    limit: RailLimit = 10,
) -> dict[str, Any]:
    articles = await aggregation.breaking(limit)
    return success_response({"articles": [teaser(a) for a in articles]})


@router.get("/trending", summary="Trending articles")
async def trending(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    limit: RailLimit = 5,
) -> dict[str, Any]:
    articles = await aggregation.trending(limit)
    return success_response({"articles": await article_service.expand(articles)})


@router.get("/most-read", summary="Most read this week")
async def most_read(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    limit: RailLimit = 5,
) -> dict[str, Any]:
    articles = await aggregation.most_read(limit)
    return success_response({"articles": await article_service.expand(articles)})


@router.get("/recent", summary="Latest articles")
async def recent(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    limit: RailLimit = 5,
) -> dict[str, Any]:
    articles = await aggregation.recent(limit)
    return success_response({"articles": await article_service.expand(articles)})


@router.get("/category/{slug}", summary="Articles of a category")
async def category_articles(
    slug: str,
    article_service: ArticleServiceDep,
    category_service: CategoryServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 12,
) -> dict[str, Any]:
    category, articles, total = await category_service.get_by_slug(slug, page, limit)
    return success_response(
        {
            "category": {
                **category.summary(),
                "description": category.description,
            },
            "articles": await article_service.expand(articles),
            "pagination": build_pagination(page, limit, total, "Articles"),
        }
    )


@router.get("/article/{slug}", summary="Read an article")
async def read_article(
    slug: str,
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    comment_service: CommentServiceDep,
) -> dict[str, Any]:
    """Published article with its approved comments and related reads."""
    article = await article_service.get_published_by_slug(slug)
    payload = await article_service.expand_one(article)
    payload["comments"] = [
        c.to_dict() for c in await comment_service.approved_thread(article.id)
    ]
    related = await aggregation.related(article, limit=3)
    return success_response(
        {
            "article": payload,
            "relatedArticles": await article_service.expand(related),
        }
    )


@router.get("/search", summary="Search published articles")
async def search(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    q: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict[str, Any]:
    term = (q or "").strip()
    if not term:
        raise ValidationError("Search term is required")

    articles, total = await aggregation.search(term, page=page, limit=limit)
    return success_response(
        {
            "articles": await article_service.expand(articles),
            "searchTerm": term,
            "pagination": build_pagination(page, limit, total, "Articles"),
        }
    )


@router.get("/categories", summary="Navigation categories")
async def categories(category_service: CategoryServiceDep) -> dict[str, Any]:
    listed = await category_service.list_active()
    return success_response(
        {"categories": [c.to_dict(article_count=n) for c, n in listed]}
    )


@router.get("/sidebar", summary="Sidebar rails")
async def sidebar(aggregation: AggregationServiceDep) -> dict[str, Any]:
    trending_articles = await aggregation.trending(5)
    most_read_articles = await aggregation.most_read(5)
    return success_response(
        {
            "trendingArticles": [teaser(a) for a in trending_articles],
            "mostReadArticles": [teaser(a) for a in most_read_articles],
        }
    )
