"""Article API endpoints.

Provides routes for:
- Listing with filters (published only for visitors)
- Article CRUD
- Featured, breaking, trending and search rails
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.auth.dependencies import CurrentUser, OptionalUser, require_action
from src.auth.permissions import Action
from src.auth.schemas import AuthenticatedUser
from src.comments.dependencies import CommentServiceDep
from src.core.exceptions import ValidationError
from src.core.responses import build_pagination, success_response

from .dependencies import AggregationServiceDep, ArticleServiceDep
from .models import ArticleStatus
from .schemas import ArticleCreateRequest, ArticleUpdateRequest


router = APIRouter(prefix="/api/articles", tags=["articles"])

Writer = Annotated[AuthenticatedUser, Depends(require_action(Action.CREATE_ARTICLE))]
Publisher = Annotated[AuthenticatedUser, Depends(require_action(Action.DELETE_ARTICLE))]


@router.get("", summary="List articles")
async def list_articles(
    article_service: ArticleServiceDep,
    user: OptionalUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 12,
    category: UUID | None = None,
    author: UUID | None = None,
    featured: bool | None = None,
    breaking: bool | None = None,
    search: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> dict[str, Any]:
    """Breaking news first, then newest. Visitors only see published articles."""
    article_status = None
    if status_filter:
        try:
            article_status = ArticleStatus(status_filter.upper())
        except ValueError as e:
            raise ValidationError("Invalid article status") from e

    articles, total = await article_service.list_articles(
        viewer=user,
        page=page,
        limit=limit,
        category_id=category,
        author_id=author,
        featured=featured,
        breaking=breaking,
        search=search,
        status=article_status,
    )
    return success_response(
        {
            "articles": await article_service.expand(articles),
            "pagination": build_pagination(page, limit, total, "Articles"),
        }
    )


@router.get("/featured/list", summary="Featured articles")
async def featured_articles(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
) -> dict[str, Any]:
    articles = await aggregation.featured(limit)
    return success_response({"articles": await article_service.expand(articles)})


@router.get("/breaking/list", summary="Breaking news")
async def breaking_articles(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> dict[str, Any]:
    articles = await aggregation.breaking(limit)
    return success_response({"articles": await article_service.expand(articles)})


@router.get("/trending/list", summary="Trending articles")
async def trending_articles(
    article_service: ArticleServiceDep,
    aggregation: AggregationServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
) -> dict[str, Any]:
    """Published articles by views."""
    articles = await aggregation.trending(limit)
    return success_response({"articles": await article_service.expand(articles)})


@router.get("/search", summary="Search published articles")
async def search_articles(
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


@router.get("/{id_or_slug}", summary="Get article")
async def get_article(
    id_or_slug: str,
    article_service: ArticleServiceDep,
    comment_service: CommentServiceDep,
    user: OptionalUser,
) -> dict[str, Any]:
    """Fetch by id or slug, with approved comments. Counts a view when published."""
    article = await article_service.get_article(id_or_slug, user)
    payload = await article_service.expand_one(article)
    payload["comments"] = [
        c.to_dict() for c in await comment_service.approved_thread(article.id)
    ]
    return success_response({"article": payload})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create article")
async def create_article(
    data: ArticleCreateRequest,
    article_service: ArticleServiceDep,
    user: Writer,
) -> dict[str, Any]:
    article = await article_service.create_article(data, user)
    return success_response(
        {"article": await article_service.expand_one(article)},
        message="Article created successfully",
    )


@router.put("/{article_id}", summary="Update article")
async def update_article(
    article_id: UUID,
    data: ArticleUpdateRequest,
    article_service: ArticleServiceDep,
    user: CurrentUser,
) -> dict[str, Any]:
    """Authors may only update the articles they created."""
    article = await article_service.update_article(article_id, data, user)
    return success_response(
        {"article": await article_service.expand_one(article)},
        message="Article updated successfully",
    )


@router.delete("/{article_id}", summary="Delete article")
async def delete_article(
    article_id: UUID,
    article_service: ArticleServiceDep,
    user: Publisher,
) -> dict[str, Any]:
    await article_service.delete_article(article_id, user)
    return success_response(message="Article deleted successfully")
