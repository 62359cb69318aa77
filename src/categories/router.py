"""Category API endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.articles.dependencies import ArticleServiceDep
from src.auth.dependencies import require_action
from src.auth.permissions import Action
from src.auth.schemas import AuthenticatedUser
from src.core.responses import build_pagination, success_response

from .dependencies import CategoryServiceDep
from .schemas import CategoryCreateRequest, CategoryUpdateRequest


router = APIRouter(prefix="/api/categories", tags=["categories"])

CategoryManager = Annotated[
    AuthenticatedUser, Depends(require_action(Action.MANAGE_CATEGORIES))
]
CategoryAdmin = Annotated[
    AuthenticatedUser, Depends(require_action(Action.DELETE_CATEGORY))
]


@router.get("", summary="List active categories")
async def list_categories(category_service: CategoryServiceDep) -> dict[str, Any]:
    categories = await category_service.list_active()
    return success_response(
        {"categories": [c.to_dict(article_count=n) for c, n in categories]}
    )


@router.get("/slug/{slug}", summary="Get category by slug")
async def get_category_by_slug(
    slug: str,
    category_service: CategoryServiceDep,
    article_service: ArticleServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 12,
) -> dict[str, Any]:
    """Category with a page of its published articles."""
    category, articles, total = await category_service.get_by_slug(slug, page, limit)
    payload = category.to_dict(article_count=total)
    payload["articles"] = await article_service.expand(articles)
    return success_response(
        {
            "category": payload,
            "pagination": build_pagination(page, limit, total, "Articles"),
        }
    )


@router.get("/{category_id}", summary="Get category")
async def get_category(
    category_id: UUID,
    category_service: CategoryServiceDep,
    article_service: ArticleServiceDep,
) -> dict[str, Any]:
    """Category with its 10 latest published articles."""
    category, articles, total = await category_service.get_with_latest(category_id)
    payload = category.to_dict(article_count=total)
    payload["articles"] = await article_service.expand(articles)
    return success_response({"category": payload})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create category")
async def create_category(
    data: CategoryCreateRequest,
    category_service: CategoryServiceDep,
    _user: CategoryManager,
) -> dict[str, Any]:
    category = await category_service.create_category(data)
    return success_response(
        {"category": category.to_dict(article_count=0)},
        message="Category created successfully",
    )


@router.put("/{category_id}", summary="Update category")
async def update_category(
    category_id: UUID,
    data: CategoryUpdateRequest,
    category_service: CategoryServiceDep,
    _user: CategoryManager,
) -> dict[str, Any]:
    category = await category_service.update_category(category_id, data)
    return success_response(
        {"category": category.to_dict()},
        message="Category updated successfully",
    )


@router.delete("/{category_id}", summary="Delete category")
async def delete_category(
    category_id: UUID,
    category_service: CategoryServiceDep,
    _user: CategoryAdmin,
) -> dict[str, Any]:
    """Refused while any article references the category."""
    await category_service.delete_category(category_id)
    return success_response(message="Category deleted successfully")
