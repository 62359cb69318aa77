"""Author API endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.articles.dependencies import ArticleServiceDep
from src.auth.dependencies import require_action
from src.auth.permissions import Action
from src.auth.schemas import AuthenticatedUser
from src.core.responses import build_pagination, success_response

from .dependencies import AuthorServiceDep
from .schemas import AuthorCreateRequest, AuthorUpdateRequest


router = APIRouter(prefix="/api/authors", tags=["authors"])

AuthorManager = Annotated[
    AuthenticatedUser, Depends(require_action(Action.MANAGE_AUTHORS))
]
AuthorAdmin = Annotated[AuthenticatedUser, Depends(require_action(Action.DELETE_AUTHOR))]


@router.get("", summary="List authors")
async def list_authors(
    author_service: AuthorServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: str | None = None,
    role: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> dict[str, Any]:
    """Active authors by name unless another status is requested."""
    authors, total = await author_service.list_authors(
        page=page,
        limit=limit,
        search=search,
        role=role,
        status=status_filter,
    )
    return success_response(
        {
            "authors": [a.to_dict(article_count=n) for a, n in authors],
            "pagination": build_pagination(page, limit, total, "Authors"),
        }
    )


@router.get("/{author_id}/stats", summary="Author statistics")
async def author_stats(
    author_id: UUID,
    author_service: AuthorServiceDep,
) -> dict[str, Any]:
    return success_response({"stats": await author_service.stats(author_id)})


@router.get("/{author_id}", summary="Get author")
async def get_author(
    author_id: UUID,
    author_service: AuthorServiceDep,
    article_service: ArticleServiceDep,
) -> dict[str, Any]:
    author, articles, total = await author_service.get_with_latest(author_id)
    payload = author.to_dict(article_count=total)
    payload["articles"] = await article_service.expand(articles)
    return success_response({"author": payload})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create author")
async def create_author(
    data: AuthorCreateRequest,
    author_service: AuthorServiceDep,
    _user: AuthorManager,
) -> dict[str, Any]:
    author = await author_service.create_author(data)
    return success_response(
        {"author": author.to_dict(article_count=0)},
        message="Author created successfully",
    )


@router.put("/{author_id}", summary="Update author")
async def update_author(
    author_id: UUID,
    data: AuthorUpdateRequest,
    author_service: AuthorServiceDep,
    _user: AuthorManager,
) -> dict[str, Any]:
    author = await author_service.update_author(author_id, data)
    return success_response(
        {"author": author.to_dict()},
        message="Author updated successfully",
    )


@router.delete("/{author_id}", summary="Delete author")
async def delete_author(
    author_id: UUID,
    author_service: AuthorServiceDep,
    _user: AuthorAdmin,
) -> dict[str, Any]:
    """Refused while any article is bylined to the author."""
    await author_service.delete_author(author_id)
    return success_response(message="Author deleted successfully")
