"""Comment API endpoints.

Provides routes for:
- Public listing and submission
- Moderator status updates and queue
- Edits and deletes by the submitter or a moderator
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.auth.dependencies import ClientIP, CurrentUser, OptionalUser, require_action
from src.auth.permissions import Action
from src.auth.schemas import AuthenticatedUser
from src.core.exceptions import ValidationError
from src.core.responses import build_pagination, success_response

from .dependencies import CommentServiceDep
from .models import CommentStatus
from .schemas import (
    CreateCommentRequest,
    UpdateCommentRequest,
    UpdateCommentStatusRequest,
)


router = APIRouter(prefix="/api/comments", tags=["comments"])

Moderator = Annotated[
    AuthenticatedUser, Depends(require_action(Action.MODERATE_COMMENTS))
]


def parse_status(value: str | None) -> CommentStatus | None:
    if not value:
        return None
    try:
        return CommentStatus(value.upper())
    except ValueError as e:
        raise ValidationError("Invalid comment status") from e


@router.get("", summary="List comments of an article")
async def list_comments(
    comment_service: CommentServiceDep,
    user: OptionalUser,
    article_id: Annotated[UUID | None, Query(alias="articleId")] = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict[str, Any]:
    """Approved comments for visitors; any status for moderators."""
    if article_id is None:
        raise ValidationError("Article ID is required")

    comments, total = await comment_service.list_comments(
        article_id=article_id,
        viewer=user,
        status_filter=parse_status(status_filter),
        page=page,
        limit=limit,
    )
    private = user is not None and user.is_privileged
    return success_response(
        {
            "comments": [c.to_dict(include_private=private) for c in comments],
            "pagination": build_pagination(page, limit, total, "Comments"),
        }
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit comment")
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    client_ip: ClientIP,
) -> dict[str, Any]:
    """Submit a comment or reply. It stays hidden until approved."""
    comment = await comment_service.submit_comment(
        article_id=data.article_id,
        content=data.content,
        author_name=data.author_name,
        author_email=data.author_email,
        parent_id=data.parent_id,
        client_ip=client_ip,
    )
    return success_response(
        {"comment": comment.to_dict()},
        message="Comment submitted successfully. It will be visible after moderation.",
    )


@router.get("/moderation/pending", summary="Moderation queue")
async def pending_comments(
    comment_service: CommentServiceDep,
    _user: Moderator,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict[str, Any]:
    comments, total = await comment_service.pending(page=page, limit=limit)
    return success_response(
        {
            "comments": comments,
            "pagination": build_pagination(page, limit, total, "Comments"),
        }
    )


@router.put("/{comment_id}/status", summary="Moderate comment")
async def update_comment_status(
    comment_id: UUID,
    data: UpdateCommentStatusRequest,
    comment_service: CommentServiceDep,
    user: Moderator,
) -> dict[str, Any]:
    comment = await comment_service.update_status(comment_id, data.status, user)
    return success_response(
        {"comment": comment.to_dict(include_private=True)},
        message="Comment status updated successfully",
    )


@router.put("/{comment_id}", summary="Edit comment")
async def update_comment(
    comment_id: UUID,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> dict[str, Any]:
    """Edit content; the comment goes back to the moderation queue."""
    comment = await comment_service.edit_comment(comment_id, data.content, user)
    return success_response(
        {"comment": comment.to_dict(include_private=user.is_privileged)},
        message="Comment updated successfully. It will be visible after moderation.",
    )


@router.delete("/{comment_id}", summary="Delete comment")
async def delete_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> dict[str, Any]:
    """Delete a comment together with its direct replies."""
    await comment_service.delete_comment(comment_id, user)
    return success_response(message="Comment deleted successfully")
