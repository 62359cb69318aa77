"""Back-office API endpoints.

Every route requires an ADMIN or EDITOR; user management and settings
updates are further restricted to ADMIN.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from src.auth.dependencies import AdminUser, require_action
from src.auth.permissions import Action
from src.auth.schemas import AuthenticatedUser
from src.core.responses import build_pagination, success_response

from .dependencies import AdminServiceDep
from .schemas import SettingsUpdateRequest, UserUpdateRequest


router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_action(Action.VIEW_ADMIN))],
)

SettingsAdmin = Annotated[
    AuthenticatedUser, Depends(require_action(Action.UPDATE_SETTINGS))
]


@router.get("/dashboard", summary="Dashboard statistics")
async def dashboard(admin_service: AdminServiceDep) -> dict[str, Any]:
    return success_response(await admin_service.dashboard())


@router.get("/analytics/articles", summary="Article analytics")
async def article_analytics(
    admin_service: AdminServiceDep,
    period: Annotated[int, Query(ge=1, le=3650)] = 30,
) -> dict[str, Any]:
    return success_response(await admin_service.article_analytics(period))


@router.get("/users", summary="List users")
async def list_users(
    admin_service: AdminServiceDep,
    user: AdminUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: str | None = None,
    role: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> dict[str, Any]:
    users, total = await admin_service.list_users(
        user,
        page=page,
        limit=limit,
        search=search,
        role=role,
        status=status_filter,
    )
    return success_response(
        {
            "users": [u.to_dict(article_count=count) for u, count in users],
            "pagination": build_pagination(page, limit, total, "Users"),
        }
    )


@router.put("/users/{user_id}", summary="Update user role or status")
async def update_user(
    user_id: str,
    data: UserUpdateRequest,
    admin_service: AdminServiceDep,
    user: AdminUser,
) -> dict[str, Any]:
    updated = await admin_service.update_user(user_id, data, user)
    return success_response(
        {"user": updated.to_dict()}, message="User updated successfully"
    )


@router.delete("/users/{user_id}", summary="Delete user")
async def delete_user(
    user_id: str,
    admin_service: AdminServiceDep,
    user: AdminUser,
) -> dict[str, Any]:
    await admin_service.delete_user(user_id, user)
    return success_response(message="User deleted successfully")


@router.get("/settings", summary="System settings")
async def list_settings(admin_service: AdminServiceDep) -> dict[str, Any]:
    settings = await admin_service.list_settings()
    return success_response({"settings": [s.to_dict() for s in settings]})


@router.put("/settings", summary="Update system settings")
async def update_settings(
    data: SettingsUpdateRequest,
    admin_service: AdminServiceDep,
    user: SettingsAdmin,
) -> dict[str, Any]:
    await admin_service.update_settings(data.as_text(), user)
    return success_response(message="Settings updated successfully")


@router.get("/moderation", summary="Moderation queue")
async def moderation_queue(admin_service: AdminServiceDep) -> dict[str, Any]:
    return success_response(await admin_service.moderation_queue())
