"""Hero banner endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.auth.dependencies import require_action
from src.auth.permissions import Action
from src.auth.schemas import AuthenticatedUser
from src.core.responses import success_response

from .dependencies import HeroServiceDep
from .schemas import HeroCreateRequest, HeroUpdateRequest


router = APIRouter(prefix="/api/hero", tags=["hero"])

HeroAdmin = Annotated[AuthenticatedUser, Depends(require_action(Action.MANAGE_HERO))]


@router.get("", summary="Active hero")
async def get_active_hero(hero_service: HeroServiceDep) -> dict[str, Any]:
    hero = await hero_service.get_active()
    return success_response({"hero": hero.to_dict() if hero else None})


@router.get("/admin/list", summary="All heroes")
async def list_heroes(hero_service: HeroServiceDep, user: HeroAdmin) -> dict[str, Any]:
    heroes = await hero_service.list_heroes(user)
    return success_response({"heroes": [h.to_dict() for h in heroes]})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create hero")
async def create_hero(
    data: HeroCreateRequest,
    hero_service: HeroServiceDep,
    user: HeroAdmin,
) -> dict[str, Any]:
    hero = await hero_service.create_hero(data, user)
    return success_response(
        {"hero": hero.to_dict()}, message="Hero created successfully"
    )


@router.put("/{hero_id}", summary="Update hero")
async def update_hero(
    hero_id: UUID,
    data: HeroUpdateRequest,
    hero_service: HeroServiceDep,
    user: HeroAdmin,
) -> dict[str, Any]:
    hero = await hero_service.update_hero(hero_id, data, user)
    return success_response(
        {"hero": hero.to_dict()}, message="Hero updated successfully"
    )


@router.delete("/{hero_id}", summary="Delete hero")
async def delete_hero(
    hero_id: UUID,
    hero_service: HeroServiceDep,
    user: HeroAdmin,
) -> dict[str, Any]:
    await hero_service.delete_hero(hero_id, user)
    return success_response(message="Hero deleted successfully")
