"""FastAPI dependencies for hero banners."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import HeroService


async def get_hero_service(request: Request) -> HeroService:
    service = getattr(request.app.state, "hero_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Hero service not available",
        )
    return service


HeroServiceDep = Annotated[HeroService, Depends(get_hero_service)]
