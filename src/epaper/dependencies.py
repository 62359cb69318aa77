"""FastAPI dependencies for e-paper issues."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import EpaperService


async def get_epaper_service(request: Request) -> EpaperService:
    service = getattr(request.app.state, "epaper_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="E-paper service not available",
        )
    return service


EpaperServiceDep = Annotated[EpaperService, Depends(get_epaper_service)]
