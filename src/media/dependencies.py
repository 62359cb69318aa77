"""FastAPI dependencies for media."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import MediaService


async def get_media_service(request: Request) -> MediaService:
    service = getattr(request.app.state, "media_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Media service not available",
        )
    return service


MediaServiceDep = Annotated[MediaService, Depends(get_media_service)]
