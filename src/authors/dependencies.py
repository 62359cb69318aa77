"""FastAPI dependencies for authors."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import AuthorService


async def get_author_service(request: Request) -> AuthorService:
    service = getattr(request.app.state, "author_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Author service not available",
        )
    return service


AuthorServiceDep = Annotated[AuthorService, Depends(get_author_service)]
