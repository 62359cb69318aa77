"""FastAPI dependencies for categories."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CategoryService


async def get_category_service(request: Request) -> CategoryService:
    """Get category service from app state.

    Raises:
        HTTPException(503): If the database was not initialised.
    """
    service = getattr(request.app.state, "category_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Category service not available",
        )
    return service


CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
