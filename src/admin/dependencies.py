"""FastAPI dependencies for the back office."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import AdminService


async def get_admin_service(request: Request) -> AdminService:
    service = getattr(request.app.state, "admin_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin service not available",
        )
    return service


AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
