"""FastAPI dependencies for articles."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .aggregation import AggregationService
from .service import ArticleService


async def get_article_service(request: Request) -> ArticleService:
    """Get article service from app state.

    Raises:
        HTTPException(503): If the database was not initialised.
    """
    service = getattr(request.app.state, "article_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Article service not available",
        )
    return service


async def get_aggregation_service(request: Request) -> AggregationService:
    service = getattr(request.app.state, "aggregation_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Aggregation service not available",
        )
    return service


ArticleServiceDep = Annotated[ArticleService, Depends(get_article_service)]
AggregationServiceDep = Annotated[AggregationService, Depends(get_aggregation_service)]
