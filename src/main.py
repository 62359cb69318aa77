"""Newsdesk API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.admin.router import router as admin_router
from src.admin.service import AdminService
from src.articles.aggregation import AggregationService
from src.articles.router import router as articles_router
from src.articles.service import ArticleService
from src.authors.router import router as authors_router
from src.authors.service import AuthorService
from src.categories.router import router as categories_router
from src.categories.service import CategoryService
from src.comments.router import router as comments_router
from src.comments.service import CommentService
from src.config import get_settings
from src.core.context import get_request_id
from src.core.database.async_cassandra import (
    init_async_cassandra,
    shutdown_async_cassandra,
)
from src.core.exceptions import NewsdeskError
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware
from src.core.redis import init_redis, shutdown_redis
from src.core.responses import error_response
from src.epaper.router import router as epaper_router
from src.epaper.service import EpaperService
from src.health import router as health_router
from src.hero.router import router as hero_router
from src.hero.service import HeroService
from src.media.router import router as media_router
from src.media.service import MediaService
from src.media.storage import LocalStorage
from src.public import router as public_router


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session, redis_client=None) -> None:
    """Build every service on ``app.state`` around one Cassandra session."""
    keyspace = settings.cassandra_keyspace
    storage = LocalStorage.from_settings(settings)

    aggregation = AggregationService(session=session, keyspace=keyspace)
    app.state.aggregation_service = aggregation

    app.state.article_service = ArticleService(
        session=session, keyspace=keyspace, aggregation=aggregation
    )
    app.state.comment_service = CommentService(
        session=session, keyspace=keyspace, redis=redis_client
    )
    app.state.category_service = CategoryService(
        session=session, keyspace=keyspace, aggregation=aggregation
    )
    app.state.author_service = AuthorService(
        session=session, keyspace=keyspace, aggregation=aggregation
    )
    app.state.media_service = MediaService(
        session=session, keyspace=keyspace, settings=settings, storage=storage
    )
    app.state.epaper_service = EpaperService(
        session=session, keyspace=keyspace, settings=settings, storage=storage
    )
    app.state.hero_service = HeroService(session=session, keyspace=keyspace)
    app.state.admin_service = AdminService(
        session=session,
        keyspace=keyspace,
        aggregation=aggregation,
        article_service=app.state.article_service,
        category_service=app.state.category_service,
        author_service=app.state.author_service,
        comment_service=app.state.comment_service,
    )
    logger.info("services_initialized", redis_enabled=redis_client is not None)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis is non-critical; without it the duplicate-comment guard is off
    redis_client = None
    try:
        redis_client = await init_redis()
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - duplicate comment guard disabled",
        )

    try:
        session = await init_async_cassandra()
        init_services(app, session, redis_client)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def _get_request_id_safe(request: Request) -> str | None:
    """Get request_id from request state or context."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return get_request_id()


def register_exception_handlers(app: FastAPI) -> None:
    """Map errors to the ``{success: false, message, code}`` envelope.

    Stack traces are logged, never returned.
    """

    @app.exception_handler(NewsdeskError)
    async def newsdesk_error_handler(
        request: Request, exc: NewsdeskError
    ) -> ORJSONResponse:
        logger.warning(
            "request_rejected",
            error_code=exc.code,
            status_code=exc.status_code,
            detail=exc.message,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=error_response(
                exc.message, code=exc.code, request_id=_get_request_id_safe(request)
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error"
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=error_response(
                message,
                code="http_error",
                request_id=_get_request_id_safe(request),
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors; field problems are safe to expose."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_response(
                "Validation failed",
                code="validation_error",
                request_id=_get_request_id_safe(request),
                errors=[
                    {
                        "field": ".".join(
                            str(loc) for loc in err.get("loc", []) if loc != "body"
                        ),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response(
                "An unexpected error occurred. Please try again later.",
                code="internal_error",
                request_id=_get_request_id_safe(request),
            ),
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # debug=False keeps Starlette's ServerErrorMiddleware from rendering tracebacks
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="News publishing CMS - API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(articles_router)
    app.include_router(categories_router)
    app.include_router(authors_router)
    app.include_router(comments_router)
    app.include_router(media_router)
    app.include_router(epaper_router)
    app.include_router(hero_router)
    app.include_router(admin_router)
    app.include_router(public_router)

    # Uploaded files are served read-only
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir),
        name="uploads",
    )

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Newsdesk API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
