"""EduTrack API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from edutrack.bookmarks.router import router as bookmarks_router
from edutrack.bookmarks.service import BookmarkService
from edutrack.catalog.router import router as catalog_router
from edutrack.catalog.service import CatalogService
from edutrack.config import Settings, get_settings
from edutrack.core.context import get_request_id
from edutrack.core.database import init_cassandra, shutdown_cassandra
from edutrack.core.logging import configure_structlog, get_logger
from edutrack.core.middleware import RequestContextMiddleware
from edutrack.core.redis import close_redis, connect_redis
from edutrack.health import router as health_router
from edutrack.progress.aggregator import ProgressAggregator
from edutrack.progress.router import router as progress_router
from edutrack.progress.service import ProgressService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def attach_services(app: FastAPI, session, redis_client, settings: Settings) -> None:
    """Wire the services the routers read from ``app.state``."""
    catalog = CatalogService(session=session, keyspace=settings.cassandra_keyspace)
    progress = ProgressService(
        session=session,
        keyspace=settings.cassandra_keyspace,
        catalog=catalog,
        redis_client=redis_client,
        rate_limit_per_minute=settings.progress_sync_rate_limit_per_minute,
        write_retries=settings.progress_write_retries,
    )
    bookmarks = BookmarkService(
        session=session, keyspace=settings.cassandra_keyspace, catalog=catalog
    )

    app.state.catalog_service = catalog
    app.state.progress_service = progress
    app.state.bookmark_service = bookmarks
    app.state.progress_aggregator = ProgressAggregator(
        catalog=catalog, progress=progress, bookmarks=bookmarks
    )
    logger.info("services_initialized", rate_limit_enabled=redis_client is not None)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect Redis and Cassandra, then attach the services."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis only backs the write rate limit
    redis_client = None
    try:
        redis_client = await connect_redis(settings)
    except Exception as e:
        logger.warning("redis_init_skipped", error=str(e))

    try:
        session = await init_cassandra(settings)
        attach_services(app, session, redis_client, settings)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await close_redis()
    await shutdown_cassandra()


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> ORJSONResponse:
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
            "request_id": request_id,
            **extra,
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Uniform error envelope; stack traces never reach responses."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
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
        return _error_response(
            request, exc.status_code, message, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Out-of-range progress samples end up here."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error",
            details=[
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", [])),
                    "message": err.get("msg", "Invalid value"),
                }
                for err in exc.errors()
            ],
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred. Please try again later.",
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    docs_enabled = settings.is_development

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="EduTrack - Video watch progress API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
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

    for router in (health_router, catalog_router, progress_router, bookmarks_router):
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        return {
            "message": "EduTrack API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
