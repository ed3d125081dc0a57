from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional, Sequence

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from aerofresh.app.api import aircraft_router, health_router, stats_router
from aerofresh.app.core.config import Settings, settings as default_settings
from aerofresh.app.core.logging import get_logger, setup_logging
from aerofresh.app.core.utils import now_ms
from aerofresh.app.db.repository import AircraftRepository, InMemoryAircraftRepository
from aerofresh.app.exceptions import AeroFreshException
from aerofresh.app.middleware.api_middleware import APIMiddleware, RateLimitCacheMiddleware
from aerofresh.app.middleware.auth import APIKeyAuthMiddleware
from aerofresh.app.middleware.cors import PreflightCORSMiddleware
from aerofresh.app.middleware.request_id import RequestIdMiddleware, get_request_id
from aerofresh.app.sources import DataSource, SampleDataSource, sync_source

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization", "x-api-key", "X-Request-ID"]
CORS_EXPOSE_HEADERS = [
    "X-Request-ID",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "Retry-After",
    "X-Cache",
    "X-Cache-TTL",
]


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[AircraftRepository] = None,
    sources: Optional[Sequence[DataSource]] = None,
    clock: Callable[[], int] = now_ms,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-loaded defaults
        repository: Aircraft store; an empty in-memory store by default
        sources: Data sources synced into the repository on startup
            (defaults to the built-in sample fleet)
        clock: Epoch-millisecond clock used by the rate limiter and cache

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or default_settings
    setup_logging(settings)
    logger = get_logger(__name__)

    repository = repository if repository is not None else InMemoryAircraftRepository()
    sources = list(sources) if sources is not None else [SampleDataSource()]
    api_middleware = APIMiddleware.from_settings(settings, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Load data sources into the repository before serving."""
        for source in sources:
            await sync_source(source, repository)

        logger.info(
            "Application startup complete",
            extra={
                "sources": [source.name for source in sources],
                "rate_limit_per_minute": settings.rate_limit_requests_per_minute,
                "cache_enabled": settings.cache_enabled,
                "debug_mode": settings.debug,
            }
        )
        yield
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="AeroFresh API",
        description="Aircraft history lookup with rate limiting and response caching",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository
    app.state.api_middleware = api_middleware

    # Add middleware (order matters: last added = first executed)
    # Rate limiting and caching (innermost - closest to routes)
    app.add_middleware(RateLimitCacheMiddleware, api_middleware=api_middleware)

    # Shared-secret check runs before quota accounting
    app.add_middleware(
        APIKeyAuthMiddleware,
        api_key=settings.api_key,
        exempt_paths=settings.rate_limit_exempt_paths,
    )

    app.add_middleware(RequestIdMiddleware)

    # CORS middleware (outermost - handles preflight requests first)
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=CORS_EXPOSE_HEADERS,
        max_age=86400,
    )

    app.include_router(health_router)
    app.include_router(aircraft_router)
    app.include_router(stats_router)

    @app.exception_handler(AeroFreshException)
    async def aerofresh_exception_handler(request: Request, exc: AeroFreshException) -> JSONResponse:
        """Render API exceptions as ``{"error": ...}`` with their status code."""
        return exc.to_response()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Keep routing errors (404, 405) in the same error shape."""
        message = "Not found" if exc.status_code == 404 else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The traceback is logged server-side and never returned to the client.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "exception_type": type(exc).__name__,
            }
        )

        content = {"error": "Internal server error", "request_id": request_id}
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()
