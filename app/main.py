"""FastAPI application entry point.

Blog Service API - posts backed by PostgreSQL, Redis and Elasticsearch.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.errors import PostServiceError
from app.routes import api_router
from app.schemas import ErrorDetail, ErrorResponse
from app.services.posts import PostService
from app.settings import get_settings
from app.stores.postgres import Database
from app.stores.posts import PostStore
from app.stores.redis import RedisCache
from app.stores.search import SearchIndex

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the shared store/cache/index handles, wires them into the
    PostService and closes them on shutdown.
    """
    # Startup
    settings = get_settings()

    database = Database.from_settings(settings)
    cache = RedisCache.from_settings(settings)
    index = SearchIndex.from_settings(settings)

    # Check dependencies; a down cache or index only degrades the service
    try:
        await database.ping()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    try:
        await cache.ping()
    except Exception:
        logger.exception("Redis init failed")

    try:
        await index.ensure_index()
        logger.info("Elasticsearch index ready")
    except Exception:
        logger.exception("Elasticsearch init failed")

    app.state.post_service = PostService(
        store=PostStore(database),
        cache=cache,
        index=index,
        related_limit=settings.related_posts_limit,
    )

    yield

    # Shutdown
    await index.close()
    await cache.close()
    await database.close()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Blog posts with read-through caching and full-text search",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PostServiceError)
    async def post_service_exception_handler(request: Request, exc: PostServiceError) -> JSONResponse:
        """Map domain errors to the structured error format."""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        body = ErrorResponse(error=ErrorDetail.from_error(exc))
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"{request.method} {request.url.path} raised")
        return _error_response(
            500,
            "INTERNAL_ERROR",
            str(exc) if settings.debug else "Internal server error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
