"""FastAPI application entry point.

Catalog taxonomy service: hierarchy reads, mutations, usage stats and
empty-leaf scans for every catalog module.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_taxonomy import __version__
from catalog_taxonomy.api.routes import health_router, taxonomy_router
from catalog_taxonomy.config import settings
from catalog_taxonomy.core.modules import get_module_registry
from catalog_taxonomy.infra.database import close_db_engine, create_schema, verify_db_connection
from catalog_taxonomy.infra.logging import bind_request_context, clear_request_context, get_logger, setup_logging
from catalog_taxonomy.schemas.common import ErrorResponse
from catalog_taxonomy.services.engine import close_taxonomy_engine, get_taxonomy_engine

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup:
    - Create the documents table and verify the database (postgres backend)
    - Build the taxonomy engine (module registry, store, cache)

    Shutdown:
    - Close the cache file and database connections
    """
    logger.info(
        "Catalog taxonomy service starting",
        environment=settings.environment,
        store_backend=settings.store_backend,
    )

    if settings.store_backend == "postgres":
        db_ok = await verify_db_connection()
        if db_ok:
            await create_schema()
        else:
            logger.warning("Database connection failed - will retry on first request")

    engine = get_taxonomy_engine()
    logger.info("Modules available", modules=engine.registry.available())

    yield

    logger.info("Catalog taxonomy service shutting down")
    close_taxonomy_engine()
    if settings.store_backend == "postgres":
        await close_db_engine()
    logger.info("Cleanup complete")


app = FastAPI(
    title="Catalog Taxonomy Service",
    description="Hierarchical taxonomy engine for the contractor inventory back office",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "dev" else None,
    redoc_url=None,
)

if settings.environment == "dev":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind request path and method to every log line of the request."""
    clear_request_context()
    bind_request_context(path=request.url.path, method=request.method)
    try:
        return await call_next(request)
    finally:
        clear_request_context()


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with a structured error body."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            error_type=type(exc).__name__,
        ).model_dump(),
    )


app.include_router(health_router, tags=["Health"])
app.include_router(taxonomy_router, prefix="/taxonomy", tags=["Taxonomy"])


@app.get("/")
async def root() -> dict:
    """Root endpoint - basic service info."""
    return {
        "service": "Catalog Taxonomy Service",
        "version": __version__,
        "environment": settings.environment,
        "modules": get_module_registry().available(),
    }
