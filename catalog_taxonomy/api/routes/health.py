"""Health check endpoints.

Provides health status for container liveness and readiness checks.
"""

from fastapi import APIRouter

from catalog_taxonomy import __version__
from catalog_taxonomy.api.deps import Engine
from catalog_taxonomy.config import settings
from catalog_taxonomy.infra.database import verify_db_connection
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.common import HealthResponse

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Basic health check. Returns 200 if the service is running."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={},
    )


@router.get("/health/ready", response_model=HealthResponse)
async def health_ready(engine: Engine) -> HealthResponse:
    """Readiness check.

    Verifies:
    - Hierarchy cache file is readable
    - Database is reachable (postgres backend only)
    """
    checks: dict[str, bool] = {}

    try:
        engine.cache.get_cache_info()
        checks["cache"] = True
    except Exception as e:
        logger.warning("Cache health check failed", error=str(e))
        checks["cache"] = False

    if settings.store_backend == "postgres":
        checks["database"] = await verify_db_connection()

    all_healthy = all(checks.values()) if checks else True

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=__version__,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness check. Basic check that the service is responding."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={"alive": True},
    )
