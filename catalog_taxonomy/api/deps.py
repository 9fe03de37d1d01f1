"""FastAPI dependencies for dependency injection.

Provides:
- Tenant scope from the X-Tenant-ID header
- The taxonomy engine and per-module service bundles
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Path, status

from catalog_taxonomy.infra.logging import bind_request_context, get_logger
from catalog_taxonomy.services.engine import TaxonomyEngine, TaxonomyService, get_taxonomy_engine

logger = get_logger(__name__)


async def get_tenant_id(
    x_tenant_id: Annotated[str | None, Header()] = None,
) -> str:
    """Extract tenant ID from request header.

    Every taxonomy read and write is tenant-partitioned, so the header is
    mandatory.

    Raises:
        HTTPException: 400 if the header is missing or blank
    """
    tenant_id = (x_tenant_id or "").strip()
    if not tenant_id:
        logger.debug("Request without X-Tenant-ID header rejected")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required",
        )
    bind_request_context(tenant_id=tenant_id)
    return tenant_id


def get_engine() -> TaxonomyEngine:
    return get_taxonomy_engine()


def get_module_service(
    module: Annotated[str, Path(description="Catalog module name")],
    engine: Annotated[TaxonomyEngine, Depends(get_engine)],
) -> TaxonomyService:
    """Resolve the module path segment to its service bundle.

    Raises:
        HTTPException: 404 if the module is not registered
    """
    try:
        return engine.module(module)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown module: {module}",
        ) from None


# Type aliases for cleaner route signatures
Tenant = Annotated[str, Depends(get_tenant_id)]
Engine = Annotated[TaxonomyEngine, Depends(get_engine)]
ModuleServices = Annotated[TaxonomyService, Depends(get_module_service)]
