"""API route modules."""

from catalog_taxonomy.api.routes.health import router as health_router
from catalog_taxonomy.api.routes.taxonomy import router as taxonomy_router

__all__ = ["health_router", "taxonomy_router"]
