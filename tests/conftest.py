"""Shared fixtures: in-memory store, temp-file cache, engine and API client."""

import os

# Settings are read at import time; keep tests off PostgreSQL
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "dev")

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from catalog_taxonomy.api.deps import get_engine  # noqa: E402
from catalog_taxonomy.cache.hierarchy_cache import HierarchyCache  # noqa: E402
from catalog_taxonomy.core.modules import ModuleRegistry  # noqa: E402
from catalog_taxonomy.main import app  # noqa: E402
from catalog_taxonomy.services.engine import TaxonomyEngine, TaxonomyService  # noqa: E402
from catalog_taxonomy.store.memory import MemoryTaxonomyStore  # noqa: E402

TENANT = "tenant-001"

Seed = Callable[..., Awaitable[str]]


@pytest.fixture
def store() -> MemoryTaxonomyStore:
    return MemoryTaxonomyStore()


@pytest.fixture
def cache(tmp_path) -> Generator[HierarchyCache, None, None]:
    cache = HierarchyCache(path=tmp_path / "hierarchy_cache.sqlite3", ttl_seconds=3600)
    yield cache
    cache.close()


@pytest.fixture
def registry() -> ModuleRegistry:
    return ModuleRegistry()


@pytest.fixture
def engine(store: MemoryTaxonomyStore, cache: HierarchyCache, registry: ModuleRegistry) -> TaxonomyEngine:
    return TaxonomyEngine(store=store, cache=cache, registry=registry, name_max_length=30)


@pytest.fixture
def products(engine: TaxonomyEngine) -> TaxonomyService:
    return engine.module("products")


@pytest.fixture
def labor(engine: TaxonomyEngine) -> TaxonomyService:
    return engine.module("labor")


@pytest.fixture
def seed(store: MemoryTaxonomyStore) -> Seed:
    """Insert a document straight into the store, bypassing validation."""

    async def _seed(collection: str, tenant: str = TENANT, **fields: Any) -> str:
        return await store.create(collection, {"userId": tenant, **fields})

    return _seed


@pytest.fixture
async def client(engine: TaxonomyEngine) -> AsyncGenerator[AsyncClient, None]:
    """API client wired to the test engine."""
    app.dependency_overrides[get_engine] = lambda: engine
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
