"""Taxonomy Engine - per-module service bundles over one store and cache."""

from dataclasses import dataclass

from catalog_taxonomy.cache.hierarchy_cache import HierarchyCache
from catalog_taxonomy.config import settings
from catalog_taxonomy.core.levels import ModuleSchema
from catalog_taxonomy.core.modules import ModuleRegistry, get_module_registry
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.services.mutations import MutationService
from catalog_taxonomy.services.reader import HierarchyReader
from catalog_taxonomy.services.scanner import EmptyLeafScanner
from catalog_taxonomy.services.traversal import HierarchyTraversal
from catalog_taxonomy.services.usage import UsageStatsService
from catalog_taxonomy.store.base import TaxonomyStore
from catalog_taxonomy.store.retrying import RetryingStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaxonomyService:
    """Services of one catalog module."""

    schema: ModuleSchema
    reader: HierarchyReader
    mutations: MutationService
    usage: UsageStatsService
    scanner: EmptyLeafScanner


class TaxonomyEngine:
    """Entry point: resolves module names to their service bundle."""

    def __init__(
        self,
        store: TaxonomyStore,
        cache: HierarchyCache,
        registry: ModuleRegistry | None = None,
        name_max_length: int | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.registry = registry or get_module_registry()
        self.name_max_length = name_max_length
        self.traversal = HierarchyTraversal(store, self.registry)
        self._services: dict[str, TaxonomyService] = {}

    def module(self, name: str) -> TaxonomyService:
        """Service bundle of a registered module.

        Raises:
            KeyError: If module not registered
        """
        if name not in self._services:
            schema = self.registry.get(name)
            reader = HierarchyReader(self.store, self.cache, schema)
            self._services[name] = TaxonomyService(
                schema=schema,
                reader=reader,
                mutations=MutationService(
                    self.store,
                    self.cache,
                    reader,
                    self.traversal,
                    name_max_length=self.name_max_length,
                ),
                usage=UsageStatsService(self.traversal, schema),
                scanner=EmptyLeafScanner(reader),
            )
        return self._services[name]

    def close(self) -> None:
        self.cache.close()


def _build_store() -> TaxonomyStore:
    if settings.store_backend == "memory":
        from catalog_taxonomy.store.memory import MemoryTaxonomyStore

        return MemoryTaxonomyStore()

    from catalog_taxonomy.store.sql import SqlTaxonomyStore

    return SqlTaxonomyStore()


_engine: TaxonomyEngine | None = None


def get_taxonomy_engine() -> TaxonomyEngine:
    """Get the global engine, built from settings on first use."""
    global _engine

    if _engine is None:
        _engine = TaxonomyEngine(store=RetryingStore(_build_store()), cache=HierarchyCache())
        logger.info(
            "Taxonomy engine initialized",
            store_backend=settings.store_backend,
            modules=_engine.registry.available(),
        )

    return _engine


def close_taxonomy_engine() -> None:
    """Close and forget the global engine."""
    global _engine

    if _engine is not None:
        _engine.close()
        _engine = None
