"""Taxonomy services: reads, mutations, usage stats and empty-leaf scans."""

from catalog_taxonomy.services.engine import (
    TaxonomyEngine,
    TaxonomyService,
    close_taxonomy_engine,
    get_taxonomy_engine,
)
from catalog_taxonomy.services.mutations import MutationService
from catalog_taxonomy.services.reader import HierarchyReader
from catalog_taxonomy.services.scanner import (
    CancellationToken,
    EmptyLeafScanner,
    ScanCancelledError,
)
from catalog_taxonomy.services.traversal import DeletionPlan, HierarchyTraversal
from catalog_taxonomy.services.usage import UsageStatsService

__all__ = [
    "CancellationToken",
    "DeletionPlan",
    "EmptyLeafScanner",
    "HierarchyReader",
    "HierarchyTraversal",
    "MutationService",
    "ScanCancelledError",
    "TaxonomyEngine",
    "TaxonomyService",
    "UsageStatsService",
    "close_taxonomy_engine",
    "get_taxonomy_engine",
]
