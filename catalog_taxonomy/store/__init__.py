"""Document store contract and implementations."""

from catalog_taxonomy.store.base import (
    DocumentNotFoundError,
    DocumentRef,
    StoreError,
    TaxonomyStore,
)
from catalog_taxonomy.store.memory import MemoryTaxonomyStore
from catalog_taxonomy.store.retrying import RetryingStore

__all__ = [
    "DocumentNotFoundError",
    "DocumentRef",
    "MemoryTaxonomyStore",
    "RetryingStore",
    "StoreError",
    "TaxonomyStore",
]
