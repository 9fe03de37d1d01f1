"""Hierarchy cache."""

from catalog_taxonomy.cache.hierarchy_cache import CacheKey, HierarchyCache

__all__ = ["CacheKey", "HierarchyCache"]
