"""Hierarchy Reader - cache-through sibling reads and tree assembly.

Sibling lists go through the HierarchyCache; bulk level loads (used for
point-in-time scans) go straight to the store.
"""

import asyncio
import time

from catalog_taxonomy.cache.hierarchy_cache import CacheKey, HierarchyCache
from catalog_taxonomy.core.levels import LevelSpec, ModuleSchema
from catalog_taxonomy.core.node_table import NodeTable
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.taxonomy import TaxonomyRow, TreeNode
from catalog_taxonomy.store.base import TaxonomyStore

logger = get_logger(__name__)


def _tree_node(row: TaxonomyRow) -> TreeNode:
    return TreeNode(id=row.id, name=row.name, level=row.level, parent_id=row.parent_id)


def _attach(parent: TreeNode, child: TreeNode, level: LevelSpec) -> None:
    if level.branch:
        parent.branches.setdefault(level.name, []).append(child)
    else:
        parent.children.append(child)


class HierarchyReader:
    """Reads one module's taxonomy for a tenant."""

    def __init__(self, store: TaxonomyStore, cache: HierarchyCache, schema: ModuleSchema) -> None:
        self.store = store
        self.cache = cache
        self.schema = schema

    def cache_key(self, level: str, parent_id: str | None, tenant: str) -> CacheKey:
        """Cache key of the sibling list of ``level`` under ``parent_id``."""
        spec = self.schema.level(level)
        return CacheKey(
            module=self.schema.cache_namespace(spec),
            level=spec.name,
            parent_id=None if spec.is_root else parent_id,
            tenant=tenant,
        )

    async def children(
        self,
        level: str,
        parent_id: str | None,
        tenant: str,
        use_cache: bool = True,
    ) -> list[TaxonomyRow]:
        """Rows of ``level`` whose parent is ``parent_id``, sorted by name.

        Args:
            level: Level to read
            parent_id: Parent node id (ignored for the root level)
            tenant: Owning tenant
            use_cache: Serve from and populate the cache

        Returns:
            Sibling rows in ordinal name order
        """
        spec = self.schema.level(level)
        key = self.cache_key(level, parent_id, tenant)

        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        filters: dict[str, str] = {"userId": tenant}
        if spec.parent_field is not None:
            if parent_id is None:
                return []
            filters[spec.parent_field] = parent_id

        docs = await self.store.query(spec.collection, filters)
        rows = sorted(
            (TaxonomyRow.from_document(doc, spec) for doc in docs),
            key=lambda row: row.name,
        )

        if use_cache:
            self.cache.set(key, rows)
        return rows

    async def build_tree(self, tenant: str) -> list[TreeNode]:
        """Assemble the module's forest, one depth at a time.

        All parents found at a depth are expanded concurrently. Child lists
        are fetched by parent id, so rows whose parent does not exist are
        never reached.
        """
        start = time.time()
        roots = [_tree_node(row) for row in await self.children(self.schema.root.name, None, tenant)]

        frontier = roots
        depth = 0
        while frontier:
            requests: list[tuple[TreeNode, LevelSpec]] = [
                (node, child_level)
                for node in frontier
                for child_level in self.schema.children_of(node.level)
            ]
            if not requests:
                break

            results = await asyncio.gather(
                *(self.children(level.name, node.id, tenant) for node, level in requests)
            )

            next_frontier: list[TreeNode] = []
            for (parent, level), rows in zip(requests, results):
                for row in rows:
                    child = _tree_node(row)
                    _attach(parent, child, level)
                    next_frontier.append(child)
            frontier = next_frontier
            depth += 1

        logger.debug(
            "Tree built",
            module=self.schema.name,
            tenant_id=tenant,
            roots=len(roots),
            depth=depth,
            duration_ms=int((time.time() - start) * 1000),
        )
        return roots

    async def load_level(self, level: str, tenant: str) -> list[TaxonomyRow]:
        """Every row of a level for the tenant, bypassing the cache."""
        spec = self.schema.level(level)
        docs = await self.store.query(spec.collection, {"userId": tenant})
        return [TaxonomyRow.from_document(doc, spec) for doc in docs]

    async def build_table(self, tenant: str) -> NodeTable:
        """Point-in-time load of every level into a NodeTable, orphans removed."""
        levels = self.schema.levels
        loaded = await asyncio.gather(*(self.load_level(level.name, tenant) for level in levels))

        table = NodeTable(self.schema)
        for rows in loaded:
            table.add_all(rows)

        orphans = table.drop_orphans()
        if orphans:
            logger.debug("Orphan rows dropped", module=self.schema.name, tenant_id=tenant, orphans=orphans)
        return table

    def to_tree(self, table: NodeTable) -> list[TreeNode]:
        """Assemble a NodeTable into a forest sorted by name at every level."""

        def expand(row: TaxonomyRow) -> TreeNode:
            node = _tree_node(row)
            for child_level in self.schema.children_of(row.level):
                for child in sorted(table.children(row.level, row.id, child_level.name), key=lambda r: r.name):
                    _attach(node, expand(child), child_level)
            return node

        roots = sorted(table.rows(self.schema.root.name), key=lambda row: row.name)
        return [expand(row) for row in roots]
