"""Descend-and-match traversal shared by usage stats and cascade delete.

Starting from one node, every deeper level is fetched one depth at a time by
parent id into a NodeTable, and linked inventory items are matched by the
node's id field. Usage stats and cascade delete both consume the resulting
``DeletionPlan``, so the counts shown before a delete are exactly what the
delete removes when nothing changes in between.

Items carry the id of every ancestor level (``tradeId``, ``sectionId``, ...),
so an item linked to any descendant is also linked to the node itself and a
single equality query per module finds them all.
"""

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from catalog_taxonomy.cache.hierarchy_cache import CacheKey
from catalog_taxonomy.core.levels import ModuleSchema
from catalog_taxonomy.core.modules import ModuleRegistry
from catalog_taxonomy.core.node_table import NodeTable
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.taxonomy import TaxonomyRow, UsageStats
from catalog_taxonomy.store.base import DocumentRef, TaxonomyStore

logger = get_logger(__name__)


@dataclass
class ModuleSlice:
    """What one module contributes to a deletion."""

    schema: ModuleSchema
    table: NodeTable
    descendants: list[TaxonomyRow] = field(default_factory=list)
    items: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class DeletionPlan:
    """Every document a cascade delete of ``node`` would remove."""

    node: TaxonomyRow
    schema: ModuleSchema
    tenant: str
    slices: list[ModuleSlice]

    @property
    def descendant_count(self) -> int:
        return sum(len(s.descendants) for s in self.slices)

    @property
    def item_count(self) -> int:
        return sum(len(s.items) for s in self.slices)

    def refs(self) -> list[DocumentRef]:
        """Documents to delete: descendants deepest first, then items, then the node."""
        refs: list[DocumentRef] = []
        for s in self.slices:
            refs.extend(
                DocumentRef(s.schema.level(row.level).collection, row.id) for row in s.descendants
            )
        for s in self.slices:
            refs.extend(DocumentRef(s.schema.item_collection, item["id"]) for item in s.items)
        refs.append(DocumentRef(self.schema.level(self.node.level).collection, self.node.id))
        return refs

    def cache_keys(self) -> list[CacheKey]:
        """Sibling lists that change when the plan is applied.

        The node's own sibling list plus the child lists of the node and of
        every descendant, in every module the deletion touches.
        """
        spec = self.schema.level(self.node.level)
        keys = {
            CacheKey(
                module=self.schema.cache_namespace(spec),
                level=spec.name,
                parent_id=self.node.parent_id,
                tenant=self.tenant,
            )
        }
        for s in self.slices:
            for row in (self.node, *s.descendants):
                for child_level in s.schema.children_of(row.level):
                    keys.add(
                        CacheKey(
                            module=s.schema.cache_namespace(child_level),
                            level=child_level.name,
                            parent_id=row.id,
                            tenant=self.tenant,
                        )
                    )
        return sorted(keys, key=lambda k: (k.module, k.level, k.parent_id or ""))

    def stats(self) -> UsageStats:
        by_level: Counter[str] = Counter()
        affected: list[str] = []
        for s in self.slices:
            for row in s.descendants:
                by_level[row.level] += 1
                affected.append(f"{s.schema.level(row.level).label}: {row.name}")

        return UsageStats(
            node_id=self.node.id,
            level=self.node.level,
            name=self.node.name,
            descendant_node_count=self.descendant_count,
            linked_item_count=self.item_count,
            descendants_by_level=dict(by_level),
            items_by_module={s.schema.name: len(s.items) for s in self.slices if s.items},
            affected_nodes=affected,
        )


class HierarchyTraversal:
    """Builds DeletionPlans against the store (never the cache)."""

    def __init__(self, store: TaxonomyStore, registry: ModuleRegistry | None = None) -> None:
        self.store = store
        self.registry = registry

    def _modules_for(self, schema: ModuleSchema, level: str) -> tuple[ModuleSchema, ...]:
        # A shared level belongs to every registered module
        if not schema.level(level).shared or self.registry is None:
            return (schema,)
        modules = self.registry.all()
        if schema not in modules:
            modules = (schema, *modules)
        return modules

    async def find_node(self, schema: ModuleSchema, level: str, node_id: str, tenant: str) -> TaxonomyRow | None:
        """The tenant's node of ``level`` with this id, or None."""
        spec = schema.level(level)
        doc = await self.store.get(spec.collection, node_id)
        if doc is None or doc.get("userId") != tenant:
            return None
        return TaxonomyRow.from_document(doc, spec)

    async def _descend(self, schema: ModuleSchema, node: TaxonomyRow, tenant: str) -> NodeTable:
        table = NodeTable(schema)
        table.add(node)

        frontier = [node]
        while frontier:
            requests = [
                (row, child_level)
                for row in frontier
                for child_level in schema.children_of(row.level)
            ]
            if not requests:
                break
            results = await asyncio.gather(
                *(
                    self.store.query(
                        child_level.collection,
                        {child_level.parent_field: row.id, "userId": tenant},
                    )
                    for row, child_level in requests
                )
            )
            frontier = []
            for (_, child_level), docs in zip(requests, results):
                for doc in docs:
                    child = TaxonomyRow.from_document(doc, child_level)
                    if (child.level, child.id) in table:
                        continue
                    table.add(child)
                    frontier.append(child)
        return table

    async def _slice(self, schema: ModuleSchema, node: TaxonomyRow, tenant: str) -> ModuleSlice:
        spec = schema.level(node.level)
        table, items = await asyncio.gather(
            self._descend(schema, node, tenant),
            self.store.query(schema.item_collection, {spec.item_field: node.id, "userId": tenant}),
        )
        return ModuleSlice(
            schema=schema,
            table=table,
            descendants=list(table.descendants(node.level, node.id)),
            items=items,
        )

    async def collect(
        self,
        schema: ModuleSchema,
        level: str,
        node_id: str,
        tenant: str,
    ) -> DeletionPlan | None:
        """Enumerate everything below a node.

        Returns:
            The plan, or None when the node does not exist for the tenant

        Raises:
            KeyError: If the module has no such level
            StoreError: If a store read fails
        """
        node = await self.find_node(schema, level, node_id, tenant)
        if node is None:
            return None

        slices = await asyncio.gather(
            *(self._slice(module, node, tenant) for module in self._modules_for(schema, level))
        )
        plan = DeletionPlan(node=node, schema=schema, tenant=tenant, slices=list(slices))

        logger.debug(
            "Deletion plan collected",
            module=schema.name,
            level=level,
            node_id=node_id,
            tenant_id=tenant,
            descendants=plan.descendant_count,
            items=plan.item_count,
        )
        return plan
