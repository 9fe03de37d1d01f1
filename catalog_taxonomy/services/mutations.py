"""Mutation Service - create, rename and cascade delete of taxonomy nodes.

Every operation reports validation and lookup problems through
OperationResult. Writes are never retried, and the duplicate check and the
write are two separate store calls with no lock between them.
"""

import time
from datetime import datetime, timezone
from typing import Any

from catalog_taxonomy.cache.hierarchy_cache import HierarchyCache
from catalog_taxonomy.config import settings
from catalog_taxonomy.core.levels import LevelSpec, ModuleSchema
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.common import FailureKind, OperationResult
from catalog_taxonomy.schemas.taxonomy import TaxonomyRow, UsageStats
from catalog_taxonomy.services.reader import HierarchyReader
from catalog_taxonomy.services.traversal import HierarchyTraversal
from catalog_taxonomy.store.base import StoreError, TaxonomyStore

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


class MutationService:
    """Writes for one module's taxonomy."""

    def __init__(
        self,
        store: TaxonomyStore,
        cache: HierarchyCache,
        reader: HierarchyReader,
        traversal: HierarchyTraversal,
        name_max_length: int | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.reader = reader
        self.traversal = traversal
        self.schema: ModuleSchema = reader.schema
        self.name_max_length = name_max_length or settings.name_max_length

    def _validate_name(self, spec: LevelSpec, name: str) -> tuple[str, str | None]:
        cleaned = (name or "").strip()
        if not cleaned:
            return cleaned, f"{spec.label} name cannot be empty"
        if len(cleaned) > self.name_max_length:
            return cleaned, f"{spec.label} name must be {self.name_max_length} characters or less"
        return cleaned, None

    @staticmethod
    def _is_duplicate(name: str, siblings: list[TaxonomyRow], exclude_id: str | None = None) -> bool:
        folded = name.casefold()
        return any(row.name.casefold() == folded and row.id != exclude_id for row in siblings)

    def _store_failure(self, action: str, spec: LevelSpec, error: StoreError, **context: Any) -> OperationResult[Any]:
        logger.error(
            f"Failed to {action} node",
            module=self.schema.name,
            level=spec.name,
            error=str(error),
            exc_info=True,
            **context,
        )
        return OperationResult.fail(FailureKind.STORE, f"Failed to {action} {spec.label.lower()}")

    async def create(
        self,
        name: str,
        level: str,
        parent_id: str | None,
        tenant: str,
    ) -> OperationResult[str]:
        """Create a node under ``parent_id``.

        Args:
            name: Display name (trimmed before validation)
            level: Level of the new node
            parent_id: Parent node id (ignored for the root level)
            tenant: Owning tenant

        Returns:
            OperationResult with the new node id
        """
        start = time.time()
        spec = self.schema.level(level)

        cleaned, error = self._validate_name(spec, name)
        if error:
            return OperationResult.fail(FailureKind.VALIDATION, error)

        if spec.is_root:
            parent_id = None
        elif not parent_id:
            parent_label = self.schema.level(spec.parent).label if spec.parent else "Parent"
            return OperationResult.fail(FailureKind.VALIDATION, f"{parent_label} is required")

        try:
            if spec.parent is not None and parent_id is not None:
                parent = await self.traversal.find_node(self.schema, spec.parent, parent_id, tenant)
                if parent is None:
                    return OperationResult.fail(
                        FailureKind.NOT_FOUND, f"{self.schema.level(spec.parent).label} not found"
                    )

            siblings = await self.reader.children(level, parent_id, tenant)
            if self._is_duplicate(cleaned, siblings):
                return OperationResult.fail(
                    FailureKind.DUPLICATE, f"A {spec.name} with this name already exists"
                )

            fields: dict[str, Any] = {
                "name": cleaned,
                "userId": tenant,
                "createdAt": datetime.now(timezone.utc),
            }
            if spec.parent_field is not None:
                fields[spec.parent_field] = parent_id

            node_id = await self.store.create(spec.collection, fields)
        except StoreError as e:
            return self._store_failure("create", spec, e, tenant_id=tenant, parent_id=parent_id)

        self.cache.invalidate(self.reader.cache_key(level, parent_id, tenant))

        logger.info(
            "Node created",
            module=self.schema.name,
            level=level,
            node_id=node_id,
            parent_id=parent_id,
            tenant_id=tenant,
        )
        return OperationResult.ok(node_id, duration_ms=_elapsed_ms(start))

    async def rename(
        self,
        node_id: str,
        level: str,
        new_name: str,
        tenant: str,
    ) -> OperationResult[None]:
        """Rename a node in place; its id and children are unaffected."""
        start = time.time()
        spec = self.schema.level(level)

        cleaned, error = self._validate_name(spec, new_name)
        if error:
            return OperationResult.fail(FailureKind.VALIDATION, error)

        try:
            node = await self.traversal.find_node(self.schema, level, node_id, tenant)
            if node is None:
                return OperationResult.fail(FailureKind.NOT_FOUND, f"{spec.label} not found")

            if node.name == cleaned:
                return OperationResult.ok(duration_ms=_elapsed_ms(start))

            siblings = await self.reader.children(level, node.parent_id, tenant)
            if self._is_duplicate(cleaned, siblings, exclude_id=node_id):
                return OperationResult.fail(
                    FailureKind.DUPLICATE, f"A {spec.name} with this name already exists"
                )

            await self.store.update(
                spec.collection,
                node_id,
                {"name": cleaned, "updatedAt": datetime.now(timezone.utc)},
            )
        except StoreError as e:
            return self._store_failure("rename", spec, e, tenant_id=tenant, node_id=node_id)

        self.cache.invalidate(self.reader.cache_key(level, node.parent_id, tenant))

        logger.info(
            "Node renamed",
            module=self.schema.name,
            level=level,
            node_id=node_id,
            tenant_id=tenant,
        )
        return OperationResult.ok(duration_ms=_elapsed_ms(start))

    async def cascade_delete(
        self,
        node_id: str,
        level: str,
        tenant: str,
        allow_linked_items: bool = True,
    ) -> OperationResult[UsageStats]:
        """Delete a node with every descendant and every linked item.

        Deleting a shared-level node (a trade) reaches into every registered
        module. All documents go in one atomic batch.

        Args:
            node_id: Node to delete
            level: Level of the node
            tenant: Owning tenant
            allow_linked_items: When False, refuse the delete if any item is linked

        Returns:
            OperationResult with the counts actually removed
        """
        start = time.time()
        spec = self.schema.level(level)

        try:
            plan = await self.traversal.collect(self.schema, level, node_id, tenant)
            if plan is None:
                return OperationResult.fail(FailureKind.NOT_FOUND, f"{spec.label} not found")

            if not allow_linked_items and plan.item_count:
                return OperationResult.fail(
                    FailureKind.CONFLICT,
                    f"Cannot delete {spec.name} '{plan.node.name}': "
                    f"{plan.item_count} linked item(s) still reference it",
                )

            await self.store.batch_delete(plan.refs())
        except StoreError as e:
            return self._store_failure("delete", spec, e, tenant_id=tenant, node_id=node_id)

        self.cache.invalidate_many(plan.cache_keys())
        if spec.shared:
            self.cache.invalidate_tenant(tenant)

        stats = plan.stats()
        logger.info(
            "Node cascade deleted",
            module=self.schema.name,
            level=level,
            node_id=node_id,
            tenant_id=tenant,
            descendants=stats.descendant_node_count,
            items=stats.linked_item_count,
        )
        return OperationResult.ok(stats, duration_ms=_elapsed_ms(start))
