"""Usage Stats Service - what a cascade delete would remove."""

import time

from catalog_taxonomy.core.levels import ModuleSchema
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.common import FailureKind, OperationResult
from catalog_taxonomy.schemas.taxonomy import UsageStats
from catalog_taxonomy.services.traversal import HierarchyTraversal
from catalog_taxonomy.store.base import StoreError

logger = get_logger(__name__)


class UsageStatsService:
    """Counts descendants and linked items of a node, read-only."""

    def __init__(self, traversal: HierarchyTraversal, schema: ModuleSchema) -> None:
        self.traversal = traversal
        self.schema = schema

    async def get_usage_stats(
        self,
        node_id: str,
        level: str,
        tenant: str,
    ) -> OperationResult[UsageStats]:
        """Compute usage stats for a node.

        Args:
            node_id: Node to inspect
            level: Level of the node
            tenant: Owning tenant

        Returns:
            OperationResult with UsageStats, or a not_found / store failure
        """
        start = time.time()
        spec = self.schema.level(level)

        try:
            plan = await self.traversal.collect(self.schema, level, node_id, tenant)
        except StoreError as e:
            logger.error(
                "Usage stats failed",
                module=self.schema.name,
                level=level,
                node_id=node_id,
                tenant_id=tenant,
                error=str(e),
                exc_info=True,
            )
            return OperationResult.fail(FailureKind.STORE, f"Failed to load usage for {spec.label.lower()}")

        if plan is None:
            return OperationResult.fail(FailureKind.NOT_FOUND, f"{spec.label} not found")

        return OperationResult.ok(plan.stats(), duration_ms=int((time.time() - start) * 1000))
