"""Empty Leaf Scanner - finds leaf nodes no inventory item is linked to.

The scan is point-in-time: items and every main-chain level are loaded
straight from the store, bypassing the cache. Items are indexed once into a
set of id-path prefixes, so each leaf check is a single set lookup.
"""

import time
from collections.abc import Callable
from typing import Any

from catalog_taxonomy.core.levels import LevelSpec
from catalog_taxonomy.core.node_table import NodeTable
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.common import FailureKind, OperationResult
from catalog_taxonomy.schemas.taxonomy import EmptyLeafReport, EmptyNode, PathSegment, ScanProgress, TaxonomyRow
from catalog_taxonomy.services.reader import HierarchyReader
from catalog_taxonomy.store.base import StoreError

logger = get_logger(__name__)

ProgressObserver = Callable[[ScanProgress], None]

IdPath = tuple[str, ...]


class ScanCancelledError(Exception):
    """Raised inside a scan once its token has been cancelled."""


class CancellationToken:
    """Cooperative cancellation flag checked between scan steps."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ScanCancelledError("Scan cancelled")


class _Progress:
    """Clamps and de-duplicates progress events before they reach the observer."""

    def __init__(self, observer: ProgressObserver | None) -> None:
        self._observer = observer
        self._last: int | None = None

    def report(self, value: float, stage: str, force: bool = False) -> None:
        current = max(0, min(100, int(value)))
        if self._observer is None or (current == self._last and not force):
            return
        self._last = current
        self._observer(ScanProgress(current=current, stage=stage))


def index_item_paths(items: list[dict[str, Any]], chain: tuple[LevelSpec, ...]) -> set[IdPath]:
    """Every id-path prefix carried by the items.

    An item linked to ``trade > section > category`` contributes
    ``(trade,)``, ``(trade, section)`` and ``(trade, section, category)``.
    """
    index: set[IdPath] = set()
    for item in items:
        path: list[str] = []
        for level in chain:
            value = item.get(level.item_field)
            if not value:
                break
            path.append(str(value))
            index.add(tuple(path))
    return index


class EmptyLeafScanner:
    """Scans one module for leaves without linked items."""

    def __init__(self, reader: HierarchyReader) -> None:
        self.reader = reader
        self.schema = reader.schema

    def _leaves(self, table: NodeTable) -> list[TaxonomyRow]:
        leaves: list[TaxonomyRow] = []
        for level in self.schema.scan_levels:
            below = self.schema.next_in_chain(level.name)
            for row in table.rows(level.name):
                if below is None or not table.has_children(level.name, row.id, below.name):
                    leaves.append(row)
        return leaves

    async def scan(
        self,
        tenant: str,
        on_progress: ProgressObserver | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> OperationResult[EmptyLeafReport]:
        """Find every empty leaf of the module for a tenant.

        Args:
            tenant: Owning tenant
            on_progress: Called synchronously with each progress event
            cancel_token: Checked between levels and between leaf checks

        Returns:
            OperationResult with the report, or a cancelled / store failure
        """
        start = time.time()
        token = cancel_token or CancellationToken()
        progress = _Progress(on_progress)
        chain = self.schema.chain

        try:
            progress.report(0, "Loading items")
            items = await self.reader.store.query(self.schema.item_collection, {"userId": tenant})
            token.raise_if_cancelled()
            progress.report(20, "Loading taxonomy")

            table = NodeTable(self.schema)
            for loaded, level in enumerate(chain, start=1):
                token.raise_if_cancelled()
                table.add_all(await self.reader.load_level(level.name, tenant))
                progress.report(20 + 40 * loaded / len(chain), f"Loaded {level.name} level")

            orphans = table.drop_orphans()
            index = index_item_paths(items, chain)
            leaves = self._leaves(table)

            buckets: dict[str, list[EmptyNode]] = {level.name: [] for level in self.schema.scan_levels}
            progress.report(60, "Checking leaves")
            for checked, row in enumerate(leaves, start=1):
                token.raise_if_cancelled()
                path = table.path(row)
                if path is not None and tuple(r.id for r in path) not in index:
                    buckets[row.level].append(
                        EmptyNode(
                            id=row.id,
                            name=row.name,
                            level=row.level,
                            path=[PathSegment(level=r.level, id=r.id, name=r.name) for r in path],
                        )
                    )
                progress.report(60 + 40 * checked / len(leaves), "Checking leaves")
        except ScanCancelledError:
            logger.info("Empty leaf scan cancelled", module=self.schema.name, tenant_id=tenant)
            return OperationResult.fail(FailureKind.CANCELLED, "Scan cancelled")
        except StoreError as e:
            logger.error(
                "Empty leaf scan failed",
                module=self.schema.name,
                tenant_id=tenant,
                error=str(e),
                exc_info=True,
            )
            return OperationResult.fail(FailureKind.STORE, "Failed to scan for empty leaves")

        for nodes in buckets.values():
            nodes.sort(key=lambda node: node.path_label)

        report = EmptyLeafReport(
            module=self.schema.name,
            buckets=buckets,
            item_count=len(items),
            node_count=len(table),
            leaf_count=len(leaves),
        )
        progress.report(100, "Complete", force=True)

        logger.info(
            "Empty leaf scan complete",
            module=self.schema.name,
            tenant_id=tenant,
            items=report.item_count,
            nodes=report.node_count,
            leaves=report.leaf_count,
            empty=report.total_empty,
            orphans=orphans,
            duration_ms=int((time.time() - start) * 1000),
        )
        return OperationResult.ok(report, duration_ms=int((time.time() - start) * 1000))
