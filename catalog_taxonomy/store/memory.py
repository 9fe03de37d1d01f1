"""In-process document store for local development and tests."""

from collections import Counter
from collections.abc import Mapping, Sequence
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.store.base import DocumentNotFoundError, DocumentRef

logger = get_logger(__name__)


class MemoryTaxonomyStore:
    """Dict-backed store with the same semantics as the hosted one.

    ``createdAt`` is stamped on create and ``updatedAt`` on update, standing in
    for server timestamps. Call counts are kept per operation.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: Counter[str] = Counter()

    async def query(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        self.calls["query"] += 1
        docs = [
            deepcopy(doc)
            for doc in self._collections.get(collection, {}).values()
            if all(doc.get(field) == value for field, value in filters.items())
        ]
        if order_by:
            docs.sort(key=lambda doc: (doc.get(order_by) is None, doc.get(order_by)))
        return docs

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        self.calls["get"] += 1
        doc = self._collections.get(collection, {}).get(doc_id)
        return deepcopy(doc) if doc is not None else None

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        self.calls["create"] += 1
        doc_id = uuid4().hex
        doc = {**deepcopy(dict(fields)), "id": doc_id}
        doc.setdefault("createdAt", datetime.now(timezone.utc))
        self._collections.setdefault(collection, {})[doc_id] = doc
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        self.calls["update"] += 1
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
        doc.update(deepcopy(dict(fields)))
        doc["id"] = doc_id
        if "updatedAt" not in fields:
            doc["updatedAt"] = datetime.now(timezone.utc)

    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        self.calls["batch_delete"] += 1
        # Deleting a missing document is a no-op, as in the hosted store
        for ref in refs:
            self._collections.get(ref.collection, {}).pop(ref.id, None)
        logger.debug("Batch delete applied", documents=len(refs))

    def count(self, collection: str) -> int:
        """Number of documents currently stored in a collection."""
        return len(self._collections.get(collection, {}))

    def reset_calls(self) -> None:
        self.calls.clear()
