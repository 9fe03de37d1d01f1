"""TaxonomyStore contract.

The store is a document store: named collections of dict documents with
store-assigned ids, equality-filtered queries and atomic batch deletes. It
offers no transactional read-modify-write; callers must live with that.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


class StoreError(Exception):
    """Raised when the backing store cannot complete an operation."""


class DocumentNotFoundError(StoreError):
    """Raised when an update targets a document that does not exist."""


@dataclass(frozen=True)
class DocumentRef:
    """Address of one document."""

    collection: str
    id: str


@runtime_checkable
class TaxonomyStore(Protocol):
    """Persistence collaborator of the hierarchy engine.

    Documents are returned as plain dicts that always include ``id``.
    """

    async def query(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """Documents of a collection whose fields equal every filter value."""
        ...

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """One document by id, or None."""
        ...

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        """Insert a document and return its new id."""
        ...

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """Merge fields into an existing document."""
        ...

    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        """Delete every referenced document, all or nothing."""
        ...
