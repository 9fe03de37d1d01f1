"""Document store emulated on PostgreSQL through async SQLAlchemy.

Every collection lives in the single ``documents`` table; equality filters on
document fields become JSONB lookups. ``userId`` is promoted to an indexed
column since every taxonomy query is tenant-scoped.
"""

from collections.abc import Callable, Mapping, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any
from uuid import uuid4

from sqlalchemy import ColumnElement, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_taxonomy.infra.database import get_db_session
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.models.document import Document
from catalog_taxonomy.store.base import DocumentNotFoundError, DocumentRef, StoreError

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

# Fields stored as real columns rather than inside the JSONB payload
_COLUMN_FIELDS = {"id", "userId", "createdAt", "updatedAt"}


def _field_clause(field: str, value: Any) -> ColumnElement[bool]:
    if field == "id":
        return Document.id == str(value)
    if field == "userId":
        return Document.user_id == str(value)
    if isinstance(value, bool):
        return Document.data[field].as_boolean() == value
    if isinstance(value, (int, float)):
        return Document.data[field].as_float() == value
    return Document.data[field].as_string() == str(value)


def _to_dict(doc: Document) -> dict[str, Any]:
    return {
        **doc.data,
        "id": doc.id,
        "userId": doc.user_id,
        "createdAt": doc.created_at,
        "updatedAt": doc.updated_at,
    }


class SqlTaxonomyStore:
    """TaxonomyStore backed by the ``documents`` table."""

    def __init__(self, session_factory: SessionFactory = get_db_session) -> None:
        self._session_factory = session_factory

    async def query(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        stmt = select(Document).where(Document.collection == collection)
        for field, value in filters.items():
            stmt = stmt.where(_field_clause(field, value))
        if order_by == "createdAt":
            stmt = stmt.order_by(Document.created_at)
        elif order_by:
            stmt = stmt.order_by(Document.data[order_by].as_string())

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [_to_dict(doc) for doc in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Query on '{collection}' failed: {e}") from e

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        stmt = select(Document).where(
            Document.collection == collection,
            Document.id == doc_id,
        )
        try:
            async with self._session_factory() as session:
                doc = (await session.execute(stmt)).scalar_one_or_none()
                return _to_dict(doc) if doc is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"Read of '{collection}/{doc_id}' failed: {e}") from e

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        doc_id = str(uuid4())
        data = {k: v for k, v in fields.items() if k not in _COLUMN_FIELDS}
        try:
            async with self._session_factory() as session:
                session.add(
                    Document(
                        id=doc_id,
                        collection=collection,
                        user_id=str(fields.get("userId", "")),
                        data=data,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Create in '{collection}' failed: {e}") from e

        logger.debug("Document created", collection=collection, doc_id=doc_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        changes = {k: v for k, v in fields.items() if k not in _COLUMN_FIELDS}
        try:
            async with self._session_factory() as session:
                doc = await session.get(Document, doc_id)
                if doc is None or doc.collection != collection:
                    raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
                # Reassign so SQLAlchemy sees the JSONB change
                doc.data = {**doc.data, **changes}
        except SQLAlchemyError as e:
            raise StoreError(f"Update of '{collection}/{doc_id}' failed: {e}") from e

    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        if not refs:
            return

        by_collection: dict[str, list[str]] = {}
        for ref in refs:
            by_collection.setdefault(ref.collection, []).append(ref.id)

        try:
            # One session == one transaction: every statement commits or none does
            async with self._session_factory() as session:
                for collection, ids in by_collection.items():
                    await session.execute(
                        delete(Document).where(
                            Document.collection == collection,
                            Document.id.in_(ids),
                        )
                    )
        except SQLAlchemyError as e:
            raise StoreError(f"Batch delete of {len(refs)} documents failed: {e}") from e

        logger.debug(
            "Batch delete committed",
            documents=len(refs),
            collections=list(by_collection.keys()),
        )
