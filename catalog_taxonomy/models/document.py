"""Document model - generic row of the taxonomy document store."""

from typing import Any

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from catalog_taxonomy.models.base import Base, TimestampMixin


class Document(Base, TimestampMixin):
    """One document of a named collection, owned by a tenant.

    Taxonomy nodes and inventory items share this table; the collection
    column plays the role of the hosted store's collection name and the
    JSONB payload holds every other field (name, parent id, item links).
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_collection_user", "collection", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    collection: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<Document(id='{self.id}', collection='{self.collection}')>"
