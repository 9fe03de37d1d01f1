"""SQLAlchemy models backing the SQL document store."""

from catalog_taxonomy.models.base import Base, TimestampMixin
from catalog_taxonomy.models.document import Document

__all__ = [
    "Base",
    "TimestampMixin",
    "Document",
]
