"""Tests for base model infrastructure."""

from sqlalchemy.orm import DeclarativeBase

from catalog_taxonomy.models.base import NAMING_CONVENTION, Base, TimestampMixin


def test_base_is_declarative_base():
    """Base should be a SQLAlchemy DeclarativeBase."""
    assert issubclass(Base, DeclarativeBase)


def test_metadata_uses_naming_convention():
    """Constraint names come from the shared naming convention."""
    assert Base.metadata.naming_convention["pk"] == NAMING_CONVENTION["pk"]


def test_timestamp_mixin_columns():
    """TimestampMixin should provide created_at and updated_at columns."""
    assert hasattr(TimestampMixin, "created_at")
    assert hasattr(TimestampMixin, "updated_at")


def test_documents_table_registered():
    """The documents table is part of the shared metadata."""
    import catalog_taxonomy.models  # noqa: F401

    assert "documents" in Base.metadata.tables
