"""Tests for taxonomy schemas."""

import pytest
from pydantic import ValidationError

from catalog_taxonomy.core.modules import PRODUCTS
from catalog_taxonomy.schemas.taxonomy import (
    CreateNodeRequest,
    EmptyLeafReport,
    EmptyNode,
    PathSegment,
    TaxonomyRow,
)


class TestTaxonomyRow:
    """Tests for TaxonomyRow."""

    def test_from_document(self):
        doc = {"id": "s1", "name": "Pipes", "tradeId": "t1", "userId": "tenant-001"}

        row = TaxonomyRow.from_document(doc, PRODUCTS.level("section"))

        assert row.level == "section"
        assert row.parent_id == "t1"
        assert row.tenant_id == "tenant-001"

    def test_root_document_has_no_parent(self):
        row = TaxonomyRow.from_document({"id": "t1", "name": "Plumbing", "userId": "u"}, PRODUCTS.root)

        assert row.parent_id is None

    def test_frozen(self):
        row = TaxonomyRow(id="t1", name="Plumbing", level="trade", tenant_id="u")

        with pytest.raises(ValidationError):
            row.name = "Other"


class TestEmptyLeafReport:
    """Tests for EmptyLeafReport."""

    def test_path_label_and_totals(self):
        node = EmptyNode(
            id="s1",
            name="Valves",
            level="section",
            path=[
                PathSegment(level="trade", id="t1", name="Plumbing"),
                PathSegment(level="section", id="s1", name="Valves"),
            ],
        )
        report = EmptyLeafReport(module="products", buckets={"section": [node], "category": []})

        assert node.path_label == "Plumbing > Valves"
        assert report.total_empty == 1
        assert report.bucket("type") == []
        assert report.model_dump()["total_empty"] == 1


class TestRequests:
    """Tests for request bodies."""

    def test_create_request_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            CreateNodeRequest(name="Pipes", parentId="t1")
