"""Taxonomy schemas: rows, trees, usage stats and empty-leaf reports."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

if TYPE_CHECKING:
    from catalog_taxonomy.core.levels import LevelSpec

PATH_SEPARATOR = " > "


class TaxonomyRow(BaseModel):
    """One persisted taxonomy node, independent of its collection layout."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    level: str
    parent_id: str | None = None
    tenant_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], level: LevelSpec) -> TaxonomyRow:
        """Build a row from a store document of the given level."""
        return cls(
            id=doc["id"],
            name=doc.get("name", ""),
            level=level.name,
            parent_id=doc.get(level.parent_field) if level.parent_field else None,
            tenant_id=doc.get("userId", ""),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )


class TreeNode(BaseModel):
    """Node of an assembled taxonomy forest.

    ``children`` holds the next main-chain level; ``branches`` holds
    parallel levels keyed by level name (e.g. sizes under a trade).
    """

    id: str
    name: str
    level: str
    parent_id: str | None = None
    children: list[TreeNode] = Field(default_factory=list)
    branches: dict[str, list[TreeNode]] = Field(default_factory=dict)


class UsageStats(BaseModel):
    """What a cascade delete of one node removes."""

    node_id: str
    level: str
    name: str
    descendant_node_count: int = 0
    linked_item_count: int = 0
    descendants_by_level: dict[str, int] = Field(default_factory=dict)
    items_by_module: dict[str, int] = Field(default_factory=dict)
    affected_nodes: list[str] = Field(default_factory=list)


class PathSegment(BaseModel):
    """One ancestor on the way from the root to a node."""

    level: str
    id: str
    name: str


class EmptyNode(BaseModel):
    """A leaf node with no linked inventory items."""

    id: str
    name: str
    level: str
    path: list[PathSegment]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def path_label(self) -> str:
        return PATH_SEPARATOR.join(segment.name for segment in self.path)


class EmptyLeafReport(BaseModel):
    """Empty leaves of one module grouped by level, shallowest level first."""

    module: str
    buckets: dict[str, list[EmptyNode]]
    item_count: int = 0
    node_count: int = 0
    leaf_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_empty(self) -> int:
        return sum(len(nodes) for nodes in self.buckets.values())

    def bucket(self, level: str) -> list[EmptyNode]:
        """Empty nodes of a level (empty list for levels that were not scanned)."""
        return self.buckets.get(level, [])


class ScanProgress(BaseModel):
    """Progress event emitted by the empty-leaf scanner."""

    model_config = ConfigDict(frozen=True)

    current: int
    total: int = 100
    stage: str


class LevelInfo(BaseModel):
    """Public description of a level descriptor."""

    name: str
    collection: str
    parent: str | None
    parent_field: str | None
    item_field: str
    branch: bool


class ModuleInfo(BaseModel):
    """Public description of a module adapter."""

    name: str
    item_collection: str
    levels: list[LevelInfo]


class CreateNodeRequest(BaseModel):
    """Body of a node creation request."""

    name: str
    parent_id: str | None = None

    model_config = {"extra": "forbid"}


class RenameNodeRequest(BaseModel):
    """Body of a node rename request."""

    name: str

    model_config = {"extra": "forbid"}
