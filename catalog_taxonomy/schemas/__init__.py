"""Pydantic schemas for taxonomy results and API payloads."""

from catalog_taxonomy.schemas.common import (
    ErrorResponse,
    FailureKind,
    HealthResponse,
    OperationResult,
)
from catalog_taxonomy.schemas.taxonomy import (
    CreateNodeRequest,
    EmptyLeafReport,
    EmptyNode,
    LevelInfo,
    ModuleInfo,
    PathSegment,
    RenameNodeRequest,
    ScanProgress,
    TaxonomyRow,
    TreeNode,
    UsageStats,
)

__all__ = [
    "CreateNodeRequest",
    "EmptyLeafReport",
    "EmptyNode",
    "ErrorResponse",
    "FailureKind",
    "HealthResponse",
    "LevelInfo",
    "ModuleInfo",
    "OperationResult",
    "PathSegment",
    "RenameNodeRequest",
    "ScanProgress",
    "TaxonomyRow",
    "TreeNode",
    "UsageStats",
]
