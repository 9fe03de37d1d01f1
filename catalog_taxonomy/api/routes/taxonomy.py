"""Taxonomy endpoints.

One set of routes serves every registered module; the module and level come
from the path and are resolved against the module registry.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from catalog_taxonomy.api.deps import Engine, ModuleServices, Tenant
from catalog_taxonomy.core.levels import ModuleSchema
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.common import FailureKind, OperationResult
from catalog_taxonomy.schemas.taxonomy import (
    CreateNodeRequest,
    LevelInfo,
    ModuleInfo,
    RenameNodeRequest,
    ScanProgress,
    TaxonomyRow,
    TreeNode,
)
from catalog_taxonomy.services.engine import TaxonomyService
from catalog_taxonomy.store.base import StoreError

router = APIRouter()
logger = get_logger(__name__)

FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_CONTENT,
    FailureKind.DUPLICATE: status.HTTP_409_CONFLICT,
    FailureKind.CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.STORE: status.HTTP_503_SERVICE_UNAVAILABLE,
    FailureKind.CANCELLED: status.HTTP_409_CONFLICT,
}


def _module_info(schema: ModuleSchema) -> ModuleInfo:
    return ModuleInfo(
        name=schema.name,
        item_collection=schema.item_collection,
        levels=[
            LevelInfo(
                name=level.name,
                collection=level.collection,
                parent=level.parent,
                parent_field=level.parent_field,
                item_field=level.item_field,
                branch=level.branch,
            )
            for level in schema.levels
        ],
    )


def _require_level(schema: ModuleSchema, level: str) -> None:
    if not schema.has_level(level):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Module '{schema.name}' has no level '{level}'",
        )


def _respond(result: OperationResult[Any], success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Serialize an OperationResult with the status code matching its outcome."""
    if result.success:
        code = success_status
    else:
        code = FAILURE_STATUS.get(result.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=code, content=result.model_dump(mode="json"))


def _read_failure(services: TaxonomyService, tenant_id: str, error: StoreError, **context: Any) -> JSONResponse:
    logger.error(
        "Taxonomy read failed",
        module=services.schema.name,
        tenant_id=tenant_id,
        error=str(error),
        exc_info=True,
        **context,
    )
    return _respond(OperationResult.fail(FailureKind.STORE, "Failed to load taxonomy"))


@router.get("/modules", response_model=list[ModuleInfo])
async def list_modules(engine: Engine) -> list[ModuleInfo]:
    """Registered modules and their level descriptors."""
    return [_module_info(schema) for schema in engine.registry.all()]


@router.get("/{module}/tree", response_model=list[TreeNode])
async def get_tree(services: ModuleServices, tenant_id: Tenant) -> list[TreeNode] | JSONResponse:
    """Whole taxonomy forest of the module."""
    try:
        return await services.reader.build_tree(tenant_id)
    except StoreError as e:
        return _read_failure(services, tenant_id, e)


@router.post("/{module}/scan")
async def scan_empty_leaves(services: ModuleServices, tenant_id: Tenant) -> JSONResponse:
    """Run the empty-leaf scan for the module."""

    def on_progress(event: ScanProgress) -> None:
        logger.debug(
            "Scan progress",
            module=services.schema.name,
            current=event.current,
            stage=event.stage,
        )

    result = await services.scanner.scan(tenant_id, on_progress=on_progress)
    return _respond(result)


@router.get("/{module}/{level}", response_model=list[TaxonomyRow])
async def list_children(
    level: str,
    services: ModuleServices,
    tenant_id: Tenant,
    parent_id: str | None = Query(default=None, description="Parent node id"),
) -> list[TaxonomyRow] | JSONResponse:
    """Sibling list of a level under one parent (root level: no parent)."""
    _require_level(services.schema, level)
    spec = services.schema.level(level)
    if not spec.is_root and not parent_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"parent_id is required for level '{level}'",
        )
    try:
        return await services.reader.children(level, parent_id, tenant_id)
    except StoreError as e:
        return _read_failure(services, tenant_id, e, level=level, parent_id=parent_id)


@router.post("/{module}/{level}")
async def create_node(
    level: str,
    request: CreateNodeRequest,
    services: ModuleServices,
    tenant_id: Tenant,
) -> JSONResponse:
    """Create a node; responds with the new id."""
    _require_level(services.schema, level)
    result = await services.mutations.create(request.name, level, request.parent_id, tenant_id)
    return _respond(result, success_status=status.HTTP_201_CREATED)


@router.patch("/{module}/{level}/{node_id}")
async def rename_node(
    level: str,
    node_id: str,
    request: RenameNodeRequest,
    services: ModuleServices,
    tenant_id: Tenant,
) -> JSONResponse:
    """Rename a node."""
    _require_level(services.schema, level)
    result = await services.mutations.rename(node_id, level, request.name, tenant_id)
    return _respond(result)


@router.get("/{module}/{level}/{node_id}/usage")
async def get_usage(
    level: str,
    node_id: str,
    services: ModuleServices,
    tenant_id: Tenant,
) -> JSONResponse:
    """What deleting the node would remove."""
    _require_level(services.schema, level)
    result = await services.usage.get_usage_stats(node_id, level, tenant_id)
    return _respond(result)


@router.delete("/{module}/{level}/{node_id}")
async def delete_node(
    level: str,
    node_id: str,
    services: ModuleServices,
    tenant_id: Tenant,
    allow_linked_items: bool = Query(default=True, description="Also delete linked items"),
) -> JSONResponse:
    """Cascade delete a node with its descendants and linked items."""
    _require_level(services.schema, level)
    result = await services.mutations.cascade_delete(
        node_id,
        level,
        tenant_id,
        allow_linked_items=allow_linked_items,
    )
    return _respond(result)
