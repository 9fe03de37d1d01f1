"""Core taxonomy building blocks: level descriptors, module adapters, node table."""

from catalog_taxonomy.core.levels import SHARED_NAMESPACE, TRADE_LEVEL, LevelSpec, ModuleSchema
from catalog_taxonomy.core.modules import (
    BUILTIN_MODULES,
    EQUIPMENT,
    LABOR,
    PRODUCTS,
    TOOLS,
    ModuleRegistry,
    get_module_registry,
)
from catalog_taxonomy.core.node_table import NodeTable

__all__ = [
    "BUILTIN_MODULES",
    "EQUIPMENT",
    "LABOR",
    "PRODUCTS",
    "SHARED_NAMESPACE",
    "TOOLS",
    "TRADE_LEVEL",
    "LevelSpec",
    "ModuleRegistry",
    "ModuleSchema",
    "NodeTable",
    "get_module_registry",
]
