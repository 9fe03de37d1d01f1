"""Module adapters - level lists and item links of each catalog module.

Built-in modules mirror the catalogs of the back office. Extra modules can be
declared in a YAML file (``settings.modules_config_path``)::

    modules:
      vehicles:
        item_collection: vehicle_items
        levels:
          - {name: section, collection: vehicleSections, parent: trade}
          - {name: category, collection: vehicleCategories, parent: section}

The shared trade level is always prepended; YAML modules only list the
levels below it.
"""

from pathlib import Path

import yaml

from catalog_taxonomy.config import settings
from catalog_taxonomy.core.levels import TRADE_LEVEL, LevelSpec, ModuleSchema
from catalog_taxonomy.infra.logging import get_logger

logger = get_logger(__name__)


def _level(name: str, collection: str, parent: str, *, branch: bool = False) -> LevelSpec:
    return LevelSpec(
        name=name,
        collection=collection,
        parent=parent,
        parent_field=f"{parent}Id",
        branch=branch,
    )


PRODUCTS = ModuleSchema(
    name="products",
    levels=(
        TRADE_LEVEL,
        _level("section", "productSections", "trade"),
        _level("category", "productCategories", "section"),
        _level("subcategory", "productSubcategories", "category"),
        _level("type", "productTypes", "subcategory"),
        _level("size", "productSizes", "trade", branch=True),
    ),
    item_collection="products",
)

LABOR = ModuleSchema(
    name="labor",
    levels=(
        TRADE_LEVEL,
        _level("section", "laborSections", "trade"),
        _level("category", "laborCategories", "section"),
    ),
    item_collection="labor_items",
)

EQUIPMENT = ModuleSchema(
    name="equipment",
    levels=(
        TRADE_LEVEL,
        _level("section", "equipmentSections", "trade"),
        _level("category", "equipmentCategories", "section"),
        _level("subcategory", "equipmentSubcategories", "category"),
    ),
    item_collection="equipment_items",
)

TOOLS = ModuleSchema(
    name="tools",
    levels=(
        TRADE_LEVEL,
        _level("section", "toolSections", "trade"),
        _level("category", "toolCategories", "section"),
        _level("subcategory", "toolSubcategories", "category"),
    ),
    item_collection="tool_items",
)

BUILTIN_MODULES: tuple[ModuleSchema, ...] = (PRODUCTS, LABOR, EQUIPMENT, TOOLS)


class ModuleRegistry:
    """Registry of catalog modules sharing the trade root."""

    def __init__(self, modules: tuple[ModuleSchema, ...] = BUILTIN_MODULES) -> None:
        self._modules: dict[str, ModuleSchema] = {}
        for module in modules:
            self.register(module)

    def register(self, module: ModuleSchema) -> None:
        """Register a module.

        Raises:
            ValueError: If the name is taken, the root is not the shared trade
                level, or a collection is already owned by another module
        """
        if module.name in self._modules:
            raise ValueError(f"Module '{module.name}' already registered")
        if module.root != TRADE_LEVEL:
            raise ValueError(f"Module '{module.name}' must be rooted at the shared trade level")

        owned = {
            level.collection
            for existing in self._modules.values()
            for level in existing.levels
            if not level.shared
        }
        owned |= {existing.item_collection for existing in self._modules.values()}
        for level in module.levels:
            if not level.shared and level.collection in owned:
                raise ValueError(
                    f"Collection '{level.collection}' already belongs to another module"
                )
        if module.item_collection in owned or module.item_collection in {
            level.collection for level in module.levels
        }:
            raise ValueError(
                f"Item collection '{module.item_collection}' is already in use"
            )

        self._modules[module.name] = module
        logger.debug("Module registered", module=module.name, levels=len(module.levels))

    def get(self, name: str) -> ModuleSchema:
        """Get a module by name.

        Raises:
            KeyError: If module not registered
        """
        if name not in self._modules:
            raise KeyError(f"Module not registered: {name}")
        return self._modules[name]

    def all(self) -> tuple[ModuleSchema, ...]:
        return tuple(self._modules.values())

    def available(self) -> list[str]:
        return list(self._modules.keys())

    def load_yaml(self, yaml_content: str) -> list[str]:
        """Register every module declared in a YAML document.

        Returns:
            Names of the modules registered
        """
        data = yaml.safe_load(yaml_content) or {}
        registered: list[str] = []

        for name, module_data in (data.get("modules") or {}).items():
            levels = [LevelSpec.from_dict(level) for level in module_data.get("levels", [])]
            module = ModuleSchema(
                name=name,
                levels=(TRADE_LEVEL, *levels),
                item_collection=module_data["item_collection"],
            )
            self.register(module)
            registered.append(name)

        logger.info("Modules loaded from YAML", modules=registered)
        return registered

    def load_file(self, path: str | Path) -> list[str]:
        """Register modules declared in a YAML file."""
        return self.load_yaml(Path(path).read_text(encoding="utf-8"))


_module_registry: ModuleRegistry | None = None


def get_module_registry() -> ModuleRegistry:
    """Get the global module registry (built-ins plus configured YAML modules)."""
    global _module_registry

    if _module_registry is None:
        registry = ModuleRegistry()
        if settings.modules_config_path:
            registry.load_file(settings.modules_config_path)
        _module_registry = registry
        logger.info("Module registry initialized", modules=registry.available())

    return _module_registry
