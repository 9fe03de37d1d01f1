"""Level descriptors and module schemas.

A module (Products, Labor, ...) is described as an ordered tuple of
``LevelSpec`` entries. Every hierarchy algorithm in the services package is
written against these descriptors, never against a concrete module.
"""

from dataclasses import dataclass, field
from typing import Any

SHARED_NAMESPACE = "shared"


@dataclass(frozen=True)
class LevelSpec:
    """One taxonomy level of a module.

    Attributes:
        name: Level identifier (trade, section, ...)
        collection: Store collection holding the level's rows
        parent: Name of the parent level (None for the root)
        parent_field: Row field holding the parent id (None for the root)
        item_field: Inventory item field holding the linked node id
        branch: True for levels hanging off their parent outside the main chain
        shared: True when every module reads the same collection for this level
    """

    name: str
    collection: str
    parent: str | None = None
    parent_field: str | None = None
    item_field: str = ""
    branch: bool = False
    shared: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.collection:
            raise ValueError("Level name and collection are required")
        if (self.parent is None) != (self.parent_field is None):
            raise ValueError(
                f"Level '{self.name}' needs both parent and parent_field, or neither"
            )
        if not self.item_field:
            object.__setattr__(self, "item_field", f"{self.name}Id")

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LevelSpec":
        """Create from dictionary (YAML module definitions)."""
        parent = data.get("parent")
        return cls(
            name=data["name"],
            collection=data["collection"],
            parent=parent,
            parent_field=data.get("parent_field", f"{parent}Id" if parent else None),
            item_field=data.get("item_field", ""),
            branch=bool(data.get("branch", False)),
            shared=bool(data.get("shared", False)),
        )


# One set of trades serves every module
TRADE_LEVEL = LevelSpec(
    name="trade",
    collection="productTrades",
    item_field="tradeId",
    shared=True,
)


@dataclass(frozen=True)
class ModuleSchema:
    """Ordered level list of one catalog module.

    The first level is the root. Levels flagged as ``branch`` hang off their
    parent next to the main chain and are skipped by the empty-leaf scan.
    """

    name: str
    levels: tuple[LevelSpec, ...]
    item_collection: str
    _by_name: dict[str, LevelSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.levels:
            raise ValueError(f"Module '{self.name}' has no levels")
        if not self.levels[0].is_root:
            raise ValueError(f"First level of module '{self.name}' must be the root")

        by_name: dict[str, LevelSpec] = {}
        for level in self.levels:
            if level.name in by_name:
                raise ValueError(f"Duplicate level '{level.name}' in module '{self.name}'")
            if level.parent is not None and level.parent not in by_name:
                raise ValueError(
                    f"Level '{level.name}' references unknown or later parent '{level.parent}'"
                )
            by_name[level.name] = level
        object.__setattr__(self, "_by_name", by_name)

    @property
    def root(self) -> LevelSpec:
        return self.levels[0]

    @property
    def chain(self) -> tuple[LevelSpec, ...]:
        """Main-chain levels in hierarchy order (branches excluded)."""
        return tuple(level for level in self.levels if not level.branch)

    @property
    def scan_levels(self) -> tuple[LevelSpec, ...]:
        """Levels reported by the empty-leaf scan: the main chain below the root."""
        return self.chain[1:]

    def level(self, name: str) -> LevelSpec:
        """Get a level by name.

        Raises:
            KeyError: If the module has no such level
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Module '{self.name}' has no level '{name}'") from None

    def has_level(self, name: str) -> bool:
        return name in self._by_name

    def children_of(self, name: str) -> tuple[LevelSpec, ...]:
        """Levels whose parent is the named level (main chain first)."""
        return tuple(level for level in self.levels if level.parent == name)

    def next_in_chain(self, name: str) -> LevelSpec | None:
        """Next main-chain level below the named level, if any."""
        for level in self.children_of(name):
            if not level.branch:
                return level
        return None

    def ancestors(self, name: str) -> tuple[LevelSpec, ...]:
        """Levels from the root down to (excluding) the named level."""
        chain: list[LevelSpec] = []
        current = self.level(name)
        while current.parent is not None:
            current = self.level(current.parent)
            chain.append(current)
        return tuple(reversed(chain))

    def cache_namespace(self, level: LevelSpec) -> str:
        """Cache namespace of a level's sibling lists."""
        return SHARED_NAMESPACE if level.shared else self.name
