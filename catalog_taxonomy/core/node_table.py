"""Flat, level-indexed node table with a parent index.

Rows are stored once, keyed by ``(level, id)``; parent/child relations are
kept in an index instead of nested objects, so walks over arbitrary depth
are plain loops over the index.
"""

from collections.abc import Iterable, Iterator

from catalog_taxonomy.core.levels import ModuleSchema
from catalog_taxonomy.schemas.taxonomy import TaxonomyRow

NodeKey = tuple[str, str]


class NodeTable:
    """Taxonomy rows of one module, indexed by level and by parent."""

    def __init__(self, schema: ModuleSchema) -> None:
        self.schema = schema
        self._by_level: dict[str, dict[str, TaxonomyRow]] = {
            level.name: {} for level in schema.levels
        }
        self._children: dict[NodeKey, dict[str, list[TaxonomyRow]]] = {}

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._by_level.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        level, node_id = key
        return node_id in self._by_level.get(level, {})

    def add(self, row: TaxonomyRow) -> None:
        """Insert a row, indexing it under its parent key."""
        level = self.schema.level(row.level)
        self._by_level[level.name][row.id] = row
        if level.parent is not None and row.parent_id is not None:
            siblings = self._children.setdefault((level.parent, row.parent_id), {})
            siblings.setdefault(level.name, []).append(row)

    def add_all(self, rows: Iterable[TaxonomyRow]) -> None:
        for row in rows:
            self.add(row)

    def get(self, level: str, node_id: str) -> TaxonomyRow | None:
        return self._by_level.get(level, {}).get(node_id)

    def rows(self, level: str) -> list[TaxonomyRow]:
        return list(self._by_level.get(level, {}).values())

    def children(
        self,
        level: str,
        node_id: str,
        child_level: str | None = None,
    ) -> list[TaxonomyRow]:
        """Children of a node, optionally restricted to one child level."""
        by_level = self._children.get((level, node_id), {})
        if child_level is not None:
            return list(by_level.get(child_level, []))
        ordered: list[TaxonomyRow] = []
        for spec in self.schema.children_of(level):
            ordered.extend(by_level.get(spec.name, []))
        return ordered

    def has_children(self, level: str, node_id: str, child_level: str) -> bool:
        return bool(self._children.get((level, node_id), {}).get(child_level))

    def parent(self, row: TaxonomyRow) -> TaxonomyRow | None:
        spec = self.schema.level(row.level)
        if spec.parent is None or row.parent_id is None:
            return None
        return self.get(spec.parent, row.parent_id)

    def path(self, row: TaxonomyRow) -> list[TaxonomyRow] | None:
        """Rows from the root down to ``row`` inclusive.

        Returns None when the parent chain is broken before reaching the root.
        """
        chain = [row]
        current = row
        while not self.schema.level(current.level).is_root:
            parent = self.parent(current)
            if parent is None:
                return None
            chain.append(parent)
            current = parent
        chain.reverse()
        return chain

    def drop_orphans(self) -> int:
        """Remove rows whose parent is absent, shallowest level first.

        Removing a level's orphans before visiting the next level makes the
        removal transitive: descendants of an orphan become orphans too.

        Returns:
            Number of rows removed
        """
        removed = 0
        for spec in self.schema.levels:
            if spec.parent is None:
                continue
            rows = self._by_level[spec.name]
            orphans = [
                row for row in rows.values()
                if row.parent_id is None or row.parent_id not in self._by_level[spec.parent]
            ]
            for row in orphans:
                del rows[row.id]
                if row.parent_id is not None:
                    siblings = self._children.get((spec.parent, row.parent_id), {})
                    siblings.pop(spec.name, None)
            removed += len(orphans)
        return removed

    def descendants(self, level: str, node_id: str) -> Iterator[TaxonomyRow]:
        """Post-order walk below a node: every child is yielded before its parent.

        The starting node itself is not yielded.
        """
        stack: list[tuple[NodeKey, Iterator[TaxonomyRow]]] = [
            ((level, node_id), iter(self.children(level, node_id)))
        ]
        while stack:
            key, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                if stack:
                    row = self.get(*key)
                    if row is not None:
                        yield row
                continue
            stack.append(((child.level, child.id), iter(self.children(child.level, child.id))))
