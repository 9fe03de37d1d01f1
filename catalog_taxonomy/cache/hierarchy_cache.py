"""Durable TTL cache of taxonomy sibling lists.

Entries are keyed by ``CacheKey(module, level, parent_id, tenant)`` and kept
in a SQLite file, so a restarted process reuses lists fetched within the
TTL window. Every tenant also has a version counter: bumping it turns all of
the tenant's entries into misses at once (used when a trade is deleted,
since that touches every module).
"""

import sqlite3
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from catalog_taxonomy.config import settings
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.schemas.taxonomy import TaxonomyRow

logger = get_logger(__name__)

_ROWS = TypeAdapter(list[TaxonomyRow])

# Root levels have no parent; stored under a sentinel so the primary key stays NOT NULL
_NO_PARENT = ""


@dataclass(frozen=True)
class CacheKey:
    """Address of one cached sibling list."""

    module: str
    level: str
    parent_id: str | None
    tenant: str


class HierarchyCache:
    """Read-through cache for sibling lists, persisted in SQLite."""

    def __init__(
        self,
        path: str | Path | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Open (or create) the cache file.

        Args:
            path: SQLite file path (defaults to settings.cache_path);
                  ":memory:" keeps the cache in-process only
            ttl_seconds: Entry lifetime (defaults to settings.cache_ttl_seconds)
            clock: Time source in epoch seconds
        """
        self.path = str(path or settings.cache_path)
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._init_schema()

        logger.info("HierarchyCache opened", path=self.path, ttl_seconds=self.ttl_seconds)

    def _init_schema(self) -> None:
        with self._lock:
            if self.path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS hierarchy_entries (
                    module TEXT NOT NULL,
                    level TEXT NOT NULL,
                    parent_id TEXT NOT NULL,
                    tenant TEXT NOT NULL,
                    tenant_version INTEGER NOT NULL,
                    stored_at REAL NOT NULL,
                    payload TEXT NOT NULL,
                    PRIMARY KEY (module, level, parent_id, tenant)
                );
                """
            )
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tenant_versions (
                    tenant TEXT PRIMARY KEY,
                    version INTEGER NOT NULL
                );
                """
            )
            self._conn.commit()

    @staticmethod
    def _params(key: CacheKey) -> tuple[str, str, str, str]:
        return (key.module, key.level, key.parent_id or _NO_PARENT, key.tenant)

    def _tenant_version(self, tenant: str) -> int:
        row = self._conn.execute(
            "SELECT version FROM tenant_versions WHERE tenant = ?", (tenant,)
        ).fetchone()
        return int(row[0]) if row else 0

    def get(self, key: CacheKey) -> list[TaxonomyRow] | None:
        """Cached rows for a key, or None on miss.

        Expired entries and entries written under an older tenant version
        are deleted and reported as misses.
        """
        with self._lock:
            row = self._conn.execute(
                """
                SELECT tenant_version, stored_at, payload FROM hierarchy_entries
                WHERE module = ? AND level = ? AND parent_id = ? AND tenant = ?
                """,
                self._params(key),
            ).fetchone()

            if row is None:
                self._misses += 1
                return None

            version, stored_at, payload = row
            expired = self._clock() - float(stored_at) > self.ttl_seconds
            stale = int(version) != self._tenant_version(key.tenant)
            if expired or stale:
                self._conn.execute(
                    """
                    DELETE FROM hierarchy_entries
                    WHERE module = ? AND level = ? AND parent_id = ? AND tenant = ?
                    """,
                    self._params(key),
                )
                self._conn.commit()
                self._misses += 1
                logger.debug("Cache entry dropped", key=key, expired=expired, stale=stale)
                return None

            self._hits += 1

        return _ROWS.validate_json(payload)

    def set(self, key: CacheKey, rows: list[TaxonomyRow]) -> None:
        """Store rows for a key, replacing any previous entry."""
        payload = _ROWS.dump_json(rows).decode("utf-8")
        with self._lock:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO hierarchy_entries
                    (module, level, parent_id, tenant, tenant_version, stored_at, payload)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (*self._params(key), self._tenant_version(key.tenant), self._clock(), payload),
            )
            self._conn.commit()

    def invalidate(self, key: CacheKey) -> None:
        """Drop one entry."""
        self.invalidate_many([key])

    def invalidate_many(self, keys: Iterable[CacheKey]) -> int:
        """Drop several entries in one transaction.

        Returns:
            Number of keys processed
        """
        params = [self._params(key) for key in keys]
        if not params:
            return 0
        with self._lock:
            self._conn.executemany(
                """
                DELETE FROM hierarchy_entries
                WHERE module = ? AND level = ? AND parent_id = ? AND tenant = ?
                """,
                params,
            )
            self._conn.commit()
        logger.debug("Cache entries invalidated", count=len(params))
        return len(params)

    def invalidate_tenant(self, tenant: str) -> int:
        """Bump the tenant version so every existing entry of the tenant misses.

        Returns:
            The tenant's new version
        """
        with self._lock:
            version = self._tenant_version(tenant) + 1
            self._conn.execute(
                "INSERT OR REPLACE INTO tenant_versions (tenant, version) VALUES (?, ?)",
                (tenant, version),
            )
            self._conn.execute(
                "DELETE FROM hierarchy_entries WHERE tenant = ? AND tenant_version < ?",
                (tenant, version),
            )
            self._conn.commit()
        logger.info("Tenant cache invalidated", tenant_id=tenant, version=version)
        return version

    def clear(self) -> None:
        """Drop every entry (tenant versions are kept)."""
        with self._lock:
            self._conn.execute("DELETE FROM hierarchy_entries")
            self._conn.commit()
            self._hits = 0
            self._misses = 0
        logger.info("Hierarchy cache cleared")

    def get_cache_info(self) -> dict[str, Any]:
        """Entry count and hit/miss counters."""
        with self._lock:
            (entries,) = self._conn.execute("SELECT COUNT(*) FROM hierarchy_entries").fetchone()
            return {
                "path": self.path,
                "entries": int(entries),
                "hits": self._hits,
                "misses": self._misses,
                "ttl_seconds": self.ttl_seconds,
            }

    def close(self) -> None:
        with self._lock:
            self._conn.close()
