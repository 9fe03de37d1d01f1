"""End-to-end taxonomy workflows over the in-memory store."""

import pytest

from catalog_taxonomy.schemas.common import FailureKind
from catalog_taxonomy.services.engine import TaxonomyEngine, TaxonomyService
from catalog_taxonomy.store.memory import MemoryTaxonomyStore

TENANT = "tenant-001"


async def _plumbing_with_item(products: TaxonomyService, seed) -> dict[str, str]:
    trade = (await products.mutations.create("Plumbing", "trade", None, TENANT)).data
    section = (await products.mutations.create("Pipes", "section", trade, TENANT)).data
    category = (await products.mutations.create("Copper", "category", section, TENANT)).data
    item = await seed("products", name="Copper pipe 10ft", tradeId=trade, sectionId=section, categoryId=category)
    return {"trade": trade, "section": section, "category": category, "item": item}


class TestWorkflows:
    """Create, inspect, delete and scan a small taxonomy."""

    @pytest.mark.asyncio
    async def test_duplicate_section_name_in_other_case(self, products: TaxonomyService):
        trade = await products.mutations.create("Plumbing", "trade", None, TENANT)
        first = await products.mutations.create("Pipes", "section", trade.data, TENANT)

        second = await products.mutations.create("pipes", "section", trade.data, TENANT)

        assert first.success
        assert not second.success
        assert second.error_type == FailureKind.DUPLICATE

    @pytest.mark.asyncio
    async def test_usage_stats_of_three_level_tree(self, products: TaxonomyService, seed):
        ids = await _plumbing_with_item(products, seed)

        result = await products.usage.get_usage_stats(ids["trade"], "trade", TENANT)

        assert result.data.descendant_node_count == 2
        assert result.data.linked_item_count == 1

    @pytest.mark.asyncio
    async def test_everything_gone_after_trade_delete(
        self, products: TaxonomyService, seed, store: MemoryTaxonomyStore
    ):
        ids = await _plumbing_with_item(products, seed)

        deleted = await products.mutations.cascade_delete(ids["trade"], "trade", TENANT)

        assert deleted.success
        for level in ("section", "category"):
            usage = await products.usage.get_usage_stats(ids[level], level, TENANT)
            assert usage.error_type == FailureKind.NOT_FOUND
        assert await products.reader.children("section", ids["trade"], TENANT) == []
        assert await products.reader.children("category", ids["section"], TENANT) == []
        assert await store.get("products", ids["item"]) is None

    @pytest.mark.asyncio
    async def test_scan_reports_unused_section_with_path(self, products: TaxonomyService, seed):
        ids = await _plumbing_with_item(products, seed)
        bare = (await products.mutations.create("Valves", "section", ids["trade"], TENANT)).data

        report = (await products.scanner.scan(TENANT)).data

        sections = report.bucket("section")
        assert [n.id for n in sections] == [bare]
        assert sections[0].path_label == "Plumbing > Valves"
        assert report.bucket("category") == []

    @pytest.mark.asyncio
    async def test_cached_reads_and_invalidation(
        self, engine: TaxonomyEngine, store: MemoryTaxonomyStore
    ):
        products = engine.module("products")
        trade = (await products.mutations.create("Plumbing", "trade", None, TENANT)).data
        await products.mutations.create("Pipes", "section", trade, TENANT)
        store.reset_calls()

        first = await products.reader.children("section", trade, TENANT)
        second = await products.reader.children("section", trade, TENANT)

        assert first == second
        assert store.calls["query"] == 1

        await products.mutations.create("Valves", "section", trade, TENANT)
        store.reset_calls()

        third = await products.reader.children("section", trade, TENANT)

        assert [r.name for r in third] == ["Pipes", "Valves"]
        assert store.calls["query"] == 1

    @pytest.mark.asyncio
    async def test_sibling_names_stay_unique(self, products: TaxonomyService):
        trade = (await products.mutations.create("Plumbing", "trade", None, TENANT)).data
        names = ["Pipes", "PIPES", "Valves", "valves ", "Fittings", "Drains"]
        created = [await products.mutations.create(n, "section", trade, TENANT) for n in names]
        valves = next(r.data for r, n in zip(created, names) if n == "Valves")
        await products.mutations.rename(valves, "section", "fittings", TENANT)
        await products.mutations.rename(valves, "section", "Traps", TENANT)

        rows = await products.reader.children("section", trade, TENANT, use_cache=False)
        folded = [r.name.casefold() for r in rows]

        assert len(folded) == len(set(folded))
        assert sorted(folded) == ["drains", "fittings", "pipes", "traps"]
