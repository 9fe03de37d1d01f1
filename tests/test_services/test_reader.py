"""Tests for HierarchyReader."""

import pytest

from catalog_taxonomy.services.engine import TaxonomyService
from catalog_taxonomy.store.memory import MemoryTaxonomyStore

TENANT = "tenant-001"


class TestChildren:
    """Tests for cache-through sibling reads."""

    @pytest.mark.asyncio
    async def test_sorted_by_name(self, products: TaxonomyService, seed):
        trade = await seed("productTrades", name="Plumbing")
        for name in ("Valves", "Fittings", "Pipes"):
            await seed("productSections", name=name, tradeId=trade)

        rows = await products.reader.children("section", trade, TENANT)

        assert [r.name for r in rows] == ["Fittings", "Pipes", "Valves"]
        assert all(r.parent_id == trade for r in rows)

    @pytest.mark.asyncio
    async def test_ordinal_ordering_is_case_sensitive(self, products: TaxonomyService, seed):
        await seed("productTrades", name="electrical")
        await seed("productTrades", name="Plumbing")

        rows = await products.reader.children("trade", None, TENANT)

        assert [r.name for r in rows] == ["Plumbing", "electrical"]

    @pytest.mark.asyncio
    async def test_tenant_isolation(self, products: TaxonomyService, seed):
        await seed("productTrades", name="Plumbing")
        await seed("productTrades", tenant="tenant-002", name="Roofing")

        rows = await products.reader.children("trade", None, TENANT)

        assert [r.name for r in rows] == ["Plumbing"]

    @pytest.mark.asyncio
    async def test_second_read_served_from_cache(
        self, products: TaxonomyService, store: MemoryTaxonomyStore, seed
    ):
        trade = await seed("productTrades", name="Plumbing")
        await seed("productSections", name="Pipes", tradeId=trade)
        store.reset_calls()

        await products.reader.children("section", trade, TENANT)
        await products.reader.children("section", trade, TENANT)

        assert store.calls["query"] == 1

    @pytest.mark.asyncio
    async def test_use_cache_false_reads_store(
        self, products: TaxonomyService, store: MemoryTaxonomyStore, seed
    ):
        await seed("productTrades", name="Plumbing")
        store.reset_calls()

        await products.reader.children("trade", None, TENANT, use_cache=False)
        await products.reader.children("trade", None, TENANT, use_cache=False)

        assert store.calls["query"] == 2

    @pytest.mark.asyncio
    async def test_trades_shared_across_modules(self, engine, seed, store: MemoryTaxonomyStore):
        await seed("productTrades", name="Plumbing")

        await engine.module("products").reader.children("trade", None, TENANT)
        store.reset_calls()
        rows = await engine.module("labor").reader.children("trade", None, TENANT)

        assert [r.name for r in rows] == ["Plumbing"]
        assert store.calls["query"] == 0


class TestBuildTree:
    """Tests for tree assembly."""

    @pytest.mark.asyncio
    async def test_full_products_tree(self, products: TaxonomyService, seed):
        trade = await seed("productTrades", name="Plumbing")
        section = await seed("productSections", name="Pipes", tradeId=trade)
        category = await seed("productCategories", name="Copper", sectionId=section)
        sub = await seed("productSubcategories", name="Type L", categoryId=category)
        await seed("productTypes", name="Rigid", subcategoryId=sub)
        await seed("productSizes", name="1/2 in", tradeId=trade)

        tree = await products.reader.build_tree(TENANT)

        assert len(tree) == 1
        plumbing = tree[0]
        assert plumbing.name == "Plumbing"
        assert [s.name for s in plumbing.branches["size"]] == ["1/2 in"]
        pipes = plumbing.children[0]
        assert pipes.name == "Pipes"
        assert pipes.children[0].children[0].children[0].name == "Rigid"

    @pytest.mark.asyncio
    async def test_orphans_are_not_attached(self, labor: TaxonomyService, seed):
        trade = await seed("productTrades", name="Plumbing")
        await seed("laborSections", name="Rough-in", tradeId=trade)
        await seed("laborSections", name="Lost", tradeId="deleted-trade")

        tree = await labor.reader.build_tree(TENANT)

        assert [s.name for s in tree[0].children] == ["Rough-in"]

    @pytest.mark.asyncio
    async def test_empty_tenant(self, products: TaxonomyService):
        assert await products.reader.build_tree(TENANT) == []


class TestBulkLoad:
    """Tests for uncached level loads and the node table."""

    @pytest.mark.asyncio
    async def test_build_table_drops_orphans(self, labor: TaxonomyService, seed):
        trade = await seed("productTrades", name="Plumbing")
        section = await seed("laborSections", name="Rough-in", tradeId=trade)
        await seed("laborCategories", name="Drains", sectionId=section)
        lost = await seed("laborSections", name="Lost", tradeId="deleted-trade")
        await seed("laborCategories", name="Below lost", sectionId=lost)

        table = await labor.reader.build_table(TENANT)

        assert len(table) == 3
        assert ("section", lost) not in table

    @pytest.mark.asyncio
    async def test_to_tree_matches_build_tree(self, products: TaxonomyService, seed):
        trade = await seed("productTrades", name="Plumbing")
        await seed("productSections", name="Valves", tradeId=trade)
        await seed("productSections", name="Pipes", tradeId=trade)
        await seed("productSizes", name="2 in", tradeId=trade)

        table = await products.reader.build_table(TENANT)

        assert products.reader.to_tree(table) == await products.reader.build_tree(TENANT)

    @pytest.mark.asyncio
    async def test_load_level_bypasses_cache(
        self, products: TaxonomyService, store: MemoryTaxonomyStore, seed
    ):
        await seed("productTrades", name="Plumbing")
        await products.reader.children("trade", None, TENANT)
        store.reset_calls()

        rows = await products.reader.load_level("trade", TENANT)

        assert [r.name for r in rows] == ["Plumbing"]
        assert store.calls["query"] == 1
