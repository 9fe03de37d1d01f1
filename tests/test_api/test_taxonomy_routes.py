"""Tests for taxonomy endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from catalog_taxonomy.store.base import StoreError
from catalog_taxonomy.store.memory import MemoryTaxonomyStore

TENANT = "tenant-001"
HEADERS = {"X-Tenant-ID": TENANT}


async def _create(client: AsyncClient, module: str, level: str, name: str, parent_id: str | None = None) -> str:
    response = await client.post(
        f"/taxonomy/{module}/{level}",
        json={"name": name, "parent_id": parent_id},
        headers=HEADERS,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestModules:
    """Tests for module discovery."""

    @pytest.mark.asyncio
    async def test_list_modules(self, client: AsyncClient):
        response = await client.get("/taxonomy/modules")

        assert response.status_code == 200
        modules = {m["name"]: m for m in response.json()}
        assert set(modules) == {"products", "labor", "equipment", "tools"}
        size = next(level for level in modules["products"]["levels"] if level["name"] == "size")
        assert size["branch"] is True
        assert size["parent_field"] == "tradeId"


class TestTenantHeader:
    """Tests for tenant scoping."""

    @pytest.mark.asyncio
    async def test_missing_tenant_header(self, client: AsyncClient):
        response = await client.get("/taxonomy/products/trade")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_module(self, client: AsyncClient):
        response = await client.get("/taxonomy/rentals/trade", headers=HEADERS)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_level(self, client: AsyncClient):
        response = await client.get("/taxonomy/labor/type?parent_id=x", headers=HEADERS)

        assert response.status_code == 404


class TestNodeRoutes:
    """Tests for create, list, rename, usage and delete."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, client: AsyncClient):
        trade = await _create(client, "products", "trade", "Plumbing")
        await _create(client, "products", "section", "Pipes", trade)

        trades = await client.get("/taxonomy/products/trade", headers=HEADERS)
        sections = await client.get(f"/taxonomy/products/section?parent_id={trade}", headers=HEADERS)

        assert [t["name"] for t in trades.json()] == ["Plumbing"]
        assert [s["name"] for s in sections.json()] == ["Pipes"]

    @pytest.mark.asyncio
    async def test_list_child_level_requires_parent(self, client: AsyncClient):
        response = await client.get("/taxonomy/products/section", headers=HEADERS)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_duplicate_is_conflict(self, client: AsyncClient):
        await _create(client, "products", "trade", "Plumbing")

        response = await client.post("/taxonomy/products/trade", json={"name": "PLUMBING"}, headers=HEADERS)

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error_type"] == "duplicate"

    @pytest.mark.asyncio
    async def test_validation_failure(self, client: AsyncClient):
        response = await client.post("/taxonomy/products/trade", json={"name": " "}, headers=HEADERS)

        assert response.status_code == 422
        assert response.json()["error"] == "Trade name cannot be empty"

    @pytest.mark.asyncio
    async def test_missing_parent_is_not_found(self, client: AsyncClient):
        response = await client.post(
            "/taxonomy/labor/section", json={"name": "Rough-in", "parent_id": "nope"}, headers=HEADERS
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_rename(self, client: AsyncClient):
        trade = await _create(client, "products", "trade", "Plumbing")

        response = await client.patch(f"/taxonomy/products/trade/{trade}", json={"name": "Gas"}, headers=HEADERS)
        trades = await client.get("/taxonomy/products/trade", headers=HEADERS)

        assert response.status_code == 200
        assert [t["name"] for t in trades.json()] == ["Gas"]

    @pytest.mark.asyncio
    async def test_usage_then_delete(self, client: AsyncClient, store: MemoryTaxonomyStore):
        trade = await _create(client, "labor", "trade", "Plumbing")
        section = await _create(client, "labor", "section", "Rough-in", trade)
        category = await _create(client, "labor", "category", "Drains", section)
        await store.create(
            "labor_items",
            {"userId": TENANT, "tradeId": trade, "sectionId": section, "categoryId": category},
        )

        usage = await client.get(f"/taxonomy/labor/section/{section}/usage", headers=HEADERS)
        assert usage.status_code == 200
        assert usage.json()["data"]["descendant_node_count"] == 1
        assert usage.json()["data"]["linked_item_count"] == 1

        guarded = await client.delete(
            f"/taxonomy/labor/section/{section}?allow_linked_items=false", headers=HEADERS
        )
        assert guarded.status_code == 409

        deleted = await client.delete(f"/taxonomy/labor/section/{section}", headers=HEADERS)
        assert deleted.status_code == 200
        assert store.count("labor_items") == 0

        missing = await client.get(f"/taxonomy/labor/section/{section}/usage", headers=HEADERS)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_tree(self, client: AsyncClient):
        trade = await _create(client, "products", "trade", "Plumbing")
        await _create(client, "products", "section", "Pipes", trade)
        await _create(client, "products", "size", "1/2 in", trade)

        response = await client.get("/taxonomy/products/tree", headers=HEADERS)

        assert response.status_code == 200
        tree = response.json()
        assert tree[0]["children"][0]["name"] == "Pipes"
        assert tree[0]["branches"]["size"][0]["name"] == "1/2 in"

    @pytest.mark.asyncio
    async def test_scan(self, client: AsyncClient):
        trade = await _create(client, "tools", "trade", "Plumbing")
        await _create(client, "tools", "section", "Wrenches", trade)

        response = await client.post("/taxonomy/tools/scan", headers=HEADERS)

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["module"] == "tools"
        assert report["buckets"]["section"][0]["path_label"] == "Plumbing > Wrenches"
        assert report["total_empty"] == 1


class TestStoreFailures:
    """Tests for store outages on read routes."""

    @pytest.mark.asyncio
    async def test_tree_store_failure_is_unavailable(self, client: AsyncClient, store: MemoryTaxonomyStore):
        store.query = AsyncMock(side_effect=StoreError("connection refused"))

        response = await client.get("/taxonomy/products/tree", headers=HEADERS)

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error_type"] == "store"

    @pytest.mark.asyncio
    async def test_children_store_failure_is_unavailable(self, client: AsyncClient, store: MemoryTaxonomyStore):
        store.query = AsyncMock(side_effect=StoreError("connection refused"))

        trades = await client.get("/taxonomy/products/trade", headers=HEADERS)
        sections = await client.get("/taxonomy/labor/section?parent_id=t1", headers=HEADERS)

        assert trades.status_code == 503
        assert trades.json()["error_type"] == "store"
        assert sections.status_code == 503
