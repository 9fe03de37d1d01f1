"""Tests for the read-retrying store wrapper."""

from unittest.mock import AsyncMock

import pytest

from catalog_taxonomy.store.base import DocumentRef, StoreError
from catalog_taxonomy.store.retrying import RetryingStore


def _inner() -> AsyncMock:
    inner = AsyncMock()
    inner.query = AsyncMock()
    inner.get = AsyncMock()
    inner.create = AsyncMock()
    inner.update = AsyncMock()
    inner.batch_delete = AsyncMock()
    return inner


class TestRetryingStore:
    """Tests for RetryingStore."""

    @pytest.mark.asyncio
    async def test_query_retries_transient_failure(self):
        inner = _inner()
        inner.query.side_effect = [StoreError("unavailable"), [{"id": "a"}]]
        store = RetryingStore(inner, attempts=3, min_wait=0, max_wait=0)

        docs = await store.query("productTrades", {"userId": "t1"})

        assert docs == [{"id": "a"}]
        assert inner.query.await_count == 2

    @pytest.mark.asyncio
    async def test_get_gives_up_after_attempts(self):
        inner = _inner()
        inner.get.side_effect = StoreError("down")
        store = RetryingStore(inner, attempts=3, min_wait=0, max_wait=0)

        with pytest.raises(StoreError, match="down"):
            await store.get("productTrades", "a")

        assert inner.get.await_count == 3

    @pytest.mark.asyncio
    async def test_non_store_errors_are_not_retried(self):
        inner = _inner()
        inner.query.side_effect = ValueError("bug")
        store = RetryingStore(inner, attempts=3, min_wait=0, max_wait=0)

        with pytest.raises(ValueError):
            await store.query("productTrades", {})

        assert inner.query.await_count == 1

    @pytest.mark.asyncio
    async def test_writes_are_not_retried(self):
        inner = _inner()
        inner.create.side_effect = StoreError("write failed")
        inner.batch_delete.side_effect = StoreError("write failed")
        store = RetryingStore(inner, attempts=3, min_wait=0, max_wait=0)

        with pytest.raises(StoreError):
            await store.create("productTrades", {"name": "A"})
        with pytest.raises(StoreError):
            await store.batch_delete([DocumentRef("productTrades", "a")])

        assert inner.create.await_count == 1
        assert inner.batch_delete.await_count == 1
