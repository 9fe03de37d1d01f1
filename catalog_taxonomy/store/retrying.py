"""Read-retrying store wrapper.

Reads are idempotent, so transient failures are retried with exponential
backoff. Writes pass straight through: retrying a create or a batch delete
could apply it twice.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from catalog_taxonomy.config import settings
from catalog_taxonomy.infra.logging import get_logger
from catalog_taxonomy.store.base import DocumentRef, StoreError, TaxonomyStore

logger = get_logger(__name__)


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "Store read failed, retrying",
        attempt=state.attempt_number,
        error=str(error) if error else None,
    )


class RetryingStore:
    """Wraps a TaxonomyStore, retrying ``query`` and ``get`` on StoreError."""

    def __init__(
        self,
        inner: TaxonomyStore,
        attempts: int | None = None,
        min_wait: float | None = None,
        max_wait: float | None = None,
    ) -> None:
        self.inner = inner
        self.attempts = attempts if attempts is not None else settings.store_read_retry_attempts
        self.min_wait = min_wait if min_wait is not None else settings.store_read_retry_min_wait
        self.max_wait = max_wait if max_wait is not None else settings.store_read_retry_max_wait

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.min_wait, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception_type(StoreError),
            before_sleep=_log_retry,
            reraise=True,
        )

    async def query(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        return await self._retrying()(self.inner.query, collection, filters, order_by)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return await self._retrying()(self.inner.get, collection, doc_id)

    async def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        return await self.inner.create(collection, fields)

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        await self.inner.update(collection, doc_id, fields)

    async def batch_delete(self, refs: Sequence[DocumentRef]) -> None:
        await self.inner.batch_delete(refs)

