"""Write-through persistence of refreshed records."""

from __future__ import annotations

from loguru import logger

from cdnproxy.application.cache import MemoryCache
from cdnproxy.application.ports.record_store import RecordStore
from cdnproxy.domain.models import CachedRecord, DeferredWrite


class CacheWriter:
    """Persist a record to the memory cache and, if configured, the durable store."""

    def __init__(self, memory: MemoryCache, store: RecordStore | None = None):
        self.memory = memory
        self.store = store

    def write(self, key: str, record: CachedRecord) -> tuple[DeferredWrite, ...]:
        """
        Store ``record`` under ``key``.

        The memory cache is updated before returning. The durable write is
        returned as a deferred callable so the caller can run it after the
        response has been sent.
        """
        self.memory.set(key, record)

        if self.store is None:
            return ()
        return (self._deferred_put(key, record),)

    def _deferred_put(self, key: str, record: CachedRecord) -> DeferredWrite:
        store = self.store

        async def put() -> None:
            try:
                await store.put(key, record, expires=record.expires_at)
                logger.info(f"Persisted {key} to durable store until {record.expires_at.isoformat()}")
            except Exception as e:
                logger.exception(f"Durable store write failed for {key}: {e}")

        return put
