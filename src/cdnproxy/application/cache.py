"""In-process cache of refreshed records."""

from __future__ import annotations

from enum import Enum

from cdnproxy.domain.models import AttachmentReference, CachedRecord


class CacheKeyScheme(str, Enum):
    """How records are keyed; fixed for the lifetime of a deployment."""

    FILE = "file"
    CHANNEL_FILE = "channel_file"

    def key_for(self, reference: AttachmentReference) -> str:
        if self is CacheKeyScheme.CHANNEL_FILE:
            return f"{reference.channel_id}-{reference.file_name}"
        return reference.file_name


class MemoryCache:
    """
    Process-lifetime cache owned by the application.

    Records are immutable and replaced wholesale, so plain dict assignment is
    enough for concurrent request tasks. Expired entries are left in place and
    simply never returned by the resolver.
    """

    def __init__(self) -> None:
        self._records: dict[str, CachedRecord] = {}

    def get(self, key: str) -> CachedRecord | None:
        return self._records.get(key)

    def set(self, key: str, record: CachedRecord) -> None:
        self._records[key] = record

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
