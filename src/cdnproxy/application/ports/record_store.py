from __future__ import annotations
from datetime import datetime
from typing import Optional, Protocol
from cdnproxy.domain.models import CachedRecord

class RecordStore(Protocol):
    """Durable key-value store surviving process restarts."""

    async def get(self, key: str) -> Optional[CachedRecord]: ...
    async def put(self, key: str, record: CachedRecord, expires: datetime) -> None: ...
