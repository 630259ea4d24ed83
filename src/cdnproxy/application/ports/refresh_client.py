from __future__ import annotations
from typing import Protocol
from cdnproxy.domain.models import CachedRecord

class RefreshClient(Protocol):
    async def refresh(self, url: str) -> CachedRecord: ...
