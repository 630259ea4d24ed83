"""Resolution outcome counters reported by the heartbeat endpoint."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from cdnproxy.domain.models import Tier


@dataclass
class ProxyStats:
    """Track proxy statistics."""
    started: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    calls: int = 0
    original: int = 0
    memory: int = 0
    bucket: int = 0
    refreshed: int = 0
    heartbeats: int = 0
    exceptions: int = 0

    def record_tier(self, tier: Tier) -> None:
        setattr(self, tier.value, getattr(self, tier.value) + 1)

    def snapshot(self, cache_size: int, **extra: Any) -> dict[str, Any]:
        data = asdict(self)
        data["started"] = self.started.isoformat()
        data["cache_size"] = cache_size
        data.update({k: v for k, v in extra.items() if v is not None})
        return data
