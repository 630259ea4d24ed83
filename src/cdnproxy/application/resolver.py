"""
Tiered resolution of attachment URLs.

Each tier is a strategy that either resolves the request or reports a miss.
Strategies run in a fixed order and the first hit wins:

1. original  - the requested URL is still signed and unexpired
2. memory    - an unexpired record in the in-process cache
3. bucket    - an unexpired record in the durable store (warms memory)
4. refreshed - a fresh URL from the upstream refresh API
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from loguru import logger

from cdnproxy.application.cache import CacheKeyScheme, MemoryCache
from cdnproxy.application.cache_writer import CacheWriter
from cdnproxy.application.ports.record_store import RecordStore
from cdnproxy.application.ports.refresh_client import RefreshClient
from cdnproxy.domain.expiry import Validity, decode_expiry, evaluate, is_live, utcnow
from cdnproxy.domain.models import AttachmentReference, ResolveResult, Tier


@dataclass(frozen=True)
class ResolutionContext:
    """Everything a strategy needs for one request."""

    reference: AttachmentReference
    key: str
    now: datetime


class ResolverStrategy(Protocol):
    tier: Tier

    async def resolve(self, ctx: ResolutionContext) -> ResolveResult | None: ...


class OriginalStrategy:
    tier = Tier.ORIGINAL

    async def resolve(self, ctx: ResolutionContext) -> ResolveResult | None:
        params = ctx.reference.signed_params
        if evaluate(params, ctx.now) is not Validity.VALID:
            return None
        return ResolveResult(href=ctx.reference.href, expires_at=decode_expiry(params), tier=self.tier)


class MemoryStrategy:
    tier = Tier.MEMORY

    def __init__(self, memory: MemoryCache):
        self.memory = memory

    async def resolve(self, ctx: ResolutionContext) -> ResolveResult | None:
        record = self.memory.get(ctx.key)
        if record is None or not is_live(record.expires_at, ctx.now):
            return None
        return ResolveResult(href=record.href, expires_at=record.expires_at, tier=self.tier)


class DurableStrategy:
    tier = Tier.BUCKET

    def __init__(self, store: RecordStore, memory: MemoryCache):
        self.store = store
        self.memory = memory

    async def resolve(self, ctx: ResolutionContext) -> ResolveResult | None:
        record = await self.store.get(ctx.key)
        if record is None or not is_live(record.expires_at, ctx.now):
            return None
        self.memory.set(ctx.key, record)
        return ResolveResult(href=record.href, expires_at=record.expires_at, tier=self.tier)


class RefreshStrategy:
    """
    Exchange the requested URL for a newly signed one.

    Upstream errors propagate untouched; nothing is cached unless the refresh
    produced a usable record.
    """

    tier = Tier.REFRESHED

    def __init__(self, client: RefreshClient, writer: CacheWriter):
        self.client = client
        self.writer = writer

    async def resolve(self, ctx: ResolutionContext) -> ResolveResult | None:
        record = await self.client.refresh(ctx.reference.href)
        background = self.writer.write(ctx.key, record)
        logger.info(f"Refreshed {ctx.key}, valid until {record.expires_at.isoformat()}")
        return ResolveResult(
            href=record.href,
            expires_at=record.expires_at,
            tier=self.tier,
            background=background,
        )


class ResolutionExhausted(RuntimeError):
    """Every strategy missed. Unreachable while a RefreshStrategy is last."""


class TieredResolver:
    """Run strategies in order; the first non-miss wins."""

    def __init__(
        self,
        strategies: Sequence[ResolverStrategy],
        key_scheme: CacheKeyScheme = CacheKeyScheme.FILE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.strategies = list(strategies)
        self.key_scheme = key_scheme
        self.clock = clock

    @classmethod
    def build(
        cls,
        memory: MemoryCache,
        client: RefreshClient,
        store: RecordStore | None = None,
        key_scheme: CacheKeyScheme = CacheKeyScheme.FILE,
        clock: Callable[[], datetime] = utcnow,
    ) -> TieredResolver:
        """Assemble the standard tier order for a deployment."""
        strategies: list[ResolverStrategy] = [OriginalStrategy(), MemoryStrategy(memory)]
        if store is not None:
            strategies.append(DurableStrategy(store, memory))
        strategies.append(RefreshStrategy(client, CacheWriter(memory, store)))
        return cls(strategies, key_scheme=key_scheme, clock=clock)

    @property
    def tiers(self) -> list[Tier]:
        return [s.tier for s in self.strategies]

    async def resolve(self, reference: AttachmentReference) -> ResolveResult:
        ctx = ResolutionContext(
            reference=reference,
            key=self.key_scheme.key_for(reference),
            now=self.clock(),
        )
        for strategy in self.strategies:
            result = await strategy.resolve(ctx)
            if result is not None:
                logger.debug(f"Resolved {ctx.key} from {result.tier.value}")
                return result
        raise ResolutionExhausted(f"No tier resolved {ctx.key}")
