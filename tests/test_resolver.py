"""Tiered resolution: decision order, cache warm-up and write-through."""

import asyncio
from datetime import timedelta

import pytest

from cdnproxy.application.cache import CacheKeyScheme
from cdnproxy.application.cache_writer import CacheWriter
from cdnproxy.application.resolver import (
    DurableStrategy,
    MemoryStrategy,
    OriginalStrategy,
    RefreshStrategy,
    ResolutionContext,
    TieredResolver,
)
from cdnproxy.domain.attachment_url import parse_attachment_url
from cdnproxy.domain.errors import UpstreamResponseUnexpected, UpstreamUnavailable
from cdnproxy.domain.models import CachedRecord, Tier

from conftest import NOW, FakeRecordStore, FakeRefreshClient, cdn_url, record

EXPIRED = NOW - timedelta(hours=1)


def ref_for(url: str):
    return parse_attachment_url(f"/?{url}")


async def run_background(result) -> None:
    for deferred in result.background:
        await deferred()


async def test_valid_original_touches_no_cache(memory, clock):
    store = FakeRecordStore()
    client = FakeRefreshClient()
    resolver = TieredResolver.build(memory, client, store, clock=clock)
    url = cdn_url("a.png", NOW + timedelta(hours=1))

    result = await resolver.resolve(ref_for(url))

    assert result.tier is Tier.ORIGINAL
    assert result.href == url
    assert result.expires_at == NOW + timedelta(hours=1)
    assert store.gets == []
    assert client.calls == []
    assert len(memory) == 0


async def test_memory_hit_skips_upstream(memory, clock):
    cached = record("a.png")
    memory.set("a.png", cached)
    client = FakeRefreshClient()
    resolver = TieredResolver.build(memory, client, clock=clock)

    result = await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED)))

    assert result.tier is Tier.MEMORY
    assert result.href == cached.href
    assert client.calls == []


async def test_durable_hit_warms_memory(memory, clock):
    cached = record("a.png")
    store = FakeRecordStore({"a.png": cached})
    client = FakeRefreshClient()
    resolver = TieredResolver.build(memory, client, store, clock=clock)
    ref = ref_for(cdn_url("a.png", EXPIRED))

    first = await resolver.resolve(ref)
    second = await resolver.resolve(ref)

    assert first.tier is Tier.BUCKET
    assert second.tier is Tier.MEMORY
    assert first.href == second.href == cached.href
    assert memory.get("a.png") == cached
    assert client.calls == []


async def test_full_miss_refreshes_once_and_writes_both_tiers(memory, store, clock):
    fresh = record("a.png")
    client = FakeRefreshClient(fresh)
    resolver = TieredResolver.build(memory, client, store, clock=clock)
    url = cdn_url("a.png", EXPIRED)

    result = await resolver.resolve(ref_for(url))
    await run_background(result)

    assert result.tier is Tier.REFRESHED
    assert result.href == fresh.href
    assert client.calls == [url]
    assert memory.get("a.png") == fresh
    assert store.puts == [("a.png", fresh, fresh.expires_at)]


async def test_unsigned_url_always_goes_past_original(memory, clock):
    fresh = record("a.png")
    client = FakeRefreshClient(fresh)
    resolver = TieredResolver.build(memory, client, clock=clock)

    result = await resolver.resolve(ref_for(cdn_url("a.png")))

    assert result.tier is Tier.REFRESHED


async def test_expired_records_are_misses_and_kept(memory, clock):
    stale = record("a.png", expires=EXPIRED, sig="stale")
    memory.set("a.png", stale)
    store = FakeRecordStore({"a.png": stale})
    fresh = record("a.png")
    client = FakeRefreshClient(fresh)
    resolver = TieredResolver.build(memory, client, store, clock=clock)

    result = await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED)))

    assert result.tier is Tier.REFRESHED
    assert store.gets == ["a.png"]
    # stale durable entry is not deleted; only superseded once the deferred write runs
    assert store.records["a.png"] == stale


async def test_refresh_failure_propagates_without_writing(memory, store, clock):
    client = FakeRefreshClient(UpstreamUnavailable(503, b"down", "text/plain"))
    resolver = TieredResolver.build(memory, client, store, clock=clock)

    with pytest.raises(UpstreamUnavailable) as exc:
        await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED)))

    assert exc.value.status_code == 503
    assert len(memory) == 0
    assert store.puts == []


async def test_unexpected_payload_propagates(memory, clock):
    client = FakeRefreshClient(UpstreamResponseUnexpected({"refreshed_urls": []}))
    resolver = TieredResolver.build(memory, client, clock=clock)

    with pytest.raises(UpstreamResponseUnexpected):
        await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED)))
    assert len(memory) == 0


async def test_round_trip_through_store_matches(memory, clock):
    fresh = record("a.png")
    store = FakeRecordStore()
    writer = CacheWriter(memory, store)

    for deferred in writer.write("a.png", fresh):
        await deferred()

    # restart: empty memory, same durable store
    resolver = TieredResolver.build(type(memory)(), FakeRefreshClient(), store, clock=clock)
    result = await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED)))

    assert result.tier is Tier.BUCKET
    assert (result.href, result.expires_at) == (fresh.href, fresh.expires_at)
    assert CachedRecord.from_json(store.records["a.png"].to_json()) == fresh


async def test_channel_file_scheme_keys_both_paths(memory, store, clock):
    fresh = record("a.png")
    client = FakeRefreshClient(fresh, record("a.png", sig="eleven"))
    resolver = TieredResolver.build(memory, client, store, key_scheme=CacheKeyScheme.CHANNEL_FILE, clock=clock)

    first = await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED, channel="10")))
    await run_background(first)
    other_channel = await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED, channel="11")))

    assert first.tier is Tier.REFRESHED
    assert "10-a.png" in memory
    assert store.puts[0][0] == "10-a.png"
    assert other_channel.tier is Tier.REFRESHED
    assert store.gets == ["10-a.png", "11-a.png"]


async def test_channel_file_scheme_does_not_cross_channels(memory, clock):
    memory.set("10-a.png", record("a.png"))
    other = record("a.png", sig="other")
    client = FakeRefreshClient(other)
    resolver = TieredResolver.build(memory, client, key_scheme=CacheKeyScheme.CHANNEL_FILE, clock=clock)

    result = await resolver.resolve(ref_for(cdn_url("a.png", EXPIRED, channel="11")))

    assert result.tier is Tier.REFRESHED
    assert result.href == other.href


async def test_concurrent_refresh_of_same_key_is_safe(memory, store, clock):
    first = record("a.png", expires=NOW + timedelta(hours=24), sig="one")
    second = record("a.png", expires=NOW + timedelta(hours=25), sig="two")
    client = FakeRefreshClient(first, second, delay=0.01)
    resolver = TieredResolver.build(memory, client, store, clock=clock)
    ref = ref_for(cdn_url("a.png", EXPIRED))

    results = await asyncio.gather(resolver.resolve(ref), resolver.resolve(ref))
    for result in results:
        await run_background(result)

    assert [r.tier for r in results] == [Tier.REFRESHED, Tier.REFRESHED]
    assert len(client.calls) == 2
    winner = memory.get("a.png")
    assert winner in (first, second)
    assert store.records["a.png"] in (first, second)
    for r in results:
        assert (r.href, r.expires_at) in ((first.href, first.expires_at), (second.href, second.expires_at))


def test_standard_tier_order(memory):
    client = FakeRefreshClient()

    without_store = TieredResolver.build(memory, client)
    with_store = TieredResolver.build(memory, client, FakeRecordStore())

    assert without_store.tiers == [Tier.ORIGINAL, Tier.MEMORY, Tier.REFRESHED]
    assert with_store.tiers == [Tier.ORIGINAL, Tier.MEMORY, Tier.BUCKET, Tier.REFRESHED]


# Strategies in isolation


def ctx_for(url: str, key: str = "a.png") -> ResolutionContext:
    return ResolutionContext(reference=ref_for(url), key=key, now=NOW)


async def test_original_strategy_misses_on_expired():
    assert await OriginalStrategy().resolve(ctx_for(cdn_url("a.png", EXPIRED))) is None


async def test_memory_strategy_misses_on_absent(memory):
    assert await MemoryStrategy(memory).resolve(ctx_for(cdn_url("a.png", EXPIRED))) is None


async def test_durable_strategy_leaves_memory_alone_on_expired(memory):
    store = FakeRecordStore({"a.png": record("a.png", expires=EXPIRED)})

    assert await DurableStrategy(store, memory).resolve(ctx_for(cdn_url("a.png", EXPIRED))) is None
    assert len(memory) == 0


async def test_refresh_strategy_defers_durable_write(memory, store):
    fresh = record("a.png")
    strategy = RefreshStrategy(FakeRefreshClient(fresh), CacheWriter(memory, store))

    result = await strategy.resolve(ctx_for(cdn_url("a.png", EXPIRED)))

    assert memory.get("a.png") == fresh
    assert store.puts == []
    assert len(result.background) == 1

    await run_background(result)
    assert store.puts == [("a.png", fresh, fresh.expires_at)]
