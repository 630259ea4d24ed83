"""Shared fixtures for the proxy tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from cdnproxy.application.cache import MemoryCache
from cdnproxy.domain.models import CachedRecord

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
CDN = "https://cdn.example.com/attachments"


def hex_ts(moment: datetime) -> str:
    return format(int(moment.timestamp()), "x")


def cdn_url(file_name: str = "a.png", expires: datetime | None = None, channel: str = "10", message: str = "20", sig: str = "abc") -> str:
    url = f"{CDN}/{channel}/{message}/{file_name}"
    if expires is None:
        return url
    return f"{url}?ex={hex_ts(expires)}&is={hex_ts(expires - timedelta(hours=24))}&hm={sig}"


def record(file_name: str = "a.png", expires: datetime | None = None, sig: str = "fresh") -> CachedRecord:
    expires = expires or NOW + timedelta(hours=24)
    return CachedRecord(href=cdn_url(file_name, expires, sig=sig), expires_at=expires)


class FakeRecordStore:
    """Durable store double keeping records in a dict."""

    def __init__(self, records: dict[str, CachedRecord] | None = None):
        self.records = dict(records or {})
        self.gets: list[str] = []
        self.puts: list[tuple[str, CachedRecord, datetime]] = []

    async def get(self, key: str) -> CachedRecord | None:
        self.gets.append(key)
        return self.records.get(key)

    async def put(self, key: str, record: CachedRecord, expires: datetime) -> None:
        self.puts.append((key, record, expires))
        self.records[key] = record


class FakeRefreshClient:
    """Refresh client double returning queued records or raising queued errors."""

    def __init__(self, *results: CachedRecord | Exception, delay: float = 0.0):
        self.results = list(results)
        self.calls: list[str] = []
        self.delay = delay

    async def refresh(self, url: str) -> CachedRecord:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def memory() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()
