"""Keep-warm heartbeat.

Serverless hosts recycle idle instances, which throws away the memory cache.
When a public URL is configured the service requests its own heartbeat
endpoint on an interval so the instance stays resident.
"""

from __future__ import annotations

import asyncio

import httpx
from loguru import logger

from cdnproxy.domain.attachment_url import HEARTBEAT


class Heartbeat:
    """Periodic self ping of ``{public_url}/?heartbeat``."""

    def __init__(self, public_url: str, interval_seconds: float = 600.0, timeout: float = 30.0):
        self.url = f"{public_url.rstrip('/')}/?{HEARTBEAT}"
        self.interval_seconds = interval_seconds
        self.timeout = timeout
        self._task: asyncio.Task | None = None

    async def ping(self, client: httpx.AsyncClient) -> int | None:
        """Send one heartbeat; failures are logged, the loop keeps going."""
        try:
            response = await client.get(self.url, timeout=self.timeout)
            logger.debug(f"Heartbeat {response.status_code}")
            return response.status_code
        except httpx.HTTPError as e:
            logger.warning(f"Heartbeat to {self.url} failed: {e}")
            return None

    async def run(self) -> None:
        logger.info(f"Heartbeat every {self.interval_seconds:.0f}s to {self.url}")
        async with httpx.AsyncClient() as client:
            while True:
                await asyncio.sleep(self.interval_seconds)
                await self.ping(client)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
