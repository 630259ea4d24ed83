"""Discord attachment refresh API client."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from cdnproxy.domain.errors import (
    CredentialMissing,
    UpstreamResponseUnexpected,
    UpstreamUnavailable,
)
from cdnproxy.domain.expiry import record_for
from cdnproxy.domain.models import CachedRecord


class DiscordRefreshClient:
    """Exchange expired attachment URLs for freshly signed ones."""

    BASE_URL = "https://discord.com/api/v9"

    def __init__(
        self,
        token: str | None,
        base_url: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.token = token
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/attachments/refresh-urls"

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def refresh(self, url: str) -> CachedRecord:
        """
        Request a refreshed URL for ``url``. A single attempt, never retried.

        Raises:
            UpstreamUnavailable: non-200 answer (passed through verbatim) or transport failure
            UpstreamResponseUnexpected: 200 answer without a usable refreshed URL
        """
        if not self.token:
            raise CredentialMissing()

        try:
            response = await self.client.post(
                self.endpoint,
                headers={
                    "Authorization": self.token,
                    "Content-Type": "application/json",
                },
                json={"attachment_urls": [url]},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Discord refresh timed out for {url}")
            raise UpstreamUnavailable(504, f"Upstream timeout: {e}".encode(), "text/plain") from e
        except httpx.HTTPError as e:
            logger.error(f"Discord refresh request failed: {e}")
            raise UpstreamUnavailable(502, f"Upstream request failed: {e}".encode(), "text/plain") from e

        if response.status_code != 200:
            logger.warning(f"Discord API error {response.status_code}: {response.text[:200]}")
            raise UpstreamUnavailable(
                response.status_code,
                response.content,
                response.headers.get("content-type"),
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamResponseUnexpected(response.text) from e

        refreshed = _first_refreshed(data)
        record = record_for(refreshed) if refreshed else None
        if record is None:
            logger.warning(f"Discord refresh returned no usable URL: {str(data)[:200]}")
            raise UpstreamResponseUnexpected(data)
        return record


def _first_refreshed(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    entries = data.get("refreshed_urls")
    if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
        return None
    refreshed = entries[0].get("refreshed")
    return refreshed if isinstance(refreshed, str) and refreshed else None
