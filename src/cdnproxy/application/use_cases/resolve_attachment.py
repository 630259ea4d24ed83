"""Use case for resolving a proxied attachment request."""

from __future__ import annotations

from collections.abc import Collection
from email.utils import format_datetime

from loguru import logger

from cdnproxy.application.cache import MemoryCache
from cdnproxy.application.resolver import TieredResolver
from cdnproxy.application.stats import ProxyStats
from cdnproxy.domain.attachment_url import (
    HEARTBEAT,
    ensure_channel_allowed,
    extract_target,
    parse_attachment_url,
)
from cdnproxy.domain.errors import (
    CdnProxyError,
    CredentialMissing,
    InternalFault,
    UpstreamResponseUnexpected,
    UpstreamUnavailable,
)
from cdnproxy.domain.models import ResolveResult, ResponseIntent

TIER_HEADER = "x-discord-cdn-proxy"


def mask_token(token: str) -> str:
    if len(token) <= 6:
        return "…"
    return f"{token[:3]}…{token[-3:]}"


class ResolveAttachmentUseCase:
    """
    Turn a request target into a response intent.

    Flow:
    1. Reject when no upstream credential is configured
    2. Answer heartbeat probes with a stats snapshot
    3. Parse the attachment URL and check the channel allow-list
    4. Resolve through the tiered resolver
    5. Build a redirect, or an error response for any failure
    """

    def __init__(
        self,
        resolver: TieredResolver,
        memory: MemoryCache,
        token: str | None,
        allowed_channels: Collection[str] | None = None,
        stats: ProxyStats | None = None,
        public_url: str | None = None,
    ):
        self.resolver = resolver
        self.memory = memory
        self.token = token
        self.allowed_channels = allowed_channels
        self.stats = stats or ProxyStats()
        self.public_url = public_url

    async def execute(self, request_target: str) -> ResponseIntent:
        """
        Resolve a single request.

        Args:
            request_target: The incoming request URL, with the attachment URL after ``?``

        Returns:
            ResponseIntent describing the redirect or the error
        """
        self.stats.calls += 1
        try:
            if not self.token:
                raise CredentialMissing()

            if _is_heartbeat(request_target):
                return self.heartbeat()

            reference = parse_attachment_url(request_target)
            ensure_channel_allowed(reference, self.allowed_channels)

            result = await self.resolver.resolve(reference)
            self.stats.record_tier(result.tier)
            return redirect_intent(result)

        except CdnProxyError as e:
            logger.warning(f"Request failed with {e.status_code}: {e.message}")
            return error_intent(e)
        except Exception as e:
            self.stats.exceptions += 1
            logger.exception(f"Unhandled error resolving {request_target}: {e}")
            return error_intent(InternalFault(str(e)))

    def heartbeat(self) -> ResponseIntent:
        self.stats.heartbeats += 1
        snapshot = self.stats.snapshot(
            cache_size=len(self.memory),
            token=mask_token(self.token) if self.token else None,
            channels=sorted(self.allowed_channels) if self.allowed_channels else None,
            public_url=self.public_url,
        )
        logger.info(f"{HEARTBEAT} {snapshot}")
        return ResponseIntent(status=200, body=snapshot, media_type="application/json")


def _is_heartbeat(request_target: str) -> bool:
    if "?" not in request_target:
        return False
    return extract_target(request_target) == HEARTBEAT


def redirect_intent(result: ResolveResult) -> ResponseIntent:
    return ResponseIntent(
        status=302,
        headers={
            "Location": result.href,
            "Expires": format_datetime(result.expires_at, usegmt=True),
            TIER_HEADER: result.tier.value,
        },
        body="",
        background=list(result.background),
    )


def error_intent(error: CdnProxyError) -> ResponseIntent:
    if isinstance(error, UpstreamUnavailable):
        return ResponseIntent(
            status=error.status_code,
            body=error.body,
            media_type=error.content_type,
        )
    body = {"message": error.message}
    if isinstance(error, UpstreamResponseUnexpected):
        body["payload"] = error.payload
    return ResponseIntent(status=error.status_code, body=body, media_type="application/json")
