"""Error taxonomy for attachment resolution."""

from __future__ import annotations

from typing import Any

USAGE_EXAMPLE = (
    "https://your-web-site.com/discord-cdn-proxy?"
    "https://cdn.discordapp.com/attachments/channel/message/filename.ext"
)


class CdnProxyError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequest(CdnProxyError):
    """The request does not carry a usable attachment URL."""

    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or f"Provide Discord CDN url after ?. Example: {USAGE_EXAMPLE}")


class ChannelNotAllowed(CdnProxyError):
    status_code = 400

    def __init__(self, channel_id: str):
        super().__init__(f"Channel {channel_id} is not allowed")
        self.channel_id = channel_id


class CredentialMissing(CdnProxyError):
    status_code = 400

    def __init__(self):
        super().__init__("DISCORD_TOKEN is not configured")


class UpstreamUnavailable(CdnProxyError):
    """Refresh endpoint answered with a non-200 status or could not be reached.

    The upstream body and status are kept so they can be passed back verbatim.
    """

    def __init__(self, status_code: int, body: bytes, content_type: str | None = None):
        super().__init__(f"Upstream refresh failed with HTTP {status_code}", status_code=status_code)
        self.body = body
        self.content_type = content_type


class UpstreamResponseUnexpected(CdnProxyError):
    """Refresh endpoint answered 200 without a usable refreshed URL."""

    status_code = 400

    def __init__(self, payload: Any):
        super().__init__("Upstream response did not contain a refreshed URL")
        self.payload = payload


class InternalFault(CdnProxyError):
    status_code = 500
