"""Extraction of the attachment URL from an incoming request target."""

from __future__ import annotations

from collections.abc import Collection
from urllib.parse import unquote, urlsplit

from cdnproxy.domain.errors import ChannelNotAllowed, InvalidRequest
from cdnproxy.domain.expiry import signed_params_from_query
from cdnproxy.domain.models import AttachmentReference

HEARTBEAT = "heartbeat"


def extract_target(request_target: str) -> str:
    """Return everything after the first ``?`` of the percent-decoded target."""
    decoded = unquote(request_target)
    start = decoded.find("?")
    if start < 0:
        raise InvalidRequest()
    return decoded[start + 1 :]


def parse_attachment_url(request_target: str) -> AttachmentReference:
    """
    Parse the attachment URL appended to the proxy URL.

    ``https://proxy/?https://cdn.discordapp.com/attachments/{channel}/{message}/{file}?ex=..&is=..&hm=..``

    Raises:
        InvalidRequest: no ``?`` in the target or the candidate is not an absolute URL.
    """
    candidate = extract_target(request_target)

    try:
        parts = urlsplit(candidate)
    except ValueError as e:
        raise InvalidRequest() from e
    if not parts.scheme or not parts.netloc:
        raise InvalidRequest()

    segments = parts.path.split("/")
    channel_id = segments[2] if len(segments) > 2 else ""

    return AttachmentReference(
        raw_url=request_target,
        href=candidate,
        channel_id=channel_id,
        file_name=segments[-1],
        signed_params=signed_params_from_query(parts.query),
    )


def ensure_channel_allowed(reference: AttachmentReference, allowed: Collection[str] | None) -> None:
    """Reject channels missing from a configured allow-list."""
    if allowed and reference.channel_id not in allowed:
        raise ChannelNotAllowed(reference.channel_id)
