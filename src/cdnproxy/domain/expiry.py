"""Signed expiry decoding.

Discord CDN URLs carry their own expiry in the ``ex`` query parameter as
hex-encoded Unix seconds. The same decoding rule is applied to the original
request URL, to cached records and to refreshed URLs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from urllib.parse import parse_qs, urlsplit

from cdnproxy.domain.models import CachedRecord, SignedParams


# Largest Unix time representable as a datetime (9999-12-31T23:59:59Z)
MAX_EXPIRY_SECONDS = 253402300799


class Validity(str, Enum):
    VALID = "valid"
    EXPIRED_OR_UNSIGNED = "expired_or_unsigned"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def signed_params_from_query(query: str) -> SignedParams:
    """Pull ``ex``, ``is`` and ``hm`` out of a raw query string."""
    params = parse_qs(query, keep_blank_values=True)

    def first(name: str) -> str | None:
        values = params.get(name)
        return values[0] if values else None

    return SignedParams(
        expires_hex=first("ex"),
        issued_hex=first("is"),
        signature=first("hm"),
    )


def decode_expiry(params: SignedParams) -> datetime | None:
    """Decode ``ex`` into a UTC timestamp, or None when absent or not hex."""
    if not params.expires_hex:
        return None
    try:
        seconds = int(params.expires_hex, 16)
    except ValueError:
        return None
    if seconds > MAX_EXPIRY_SECONDS:
        # beyond year 9999; still a future expiry
        return datetime.max.replace(tzinfo=timezone.utc)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def is_live(expires_at: datetime | None, now: datetime) -> bool:
    """True when ``expires_at`` is strictly after ``now``."""
    return expires_at is not None and expires_at > now


def evaluate(params: SignedParams, now: datetime) -> Validity:
    if params.complete and is_live(decode_expiry(params), now):
        return Validity.VALID
    return Validity.EXPIRED_OR_UNSIGNED


def record_for(href: str) -> CachedRecord | None:
    """Build a record whose expiry comes from ``href``'s own ``ex`` parameter."""
    expires_at = decode_expiry(signed_params_from_query(urlsplit(href).query))
    if expires_at is None:
        return None
    return CachedRecord(href=href, expires_at=expires_at)
