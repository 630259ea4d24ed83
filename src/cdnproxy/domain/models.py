"""Domain models for the Discord CDN proxy."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DeferredWrite = Callable[[], Awaitable[None]]


class Tier(str, Enum):
    """Source a resolved URL came from."""

    ORIGINAL = "original"
    MEMORY = "memory"
    BUCKET = "bucket"
    REFRESHED = "refreshed"


@dataclass(frozen=True)
class SignedParams:
    """Signature parameters embedded in a CDN URL query string."""

    expires_hex: str | None = None
    issued_hex: str | None = None
    signature: str | None = None

    @property
    def complete(self) -> bool:
        return bool(self.expires_hex and self.issued_hex and self.signature)


@dataclass(frozen=True)
class AttachmentReference:
    """An attachment URL extracted from an incoming request."""

    raw_url: str
    href: str
    channel_id: str
    file_name: str
    signed_params: SignedParams = field(default_factory=SignedParams)


class CachedRecord(BaseModel):
    """A refreshed URL and the moment its signature stops being valid."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    href: str
    expires_at: datetime = Field(..., alias="expires")

    @field_validator("expires_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_json(self) -> str:
        """Serialize in the durable store format."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> CachedRecord:
        return cls.model_validate_json(data)


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of a successful resolution."""

    href: str
    expires_at: datetime
    tier: Tier
    background: tuple[DeferredWrite, ...] = ()


@dataclass
class ResponseIntent:
    """Normalized response handed to the HTTP adapter."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    media_type: str | None = None
    background: list[DeferredWrite] = field(default_factory=list)
