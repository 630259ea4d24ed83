"""Domain models and entities."""

from cdnproxy.domain.errors import (
    ChannelNotAllowed,
    CdnProxyError,
    CredentialMissing,
    InternalFault,
    InvalidRequest,
    UpstreamResponseUnexpected,
    UpstreamUnavailable,
)
from cdnproxy.domain.models import (
    AttachmentReference,
    CachedRecord,
    ResolveResult,
    ResponseIntent,
    SignedParams,
    Tier,
)

__all__ = [
    # Models
    "AttachmentReference",
    "CachedRecord",
    "ResolveResult",
    "ResponseIntent",
    "SignedParams",
    "Tier",
    # Errors
    "CdnProxyError",
    "ChannelNotAllowed",
    "CredentialMissing",
    "InternalFault",
    "InvalidRequest",
    "UpstreamResponseUnexpected",
    "UpstreamUnavailable",
]
