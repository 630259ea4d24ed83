"""CORS handling for the proxy endpoint."""

from __future__ import annotations

from collections.abc import Mapping

from cdnproxy.domain.models import ResponseIntent

ALLOWED_METHODS = "GET, OPTIONS"
PREFLIGHT_MAX_AGE = "86400"


def preflight_intent(headers: Mapping[str, str]) -> ResponseIntent:
    """Answer an OPTIONS request, as a CORS preflight when it looks like one."""
    origin = headers.get("origin")
    request_method = headers.get("access-control-request-method")
    request_headers = headers.get("access-control-request-headers")

    if origin is not None and request_method is not None and request_headers is not None:
        return ResponseIntent(
            status=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": ALLOWED_METHODS,
                "Access-Control-Allow-Headers": request_headers,
                "Access-Control-Max-Age": PREFLIGHT_MAX_AGE,
            },
        )
    return ResponseIntent(status=200, headers={"Allow": ALLOWED_METHODS})


def with_cors(headers: Mapping[str, str], intent: ResponseIntent) -> ResponseIntent:
    """Echo the request Origin so browsers accept the response."""
    origin = headers.get("origin")
    if origin:
        intent.headers["Access-Control-Allow-Origin"] = origin
    return intent
