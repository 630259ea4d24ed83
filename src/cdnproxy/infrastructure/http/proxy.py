"""Proxy endpoint: redirect to a live URL for the attachment given after ``?``."""

from __future__ import annotations

import json

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import Response

from cdnproxy.application.use_cases import ResolveAttachmentUseCase
from cdnproxy.domain.models import ResponseIntent
from cdnproxy.infrastructure.http.cors import preflight_intent, with_cors

router = APIRouter()


def get_use_case(request: Request) -> ResolveAttachmentUseCase:
    return request.app.state.resolve_use_case


def to_response(intent: ResponseIntent) -> Response:
    """Render a response intent as a Starlette response."""
    body = intent.body
    media_type = intent.media_type
    if media_type == "application/json" and not isinstance(body, (bytes, str)):
        body = json.dumps(body, default=str)
    return Response(
        content=body if body is not None else b"",
        status_code=intent.status,
        headers=intent.headers,
        media_type=media_type,
    )


@router.get("/")
async def proxy_attachment(request: Request, background_tasks: BackgroundTasks) -> Response:
    """Resolve the attachment URL after ``?`` and redirect to it."""
    intent = await get_use_case(request).execute(str(request.url))
    intent = with_cors(request.headers, intent)

    for deferred in intent.background:
        background_tasks.add_task(deferred)

    return to_response(intent)


@router.options("/")
async def proxy_options(request: Request) -> Response:
    """CORS preflight."""
    return to_response(preflight_intent(request.headers))
