"""ASGI middleware capping request body size."""

from __future__ import annotations

import structlog
from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from stl_upload.config import settings

logger = structlog.get_logger(__name__)

TOO_LARGE = "Request body too large"


class BodySizeLimitMiddleware:
    """Reject bodies larger than ``settings.max_body_bytes`` with a 413.

    A declared Content-Length is checked up front. Bodies without one
    (chunked) are counted as they are received; the route's body read then
    fails with a 413 ``HTTPException`` rendered by the app's handlers.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = settings.max_body_bytes
        path = scope.get("path", "")
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            logger.warning("request_too_large", path=path, content_length=int(content_length))
            response = JSONResponse(status_code=413, content={"error": TOO_LARGE})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning("request_too_large", path=path, received_bytes=received)
                    raise HTTPException(status_code=413, detail=TOO_LARGE)
            return message

        await self.app(scope, limited_receive, send)
