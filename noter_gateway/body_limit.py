"""ASGI middleware capping request bodies per path before the body is parsed."""

import logging
from dataclasses import dataclass

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BodyLimit:
    max_bytes: int
    message: str


class BodySizeLimitMiddleware:
    """Reject bodies over the limit configured for their path with a 400 ``{"error": ...}``.

    An advertised ``Content-Length`` over the limit is refused without reading
    the body. Otherwise the stream is counted and cut off as soon as it passes
    the limit; the app then sees a disconnect and its response is replaced.
    """

    def __init__(self, app: ASGIApp, limits: dict[str, BodyLimit]) -> None:
        self.app = app
        self.limits = limits

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        limit = self.limits.get(scope["path"]) if scope["type"] == "http" else None
        if limit is None:
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit.max_bytes:
            logger.info("Refused %s byte body on %s", content_length, scope["path"])
            await self._reject(limit, scope, receive, send)
            return

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            if exceeded:
                return {"type": "http.disconnect"}
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit.max_bytes:
                    exceeded = True
                    return {"type": "http.disconnect"}
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if exceeded and not response_started:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        await self.app(scope, limited_receive, guarded_send)
        if exceeded and not response_started:
            logger.info("Cut off streamed body over %s bytes on %s", limit.max_bytes, scope["path"])
            await self._reject(limit, scope, receive, send)

    @staticmethod
    async def _reject(limit: BodyLimit, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse({"error": limit.message}, status_code=400)
        await response(scope, receive, send)
