"""
Request ID middleware for tracing.

Pure ASGI (not BaseHTTPMiddleware) so that generator dependencies such as
get_db_session() keep their commit/rollback semantics.
"""
import uuid

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = b"x-request-id"


class RequestIdMiddleware:
    """
    Tags every HTTP request with an ID, taken from X-Request-ID when the
    caller supplies one. The ID is bound into the structlog context together
    with method and path, stored on request.state and echoed back.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        raw_id = headers.get(REQUEST_ID_HEADER)
        request_id = raw_id.decode("latin-1") if raw_id else str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=scope.get("method", ""),
            path=scope.get("path", ""),
        )

        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append([REQUEST_ID_HEADER, request_id.encode("latin-1")])
                message = {**message, "headers": response_headers}
            await send(message)

        await self.app(scope, receive, send_with_request_id)
