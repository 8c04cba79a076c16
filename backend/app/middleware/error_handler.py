"""
Last-resort error handling for the API.

Written as plain ASGI rather than BaseHTTPMiddleware, which would break the
commit/rollback flow of yield dependencies like get_db_session().
"""
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.logging import get_logger

logger = get_logger(__name__)

SERVER_ERROR = {"success": False, "error": "Server error"}


class ErrorHandlerMiddleware:
    """
    Answers any unhandled exception with a 500 failure envelope.

    Internal details never reach the caller; they go to the log together
    with the request id. HTTPException passes through to FastAPI.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def track_start(message: Message) -> None:
            nonlocal started
            started = started or message["type"] == "http.response.start"
            await send(message)

        try:
            await self.app(scope, receive, track_start)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                error_type=type(e).__name__,
                path=scope.get("path"),
                request_id=scope.get("state", {}).get("request_id"),
            )
            # Too late to replace a response that is already streaming
            if started:
                raise
            await JSONResponse(SERVER_ERROR, status_code=500)(scope, receive, send)
