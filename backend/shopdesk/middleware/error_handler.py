"""
Global error handling middleware.

Uses pure ASGI middleware (not BaseHTTPMiddleware) so the store dependency
chain is never run inside a separate task.
"""
import json

from fastapi import HTTPException
from starlette.types import ASGIApp, Receive, Scope, Send

from shopdesk.core.errors import PersistenceError, ShopDeskError
from shopdesk.core.logging import get_logger

logger = get_logger(__name__)


class ErrorHandlerMiddleware:
    """
    Pure ASGI error handler.

    ``ShopDeskError`` becomes a JSON response with the error's own status
    code and message; anything else unhandled becomes a JSON 500.
    HTTPException passes through to FastAPI unchanged.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            if isinstance(e, HTTPException):
                raise

            if response_started:
                # Headers already sent, can't change the response
                logger.exception(
                    "Unhandled exception after response started",
                    error=str(e),
                    path=scope.get("path", "unknown"),
                )
                raise

            if isinstance(e, ShopDeskError):
                status = e.status_code
                detail = e.message
                log = logger.error if isinstance(e, PersistenceError) else logger.warning
                log(
                    "Request failed",
                    error=detail,
                    error_type=type(e).__name__,
                    status=status,
                    path=scope.get("path", "unknown"),
                )
            else:
                status = 500
                detail = "Internal server error"
                logger.exception(
                    "Unhandled exception",
                    error=str(e),
                    path=scope.get("path", "unknown"),
                )

            body = json.dumps({
                "detail": detail,
                "type": type(e).__name__,
            }).encode("utf-8")

            await send({
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            })
            await send({
                "type": "http.response.body",
                "body": body,
            })
