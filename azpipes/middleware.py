"""Request logging and error handling middleware.

Both are pure ASGI middleware (not BaseHTTPMiddleware) so responses are
never buffered.
"""

from __future__ import annotations

import logging
import time

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.types import ASGIApp, Receive, Scope, Send

from azpipes.errors import ConfigurationError
from azpipes.schemas import ErrorResponse

logger = logging.getLogger("azpipes.middleware")


class LoggingMiddleware:
    """Pure ASGI logging middleware."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        method = scope.get("method", "")
        start_time = time.time()
        logger.info("Request: %s %s", method, path)

        status_code = 0

        async def send_wrapper(message: dict) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        await self.app(scope, receive, send_wrapper)

        duration = time.time() - start_time
        logger.info(
            "Response: %s %s - Status: %d - Duration: %.3fs",
            method, path, status_code, duration,
        )


def _error_response(status_code: int, error: str, detail) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


class ErrorHandlingMiddleware:
    """Pure ASGI error-handling middleware."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: dict) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except ValidationError as exc:
            if response_started:
                raise
            logger.warning("Invalid action input (%d errors)", exc.error_count())
            resp = _error_response(
                status.HTTP_400_BAD_REQUEST,
                "Validation Error",
                exc.errors(include_url=False, include_context=False),
            )
            await resp(scope, receive, send)
        except ConfigurationError as exc:
            if response_started:
                raise
            logger.warning("Configuration error: %s", str(exc))
            resp = _error_response(
                status.HTTP_400_BAD_REQUEST, "Configuration Error", str(exc)
            )
            await resp(scope, receive, send)
        except Exception as exc:
            if response_started:
                raise
            logger.exception("Unhandled exception: %s", str(exc))
            resp = _error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal Server Error",
                "An unexpected error occurred",
            )
            await resp(scope, receive, send)
