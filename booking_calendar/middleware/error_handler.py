# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Global error handling middleware for consistent error responses."""

import logging
from collections.abc import Awaitable, Callable

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling and logging.

    Catches unhandled exceptions and converts them to a generic JSON 500
    without exposing internal details.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and handle any exceptions.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response.
        """
        try:
            return await call_next(request)
        except HTTPException as e:
            return create_error_response(e.status_code, str(e.detail), "http_error")
        except Exception:
            logger.exception(
                "Unhandled exception for %s %s", request.method, request.url.path
            )
            return create_error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An internal error occurred. Please try again later.",
                "internal_error",
            )


def create_error_response(
    status_code: int,
    message: str,
    error_type: str = "error",
) -> JSONResponse:
    """Create a standardized error response.

    Args:
        status_code: HTTP status code.
        message: User-facing error message.
        error_type: Error type identifier.

    Returns:
        JSONResponse with error details.
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "type": error_type,
        },
    )
