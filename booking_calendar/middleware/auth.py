# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Authentication middleware for bearer session tokens."""

import logging
from collections.abc import Awaitable, Callable

from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from booking_calendar.config import get_settings
from booking_calendar.middleware.error_handler import create_error_response
from booking_calendar.services.auth_service import (
    ROLE_OWNER,
    AuthenticationError,
    verify_token,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Paths that don't require authentication
PUBLIC_PATHS = frozenset(
    {
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/api/auth/login",
    }
)


def is_public_path(path: str) -> bool:
    """Check if a path is public (no auth required).

    Args:
        path: Request path to check.

    Returns:
        True if path is public.
    """
    return path in PUBLIC_PATHS or path.startswith("/docs/")


def _unauthorized(message: str) -> Response:
    response = create_error_response(
        status.HTTP_401_UNAUTHORIZED, message, error_type="unauthorized"
    )
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce session authentication.

    In standalone mode, every request is treated as the owner.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and enforce authentication.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response, or 401 when the session is missing or invalid.
        """
        settings = get_settings()
        path = request.url.path

        # Public paths don't require authentication
        if is_public_path(path):
            return await call_next(request)

        # Standalone mode bypasses authentication
        if settings.standalone_mode:
            logger.debug("Standalone mode: bypassing authentication for %s", path)
            request.state.user_role = ROLE_OWNER
            return await call_next(request)

        header = request.headers.get("Authorization", "")
        if not header.startswith(BEARER_PREFIX):
            logger.warning("Unauthorized access attempt to %s", path)
            return _unauthorized("Authentication required")

        try:
            session = verify_token(header[len(BEARER_PREFIX) :].strip())
        except AuthenticationError:
            logger.warning("Rejected session token for %s", path)
            return _unauthorized("Invalid or expired session")

        # Store role in request state for later use
        request.state.user_role = session.role
        logger.debug("Authenticated %s request to %s", session.role, path)

        return await call_next(request)


def get_current_role(request: Request) -> str | None:
    """Get the role of the current request.

    Args:
        request: Current HTTP request.

    Returns:
        ``owner``, ``staff`` or None if not authenticated.
    """
    return getattr(request.state, "user_role", None)


def require_owner(request: Request) -> str:
    """FastAPI dependency restricting an endpoint to the owner.

    Raises:
        HTTPException: 401 without a session, 403 for staff.
    """
    role = get_current_role(request)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    if role != ROLE_OWNER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner access required",
        )
    return role
