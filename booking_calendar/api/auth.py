# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Login, logout and session introspection endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field

from booking_calendar.config import get_settings
from booking_calendar.middleware.auth import get_current_role
from booking_calendar.services.auth_service import AuthenticationError, login

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    """Request model for login."""

    password: str = Field(min_length=1, description="Owner or staff password")


class LoginResponse(BaseModel):
    """Response model for a successful login."""

    token: str = Field(description="Bearer session token")
    role: str = Field(description="Granted role: owner or staff")
    expires_in: int = Field(description="Token lifetime in seconds")


class SessionResponse(BaseModel):
    """Response model describing the current session."""

    authenticated: bool = Field(description="Whether a session is active")
    role: str | None = Field(default=None, description="Current role")


@router.post("/login", response_model=LoginResponse)
async def login_endpoint(body: LoginRequest) -> dict[str, Any]:
    """Exchange a password for a session token.

    Raises:
        HTTPException: 401 if the password is wrong.
    """
    try:
        role, token = login(body.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        ) from e
    return {
        "token": token,
        "role": role,
        "expires_in": get_settings().session_ttl_minutes * 60,
    }


@router.post("/logout")
async def logout_endpoint() -> dict[str, Any]:
    """Acknowledge logout; the client discards its token."""
    return {"success": True}


@router.get("/me", response_model=SessionResponse)
async def me_endpoint(request: Request) -> dict[str, Any]:
    """Report the role of the current session."""
    role = get_current_role(request)
    return {"authenticated": role is not None, "role": role}
