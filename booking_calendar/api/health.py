# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Liveness endpoint with a summary of the configured booking sources."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from booking_calendar import __version__
from booking_calendar.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Report liveness and which optional features are usable.

    No upstream calls are made; ``lodgifyConfigured`` only says a key is set.
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "version": __version__,
        "lodgifyConfigured": bool(settings.lodgify_api_key),
        "commentsBackendEnabled": settings.comments_backend_enabled,
        "standaloneMode": settings.standalone_mode,
    }
