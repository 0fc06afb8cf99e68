# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Tests for health and property directory endpoints."""

import os
from unittest.mock import patch

import pytest

from booking_calendar import __version__
from booking_calendar.config import get_settings


class TestHealth:
    """Tests for the health check."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test health reports status and version."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert "timestamp" in data
        assert data["lodgifyConfigured"] is True
        assert data["commentsBackendEnabled"] is True
        assert data["standaloneMode"] is True

    @pytest.mark.asyncio
    async def test_health_reports_missing_features(self, client):
        """Test an unset API key and disabled comments are reported."""
        env = {"LODGIFY_API_KEY": "", "COMMENTS_BACKEND_ENABLED": "false"}
        with patch.dict(os.environ, env, clear=False):
            get_settings.cache_clear()
            try:
                response = await client.get("/health")
            finally:
                get_settings.cache_clear()

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["lodgifyConfigured"] is False
        assert data["commentsBackendEnabled"] is False


class TestProperties:
    """Tests for the property directory endpoint."""

    @pytest.mark.asyncio
    async def test_list_properties(self, client):
        """Test the built-in table is listed with derived names."""
        response = await client.get("/api/properties")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 10
        first = data["properties"][0]
        assert first["id"] == 685237
        assert first["numeral"] == "IX"
        assert first["code"] == "Libertad2"
        assert first["display_name"] == "Libertad2_AtHomeInMadrid_IX"
