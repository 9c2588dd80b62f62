"""
Tests for interview context resolution (cache first, then metadata provider).
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from httpx import Response

from core import settings
from services.interview_metadata import (
    fetch_interview,
    resolve_position,
    resolve_user_name,
)
from services.weave_tracing import get_recent_traces

INTERVIEW_URL = f"{settings.interview_api_url}/abc123"

INTERVIEW_RESPONSE = {
    "id": "abc123",
    "role": "Backend Engineer",
    "type": "Technical",
    "level": "Senior",
    "techstack": ["python", "postgres"],
    "createdAt": "2025-01-01T00:00:00Z",
}


class TestFetchInterview:
    @pytest.mark.asyncio
    async def test_returns_metadata(self, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json=INTERVIEW_RESPONSE)
        )

        interview = await fetch_interview("abc123")

        assert interview.role == "Backend Engineer"
        assert interview.techstack == ["python", "postgres"]

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(404, json={"error": "Not found"})
        )

        assert await fetch_interview("abc123") is None

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(500, json={"error": "boom"})
        )

        assert await fetch_interview("abc123") is None

        trace = get_recent_traces(operation="fetch_interview")[-1]
        assert trace["success"] is False
        assert trace["error"] == "HTTP 500"

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            side_effect=httpx.TimeoutException("Timeout")
        )

        assert await fetch_interview("abc123") is None

    @pytest.mark.asyncio
    async def test_null_body_returns_none(self, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json=None)
        )

        assert await fetch_interview("abc123") is None

    @pytest.mark.asyncio
    async def test_unexpected_payload_returns_none(self, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json=["not", "an", "interview"])
        )

        assert await fetch_interview("abc123") is None


class TestResolvePosition:
    @pytest.mark.asyncio
    async def test_cache_miss_uses_provider_role(self, mock_cache, mock_interview_api):
        route = mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json=INTERVIEW_RESPONSE)
        )

        position = await resolve_position("abc123")

        assert position == "Backend Engineer"
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_cached_position_wins(self, mock_cache, mock_interview_api):
        mock_cache["interview_position_abc123"] = "Data Scientist"
        route = mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json=INTERVIEW_RESPONSE)
        )

        position = await resolve_position("abc123")

        assert position == "Data Scientist"
        assert route.call_count == 0

        trace = get_recent_traces(operation="resolve_position")[-1]
        assert trace["metadata"]["cache_hit"] is True

    @pytest.mark.asyncio
    async def test_empty_cached_position_falls_through(self, mock_cache, mock_interview_api):
        mock_cache["interview_position_abc123"] = ""
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json=INTERVIEW_RESPONSE)
        )

        assert await resolve_position("abc123") == "Backend Engineer"

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_position_empty(self, mock_cache, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(500, json={"error": "boom"})
        )

        assert await resolve_position("abc123") == ""

    @pytest.mark.asyncio
    async def test_missing_role_leaves_position_empty(self, mock_cache, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json={"id": "abc123", "role": None})
        )

        assert await resolve_position("abc123") == ""

    @pytest.mark.asyncio
    async def test_cache_outage_is_a_miss(self, mock_interview_api):
        mock_interview_api.get(INTERVIEW_URL).mock(
            return_value=Response(200, json=INTERVIEW_RESPONSE)
        )
        failing = AsyncMock(side_effect=ConnectionError("redis down"))

        with patch("services.interview_metadata.get_cached_value", new=failing):
            position = await resolve_position("abc123")

        assert position == "Backend Engineer"


class TestResolveUserName:
    @pytest.mark.asyncio
    async def test_cached_name(self, mock_cache):
        mock_cache["interview_user_name_abc123"] = "Ada Lovelace"

        assert await resolve_user_name("abc123") == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_default_name(self, mock_settings, mock_cache):
        assert await resolve_user_name("abc123") == "Demo User"
