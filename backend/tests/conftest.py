"""
Pytest configuration and fixtures.
"""

from unittest.mock import AsyncMock, patch

import pytest
import respx

from core import settings


@pytest.fixture(autouse=True)
def clean_trace_store():
    """Every test starts with an empty trace store and no Redis persistence."""
    import services.weave_tracing as wt
    wt._trace_store.clear()
    wt._summary_cache = None
    with patch("services.weave_tracing._persist_trace_to_redis", new=AsyncMock()):
        yield
    wt._trace_store.clear()
    wt._summary_cache = None


@pytest.fixture(autouse=True)
def fresh_http_client():
    """Each test's event loop gets its own shared AsyncClient."""
    import core.http_client as hc
    hc._client = None
    yield
    hc._client = None


@pytest.fixture
def mock_settings(monkeypatch):
    """Pin the settings the tests depend on, whatever the environment says."""
    monkeypatch.setattr(settings, "demo_mode", False)
    monkeypatch.setattr(settings, "call_service_api_key", "")
    monkeypatch.setattr(settings, "default_user_id", "demo-user")
    monkeypatch.setattr(settings, "default_user_name", "Demo User")
    monkeypatch.setattr(settings, "assistant_name", "Interview Assistant")
    monkeypatch.setattr(settings, "assistant_voice_provider", "azure")
    monkeypatch.setattr(settings, "assistant_voice_id", "andrew")
    monkeypatch.setattr(settings, "assistant_model_provider", "anthropic")
    monkeypatch.setattr(settings, "assistant_model", "claude-3-opus-20240229")
    monkeypatch.setattr(settings, "wandb_api_key", "")
    yield settings


@pytest.fixture
def mock_call_service():
    """Mock the Outbound Call Service."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def mock_interview_api():
    """Mock the Interview Metadata Provider."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def mock_cache():
    """
    Replace the Redis-backed local cache with a dict.

    Tests fill the dict with interview_user_name_{id} / interview_position_{id} keys.
    """
    store = {}

    async def _get(key):
        return store.get(key) or None

    with patch("services.interview_metadata.get_cached_value", new=AsyncMock(side_effect=_get)):
        yield store


@pytest.fixture
def emitted():
    """Collects (view_id, event_type, data) tuples instead of pushing to Redis."""
    events = []

    async def _emit(view_id, event_type, data):
        events.append((view_id, event_type, data))

    with patch("services.controller.emit_event", new=AsyncMock(side_effect=_emit)):
        yield events

