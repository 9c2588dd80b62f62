"""
Tests for the traces dashboard API endpoints.

Covers:
- GET /api/traces (dashboard)
- GET /api/traces/performance
- GET /api/traces/improvement
- GET /api/traces/recent (with filtering)
- GET /api/traces/calls
"""

import pytest
from fastapi.testclient import TestClient

from main import app
from services.weave_tracing import (
    log_trace,
    log_call_request,
    log_interview_fetch,
    log_position_resolution,
)


@pytest.fixture
def client():
    return TestClient(app)


def _log_calls(outcomes):
    for i, accepted in enumerate(outcomes):
        log_call_request(
            interview_id=f"interview-{i}",
            phone_number="+15551234567",
            accepted=accepted,
            duration=1.0,
            error=None if accepted else "Invalid number",
        )


class TestTracesDashboard:
    def test_empty_dashboard(self, client):
        resp = client.get("/api/traces")
        assert resp.status_code == 200
        data = resp.json()
        assert "performance" in data
        assert "improvement" in data
        assert "recent_traces" in data
        assert data["performance"]["total_traces"] == 0

    def test_dashboard_with_data(self, client):
        log_trace("test_op", success=True, duration_seconds=1.0)
        log_trace("test_op", success=False, error="err", duration_seconds=0.5)

        resp = client.get("/api/traces")
        data = resp.json()
        assert data["performance"]["total_traces"] == 2
        assert len(data["recent_traces"]) == 2


class TestPerformanceEndpoint:
    def test_empty(self, client):
        resp = client.get("/api/traces/performance")
        assert resp.status_code == 200
        assert resp.json()["total_traces"] == 0

    def test_with_operations(self, client):
        _log_calls([True])
        log_interview_fetch(interview_id="abc123", found=True, duration=0.2, role="QA")

        resp = client.get("/api/traces/performance")
        data = resp.json()
        assert data["total_traces"] == 2
        assert "submit_call_request" in data["operations"]
        assert "fetch_interview" in data["operations"]


class TestImprovementEndpoint:
    def test_insufficient_data(self, client):
        resp = client.get("/api/traces/improvement")
        assert resp.status_code == 200
        assert "message" in resp.json()

    def test_with_requests(self, client):
        _log_calls([False, False, True, True])

        resp = client.get("/api/traces/improvement")
        data = resp.json()
        assert "early_requests" in data
        assert "recent_requests" in data
        assert data["total_requests_analyzed"] == 4
        assert data["improvement"]["improving"] is True


class TestRecentEndpoint:
    def test_default_limit(self, client):
        for i in range(25):
            log_trace(f"op_{i}", success=True)

        resp = client.get("/api/traces/recent")
        assert resp.status_code == 200
        assert len(resp.json()) == 20  # Default limit

    def test_custom_limit(self, client):
        for i in range(10):
            log_trace(f"op_{i}", success=True)

        resp = client.get("/api/traces/recent?limit=5")
        assert len(resp.json()) == 5

    def test_filter_by_operation(self, client):
        log_trace("alpha", success=True)
        log_trace("beta", success=True)
        log_trace("alpha", success=False)

        resp = client.get("/api/traces/recent?operation=alpha")
        data = resp.json()
        assert len(data) == 2
        assert all(t["operation"] == "alpha" for t in data)

    def test_invalid_limit_rejected(self, client):
        resp = client.get("/api/traces/recent?limit=0")
        assert resp.status_code == 422

        resp = client.get("/api/traces/recent?limit=101")
        assert resp.status_code == 422


class TestCallsEndpoint:
    def test_empty(self, client):
        resp = client.get("/api/traces/calls")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_calls"] == 0
        assert data["call_insights"] == {}

    def test_with_call_data(self, client):
        _log_calls([True, False])
        log_interview_fetch(interview_id="abc123", found=True, duration=0.2, role="Backend Engineer")
        log_position_resolution(
            interview_id="abc123", position="Backend Engineer", cache_hit=False, duration=0.2,
        )

        resp = client.get("/api/traces/calls")
        data = resp.json()
        assert data["total_calls"] == 2
        assert data["call_insights"]["accepted"] == 1
        assert data["call_insights"]["rejected"] == 1
        assert data["position_insights"]["cache_hits"] == 0
        assert len(data["recent_interview_lookups"]) == 1
