"""
Traces dashboard API: call submission and interview lookup metrics.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Query

from services.weave_tracing import (
    get_performance_summary,
    get_recent_traces,
    get_improvement_data,
)
from core import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/traces")
async def get_traces_dashboard():
    """
    Get the full traces dashboard data.

    Returns aggregate metrics, improvement data, and recent traces.
    """
    return {
        "project": settings.weave_project,
        "weave_enabled": bool(settings.wandb_api_key),
        "performance": get_performance_summary(),
        "improvement": get_improvement_data(),
        "recent_traces": get_recent_traces(limit=10),
    }


@router.get("/traces/performance")
async def get_performance():
    """Get aggregate performance metrics across all operations."""
    return get_performance_summary()


@router.get("/traces/improvement")
async def get_improvement():
    """Acceptance rate and latency of recent call requests versus early ones."""
    return get_improvement_data()


@router.get("/traces/recent")
async def get_recent(
    operation: Optional[str] = Query(None, description="Filter by operation type"),
    limit: int = Query(20, ge=1, le=100, description="Number of traces to return"),
):
    """Get recent traces, optionally filtered by operation type."""
    return get_recent_traces(operation=operation, limit=limit)


@router.get("/traces/calls")
async def get_call_traces():
    """Call-request traces and insights."""
    calls = get_recent_traces(operation="submit_call_request", limit=50)
    lookups = get_recent_traces(operation="fetch_interview", limit=20)
    performance = get_performance_summary()

    return {
        "call_insights": performance.get("call_insights", {}),
        "position_insights": performance.get("position_insights", {}),
        "recent_calls": calls[-10:],
        "recent_interview_lookups": lookups[-5:],
        "total_calls": len(calls),
    }
