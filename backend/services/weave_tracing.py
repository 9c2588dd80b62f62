"""
W&B Weave tracing integration.

Provides safe, non-blocking tracing decorators and structured outcome logging
for call submissions and interview metadata lookups.
All tracing is fire-and-forget: if W&B or Redis is down, the app works normally.
"""

import asyncio
import contextvars
import json
import time
import logging
import functools
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from core import settings

logger = logging.getLogger(__name__)

TRACES_KEY = "interview_call:traces"

# Track whether Weave is available
_weave_available = False
_weave = None

# Trace context: lets decorated functions pass path-dependent state
# (e.g. cache_hit, demo_mode) to their log_fn callback.
_trace_ctx: contextvars.ContextVar[Optional[Dict[str, Any]]] = contextvars.ContextVar(
    "trace_ctx", default=None
)


def _init_weave():
    """Lazy-initialize Weave module reference."""
    global _weave_available, _weave
    if _weave is not None:
        return
    if settings.wandb_api_key:
        try:
            import weave
            _weave = weave
            _weave_available = True
        except ImportError:
            logger.warning("weave package not installed")
            _weave_available = False
    else:
        _weave_available = False


def get_trace_ctx() -> Dict[str, Any]:
    """
    Get the current trace context dict.

    Use inside a @traced function to pass path-dependent state to log_fn:
        get_trace_ctx()["cache_hit"] = True
    """
    ctx = _trace_ctx.get()
    if ctx is None:
        ctx = {}
        _trace_ctx.set(ctx)
    return ctx


def traced(name: str = None, log_fn: Callable = None):
    """
    Decorator adding Weave tracing and structured logging to async functions.

    Args:
        name: Operation name for traces. Defaults to function name.
        log_fn: Optional callback called after execution with signature
            log_fn(*, result, duration, error, args, kwargs, ctx).
            Without one, a generic trace is logged.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            _init_weave()

            op_name = name or func.__name__
            start_time = time.time()
            error_str = None
            result = None

            ctx: Dict[str, Any] = {}
            token = _trace_ctx.set(ctx)

            try:
                if _weave_available and _weave:
                    traced_fn = _weave.op(name=op_name)(func)
                    result = await traced_fn(*args, **kwargs)
                else:
                    result = await func(*args, **kwargs)
                return result

            except Exception as e:
                error_str = str(e)
                raise
            finally:
                duration = time.time() - start_time
                _trace_ctx.reset(token)

                try:
                    if log_fn:
                        log_fn(
                            result=result, duration=duration, error=error_str,
                            args=args, kwargs=kwargs, ctx=ctx,
                        )
                    else:
                        log_trace(
                            op_name,
                            success=error_str is None,
                            duration_seconds=duration,
                            error=error_str,
                        )
                except Exception as log_err:
                    logger.debug(f"Trace logging failed for {op_name}: {log_err}")

        return wrapper
    return decorator


# ==================== STRUCTURED OUTCOME STORAGE ====================

# In-memory trace store (hydrated from Redis on startup)
_trace_store: List[Dict[str, Any]] = []
MAX_TRACES = 500

# Invalidate-on-write cache for get_performance_summary()
_summary_cache: Optional[Dict[str, Any]] = None


def log_trace(
    operation: str,
    *,
    success: bool,
    duration_seconds: float = 0.0,
    input_data: Optional[Dict[str, Any]] = None,
    output_data: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
) -> None:
    """
    Log a structured trace for any operation.

    Args:
        operation: Name of the operation (e.g. "submit_call_request")
        success: Whether the operation succeeded
        duration_seconds: How long it took
        input_data: Input parameters
        output_data: Output/result data
        metadata: Additional structured metadata
        error: Error message if failed
    """
    global _summary_cache
    _summary_cache = None

    trace = {
        "operation": operation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "success": success,
        "duration_seconds": round(duration_seconds, 3),
        "input": input_data or {},
        "output": output_data or {},
        "metadata": metadata or {},
        "error": error,
    }

    _trace_store.append(trace)

    if len(_trace_store) > MAX_TRACES:
        _trace_store[:] = _trace_store[-MAX_TRACES:]

    _init_weave()
    if _weave_available and _weave:
        try:
            _weave.publish(trace, name=f"trace/{operation}")
        except Exception as e:
            logger.debug(f"Weave publish failed for {operation}: {e}")

    # Persist to Redis when called from inside the event loop
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    loop.create_task(_persist_trace_to_redis(trace))


async def _persist_trace_to_redis(trace: Dict[str, Any]) -> None:
    """Persist a trace to Redis so it survives restarts."""
    try:
        from core.redis_client import get_redis_client
        r = await get_redis_client()
        await r.lpush(TRACES_KEY, json.dumps(trace))
        await r.ltrim(TRACES_KEY, 0, 999)
    except Exception as e:
        logger.debug(f"Failed to persist trace to Redis: {e}")


async def load_traces_from_redis() -> None:
    """
    Hydrate the in-memory trace store from Redis.
    Called from the application lifespan handler.
    """
    try:
        from core.redis_client import get_redis_client
        r = await get_redis_client()

        raw_traces = await r.lrange(TRACES_KEY, 0, MAX_TRACES - 1)
        if not raw_traces:
            return

        loaded = []
        for raw in reversed(raw_traces):  # lpush stores newest first
            try:
                loaded.append(json.loads(raw))
            except (json.JSONDecodeError, TypeError):
                continue

        _trace_store.clear()
        _trace_store.extend(loaded)
        logger.info(f"Loaded {len(loaded)} traces from Redis")

    except Exception as e:
        logger.warning(f"Failed to load traces from Redis: {e}")


# ==================== DOMAIN-SPECIFIC LOG HELPERS ====================


def _mask_phone(phone_number: Optional[str]) -> Optional[str]:
    if not phone_number:
        return phone_number
    return phone_number[:3] + "***" + phone_number[-2:]


def log_call_request(
    *,
    interview_id: str,
    phone_number: str,
    accepted: bool,
    duration: float,
    call_id: Optional[str] = None,
    status_code: Optional[int] = None,
    demo_mode: bool = False,
    error: Optional[str] = None,
) -> None:
    """Log structured outcome for one Outbound Call Service submission."""
    log_trace(
        "submit_call_request",
        success=accepted,
        duration_seconds=duration,
        input_data={
            "interview_id": interview_id,
            "phone_number": _mask_phone(phone_number),
        },
        output_data={"call_id": call_id, "status_code": status_code},
        metadata={"accepted": accepted, "demo_mode": demo_mode},
        error=error,
    )


def log_interview_fetch(
    *,
    interview_id: str,
    found: bool,
    duration: float,
    role: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """Log structured outcome for an interview metadata lookup."""
    log_trace(
        "fetch_interview",
        success=error is None,
        duration_seconds=duration,
        input_data={"interview_id": interview_id},
        output_data={"found": found, "role": role},
        error=error,
    )


def log_position_resolution(
    *,
    interview_id: str,
    position: str,
    cache_hit: bool,
    duration: float,
) -> None:
    """Log which step of the cache-then-fetch pipeline resolved the position."""
    log_trace(
        "resolve_position",
        success=bool(position),
        duration_seconds=duration,
        input_data={"interview_id": interview_id},
        output_data={"position": position},
        metadata={"cache_hit": cache_hit},
    )


# ==================== AGGREGATES ====================


def _durations(traces: List[Dict[str, Any]]) -> List[float]:
    return [t["duration_seconds"] for t in traces if t["duration_seconds"] > 0]


def _rate(part: int, whole: int) -> float:
    return round(part / whole, 3) if whole else 0


def _operation_stats(traces: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Success counts and latency for one operation's traces."""
    successes = sum(1 for t in traces if t["success"])
    stats = {
        "total": len(traces),
        "successes": successes,
        "failures": len(traces) - successes,
        "success_rate": _rate(successes, len(traces)),
    }

    durations = _durations(traces)
    if durations:
        stats["avg_duration"] = round(sum(durations) / len(durations), 3)
        stats["min_duration"] = round(min(durations), 3)
        stats["max_duration"] = round(max(durations), 3)
    return stats


def _call_insights(requests: List[Dict[str, Any]]) -> Dict[str, Any]:
    accepted = sum(1 for t in requests if t["metadata"].get("accepted"))
    return {
        "total_requests": len(requests),
        "accepted": accepted,
        "rejected": len(requests) - accepted,
        "acceptance_rate": _rate(accepted, len(requests)),
        "demo_requests": sum(1 for t in requests if t["metadata"].get("demo_mode")),
    }


def _position_insights(resolutions: List[Dict[str, Any]]) -> Dict[str, Any]:
    hits = sum(1 for t in resolutions if t["metadata"].get("cache_hit"))
    return {
        "total_resolutions": len(resolutions),
        "cache_hits": hits,
        "cache_hit_rate": _rate(hits, len(resolutions)),
        "unresolved": sum(1 for t in resolutions if not t["success"]),
    }


def get_performance_summary() -> Dict[str, Any]:
    """
    Aggregate metrics per operation, plus call and position insights.
    Cached until the next log_trace().
    """
    global _summary_cache
    if _summary_cache is not None:
        return _summary_cache

    if not _trace_store:
        _summary_cache = {"total_traces": 0, "message": "No traces yet"}
        return _summary_cache

    by_operation: Dict[str, List[Dict[str, Any]]] = {}
    for trace in _trace_store:
        by_operation.setdefault(trace["operation"], []).append(trace)

    summary: Dict[str, Any] = {
        "total_traces": len(_trace_store),
        "operations": {
            op_name: _operation_stats(traces) for op_name, traces in by_operation.items()
        },
    }

    if "submit_call_request" in by_operation:
        summary["call_insights"] = _call_insights(by_operation["submit_call_request"])
    if "resolve_position" in by_operation:
        summary["position_insights"] = _position_insights(by_operation["resolve_position"])

    _summary_cache = summary
    return summary


def get_recent_traces(
    operation: Optional[str] = None,
    limit: int = 20,
) -> List[Dict[str, Any]]:
    """Get recent traces, optionally filtered by operation."""
    traces = _trace_store
    if operation:
        traces = [t for t in traces if t["operation"] == operation]
    return traces[-limit:]


def get_improvement_data() -> Dict[str, Any]:
    """
    Compare the first and second half of all call submissions:
    acceptance rate change and latency reduction.
    """
    requests = [t for t in _trace_store if t["operation"] == "submit_call_request"]
    if len(requests) < 2:
        return {"message": "Not enough call requests for improvement analysis"}

    def bucket(traces):
        accepted = sum(1 for t in traces if t["success"])
        durations = _durations(traces)
        return {
            "requests": len(traces),
            "accepted": accepted,
            "acceptance_rate": _rate(accepted, len(traces)),
            "avg_duration": round(sum(durations) / len(durations), 3) if durations else 0,
        }

    mid = len(requests) // 2
    early = bucket(requests[:mid])
    recent = bucket(requests[mid:])

    rate_change = recent["acceptance_rate"] - early["acceptance_rate"]
    duration_change = early["avg_duration"] - recent["avg_duration"]

    return {
        "early_requests": early,
        "recent_requests": recent,
        "improvement": {
            "acceptance_rate_change": round(rate_change, 3),
            "duration_reduction_seconds": round(duration_change, 3),
            "improving": rate_change > 0 or duration_change > 0,
        },
        "total_requests_analyzed": len(requests),
    }
