from .weave_tracing import (
    get_performance_summary,
    get_recent_traces,
    get_improvement_data,
    get_trace_ctx,
    load_traces_from_redis,
)
from .call_request import (
    CallInFlightError,
    CallRequestError,
    EmptyPhoneNumberError,
    InvalidTransitionError,
    normalize_phone_number,
    transition,
)
from .call_service import build_call_request, submit_call_request
from .interview_metadata import fetch_interview, resolve_position, resolve_user_name
from .controller import (
    CallRequestController,
    ViewClosedError,
    open_view,
    get_view,
    close_view,
    close_all_views,
    evict_idle_views,
    sweep_idle_views,
)

__all__ = [
    "get_performance_summary",
    "get_recent_traces",
    "get_improvement_data",
    "get_trace_ctx",
    "load_traces_from_redis",
    "CallInFlightError",
    "CallRequestError",
    "EmptyPhoneNumberError",
    "InvalidTransitionError",
    "normalize_phone_number",
    "transition",
    "build_call_request",
    "submit_call_request",
    "fetch_interview",
    "resolve_position",
    "resolve_user_name",
    "CallRequestController",
    "ViewClosedError",
    "open_view",
    "get_view",
    "close_view",
    "close_all_views",
    "evict_idle_views",
    "sweep_idle_views",
]
