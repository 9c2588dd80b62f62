"""
Interview page API.

A "view" is the server side of one opened interview page: it starts on the
modality choice, and for a phone callback walks through phone entry, call
submission and the calling notice.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from core.rate_limit import limiter, SUBMIT_RATE_LIMIT
from core.sse import create_sse_stream, format_sse
from models import SelectRequest, SubmitRequest, ViewResponse
from services.call_request import (
    CallRequestError,
    EmptyPhoneNumberError,
)
from services.controller import (
    CallRequestController,
    close_view,
    get_view,
    open_view,
)

logger = logging.getLogger(__name__)

router = APIRouter()

VIEW_TERMINAL_EVENTS = ["handoff", "closed", "error"]


def _require_view(view_id: str) -> CallRequestController:
    controller = get_view(view_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="View not found")
    return controller


def _to_http_error(error: CallRequestError) -> HTTPException:
    if isinstance(error, EmptyPhoneNumberError):
        return HTTPException(status_code=422, detail=str(error))
    # In-flight call, wrong phase or closed view
    return HTTPException(status_code=409, detail=str(error))


@router.post("/{interview_id}/views", response_model=ViewResponse)
async def create_view(interview_id: str) -> ViewResponse:
    """
    Open the interview page.

    Resolves the user name and position (cache first, then the interview
    metadata provider) and returns the modality-choice view.
    """
    controller = await open_view(interview_id)
    return controller.to_response()


@router.get("/views/{view_id}", response_model=ViewResponse)
async def read_view(view_id: str) -> ViewResponse:
    """Get the current view."""
    return _require_view(view_id).to_response()


@router.post("/views/{view_id}/select", response_model=ViewResponse)
async def select_modality(view_id: str, body: SelectRequest) -> ViewResponse:
    """Pick "immediate" (hand-off to the agent) or "phone_callback"."""
    controller = _require_view(view_id)
    try:
        await controller.select(body.modality)
    except CallRequestError as e:
        raise _to_http_error(e)
    return controller.to_response()


@router.post("/views/{view_id}/back", response_model=ViewResponse)
async def go_back(view_id: str) -> ViewResponse:
    """Leave the phone form and return to the modality choice."""
    controller = _require_view(view_id)
    try:
        await controller.back()
    except CallRequestError as e:
        raise _to_http_error(e)
    return controller.to_response()


@router.post("/views/{view_id}/submit", response_model=ViewResponse)
@limiter.limit(SUBMIT_RATE_LIMIT)
async def submit_phone_number(
    request: Request,
    view_id: str,
    body: SubmitRequest,
) -> ViewResponse:
    """
    Request a phone call.

    Waits for the Outbound Call Service. A rejected call is not an HTTP
    error: the returned view is the phone form with the inline error.
    """
    controller = _require_view(view_id)
    try:
        await controller.submit(body.phone_number)
    except CallRequestError as e:
        raise _to_http_error(e)
    return controller.to_response()


@router.delete("/views/{view_id}")
async def delete_view(view_id: str):
    """Close the view and cancel its calling-notice timer."""
    if not await close_view(view_id):
        raise HTTPException(status_code=404, detail="View not found")
    return {"status": "closed", "view_id": view_id}


@router.get("/views/{view_id}/stream")
async def stream_view(view_id: str, request: Request):
    """
    SSE endpoint for view updates.

    Events emitted:
    - view_start: Current view when the stream opens
    - state: Every state transition
    - handoff: Immediate interview chosen (ends the stream)
    - closed: View torn down (ends the stream)
    - error: Stream failure
    """
    controller = _require_view(view_id)
    initial = controller.to_response()

    return create_sse_stream(
        view_id=view_id,
        request=request,
        terminal_events=VIEW_TERMINAL_EVENTS,
        initial_data=format_sse("view_start", initial.model_dump(mode="json")),
    )
