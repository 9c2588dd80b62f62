"""
Server-Sent Events for view updates.

Controllers push events onto a per-view Redis list (see core.events); the
stream endpoint drains that list and relays it to the browser until a
terminal event arrives or the client goes away.
"""

import asyncio
import json
import logging
from typing import AsyncGenerator, Iterable, Optional

from fastapi import Request
from fastapi.responses import StreamingResponse

from core.config import settings
from core.redis_client import pop_event

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

KEEPALIVE = ": keepalive\n\n"


def format_sse(event_type: str, data: dict) -> str:
    """Format data as an SSE event string."""
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"


async def relay_view_events(
    view_id: str,
    request: Request,
    terminal_events: Iterable[str],
    error_event: str = "error",
    first_event: Optional[str] = None,
) -> AsyncGenerator[str, None]:
    """
    Yield SSE frames for one view.

    A keepalive comment is sent whenever the queue stays empty for
    settings.sse_keepalive_seconds. Redis failures end the stream with
    an error_event frame.
    """
    terminal = set(terminal_events)

    if first_event:
        yield first_event

    while not await request.is_disconnected():
        try:
            event = await pop_event(view_id, timeout=settings.sse_keepalive_seconds)
        except asyncio.CancelledError:
            logger.info(f"[VIEW] Stream cancelled for {view_id}")
            return
        except Exception as e:
            logger.error(f"[VIEW] Stream error for {view_id}: {e}")
            yield format_sse(error_event, {"message": str(e)})
            return

        if not event:
            yield KEEPALIVE
            continue

        event_type = event.get("event", "message")
        yield format_sse(event_type, event.get("data", {}))

        if event_type in terminal:
            logger.info(f"[VIEW] Stream ended for {view_id}: {event_type}")
            return

    logger.info(f"[VIEW] Client disconnected from stream: {view_id}")


def create_sse_stream(
    view_id: str,
    request: Request,
    terminal_events: Iterable[str],
    error_event: str = "error",
    initial_data: Optional[str] = None,
) -> StreamingResponse:
    """Wrap relay_view_events in a text/event-stream response."""
    return StreamingResponse(
        relay_view_events(
            view_id,
            request,
            terminal_events,
            error_event=error_event,
            first_event=initial_data,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
