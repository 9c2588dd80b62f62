"""
Shared view event emission.
Controllers push state changes to the frontend via Redis.
"""

from datetime import datetime, timezone
from typing import Dict, Any

from core.redis_client import push_event


async def emit_event(view_id: str, event_type: str, data: Dict[str, Any]) -> None:
    """
    Emit an SSE event for a view.

    Args:
        view_id: View ID (used as the Redis queue key)
        event_type: Event type string (e.g. "state", "handoff", "closed")
        data: Event payload
    """
    await push_event(
        view_id,
        {
            "event": event_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
