"""
Redis client for the local key-value cache and view event queues.

The cache is read-only from this service: the surrounding application writes
the interview-scoped keys when the user first enters their details.
"""

import json
from typing import Optional
import redis.asyncio as redis
from .config import settings

# Singleton client instance
_redis_client: Optional[redis.Redis] = None

USER_NAME_KEY = "interview_user_name_{interview_id}"
POSITION_KEY = "interview_position_{interview_id}"


async def get_redis_client() -> redis.Redis:
    """
    Get the shared Redis client.
    Creates a new client if one doesn't exist.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis_client() -> None:
    """Close the Redis client."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


# Local cache lookups

def user_name_key(interview_id: str) -> str:
    return USER_NAME_KEY.format(interview_id=interview_id)


def position_key(interview_id: str) -> str:
    return POSITION_KEY.format(interview_id=interview_id)


async def get_cached_value(key: str) -> Optional[str]:
    """Read a cached string. Empty strings count as missing."""
    client = await get_redis_client()
    value = await client.get(key)
    return value or None


# View event queue helpers

async def push_event(view_id: str, event: dict) -> None:
    """Push an event to a view's event queue."""
    client = await get_redis_client()
    await client.rpush(
        f"events:{view_id}",
        json.dumps(event, default=str),
    )
    # Set TTL on the queue
    await client.expire(f"events:{view_id}", settings.view_ttl_seconds)


async def pop_event(view_id: str, timeout: int = 30) -> Optional[dict]:
    """Pop an event from a view's event queue (blocking)."""
    client = await get_redis_client()
    result = await client.blpop(f"events:{view_id}", timeout=timeout)
    if result:
        _, data = result
        return json.loads(data)
    return None

