"""
Interview context resolution.

Position is resolved with a fixed precedence: the local cache
(interview_position_{id}) first, then the Interview Metadata Provider's `role`,
then "". The user name comes from the cache or the configured default.
Every failure here is logged and treated as "nothing found".
"""

import logging
import time
from typing import Optional

import httpx
from pydantic import ValidationError

from core import get_http_client, settings
from core.redis_client import get_cached_value, position_key, user_name_key
from models import InterviewMetadata
from services.weave_tracing import (
    traced,
    get_trace_ctx,
    log_interview_fetch,
    log_position_resolution,
)

logger = logging.getLogger(__name__)


async def _read_cache(key: str) -> Optional[str]:
    try:
        return await get_cached_value(key)
    except Exception as e:
        logger.warning(f"[INTERVIEW] Cache read failed for {key}: {e}")
        return None


async def lookup_cached_position(interview_id: str) -> Optional[str]:
    """Step 1 of position resolution."""
    return await _read_cache(position_key(interview_id))


async def lookup_cached_user_name(interview_id: str) -> Optional[str]:
    return await _read_cache(user_name_key(interview_id))


def _log_fetch(*, result, duration, error, args, kwargs, ctx):
    """Log callback for fetch_interview."""
    interview_id = args[0] if args else kwargs.get("interview_id", "")
    log_interview_fetch(
        interview_id=interview_id,
        found=result is not None,
        duration=duration,
        role=result.role if result else None,
        error=error or ctx.get("error"),
    )


@traced("fetch_interview", log_fn=_log_fetch)
async def fetch_interview(interview_id: str) -> Optional[InterviewMetadata]:
    """
    Step 2 of position resolution: ask the Interview Metadata Provider.

    Returns:
        InterviewMetadata, or None when the interview is unknown or the
        provider fails.
    """
    url = f"{settings.interview_api_url.rstrip('/')}/{interview_id}"

    try:
        client = await get_http_client()
        response = await client.get(url)
    except httpx.HTTPError as e:
        logger.error(f"[INTERVIEW] Error fetching interview {interview_id}: {type(e).__name__}: {e}")
        get_trace_ctx()["error"] = str(e) or type(e).__name__
        return None

    if response.status_code == 404:
        logger.info(f"[INTERVIEW] Interview not found: {interview_id}")
        return None

    if not response.is_success:
        logger.error(f"[INTERVIEW] Error fetching interview {interview_id}: HTTP {response.status_code}")
        get_trace_ctx()["error"] = f"HTTP {response.status_code}"
        return None

    try:
        body = response.json()
    except ValueError as e:
        logger.error(f"[INTERVIEW] Malformed interview payload for {interview_id}: {e}")
        get_trace_ctx()["error"] = "malformed payload"
        return None

    if not body:
        return None

    try:
        return InterviewMetadata.model_validate(body)
    except ValidationError as e:
        logger.error(f"[INTERVIEW] Unexpected interview payload for {interview_id}: {e}")
        get_trace_ctx()["error"] = "unexpected payload"
        return None


async def resolve_position(interview_id: str) -> str:
    """Cache, then provider, then empty string."""
    start = time.time()

    cached = await lookup_cached_position(interview_id)
    if cached:
        log_position_resolution(
            interview_id=interview_id,
            position=cached,
            cache_hit=True,
            duration=time.time() - start,
        )
        return cached

    interview = await fetch_interview(interview_id)
    position = (interview.role if interview else None) or ""

    log_position_resolution(
        interview_id=interview_id,
        position=position,
        cache_hit=False,
        duration=time.time() - start,
    )
    if not position:
        logger.info(f"[INTERVIEW] No position resolved for {interview_id}")
    return position


async def resolve_user_name(interview_id: str) -> str:
    return await lookup_cached_user_name(interview_id) or settings.default_user_name
