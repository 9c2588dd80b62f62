"""
Outbound Call Service client.

Builds the call-initiation request for a phone-callback interview and posts it
once. Never raises: rejections and transport failures come back as a
CallServiceResult with a user-facing error message.
"""

import logging
from typing import Any, Optional

import httpx

from core import get_http_client, settings
from models import (
    AssistantConfig,
    CallServiceResult,
    LanguageModelConfig,
    OutboundCallRequest,
    VoiceConfig,
)
from services.weave_tracing import traced, log_call_request, get_trace_ctx

logger = logging.getLogger(__name__)

FALLBACK_ERROR_MESSAGE = "Failed to initiate call"

FIRST_MESSAGE_TEMPLATE = (
    "Hello {user_name}! I'm your AI interviewer for the {position} position. "
    "Are you ready to begin the interview?"
)


def build_assistant_config(user_name: str, position: str) -> AssistantConfig:
    """Assistant descriptor from settings; only the greeting is interpolated."""
    return AssistantConfig(
        name=settings.assistant_name,
        first_message=FIRST_MESSAGE_TEMPLATE.format(user_name=user_name, position=position),
        voice=VoiceConfig(
            provider=settings.assistant_voice_provider,
            voice_id=settings.assistant_voice_id,
        ),
        model=LanguageModelConfig(
            provider=settings.assistant_model_provider,
            model=settings.assistant_model,
        ),
    )


def build_call_request(
    phone_number: str,
    user_name: str,
    user_id: str,
    interview_id: str,
    position: str,
) -> OutboundCallRequest:
    """
    Build the call-initiation request.

    Args:
        phone_number: Already normalized number (leading '+')
        user_name: Display name the assistant greets
        user_id: Caller's user identifier
        interview_id: Interview the call belongs to
        position: Role being interviewed for (may be empty)
    """
    return OutboundCallRequest(
        phone_number=phone_number,
        user_name=user_name,
        user_id=user_id,
        interview_id=interview_id,
        position=position,
        assistant=build_assistant_config(user_name, position),
    )


def extract_error_message(body: Any) -> Optional[str]:
    """
    Pull a human-readable message out of an error body.

    Accepts {"error": "..."}, {"error": {"message": "..."}} and {"message": "..."}.
    """
    if not isinstance(body, dict):
        return None

    error = body.get("error")
    if isinstance(error, str) and error.strip():
        return error
    if isinstance(error, dict):
        nested = error.get("message")
        if isinstance(nested, str) and nested.strip():
            return nested

    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return None


def _extract_call_id(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    call_id = body.get("id") or body.get("callId")
    return str(call_id) if call_id else None


def _log_submit(*, result, duration, error, args, kwargs, ctx):
    """Log callback for submit_call_request."""
    request = args[0] if args else kwargs.get("request")
    log_call_request(
        interview_id=request.interview_id if request else "",
        phone_number=request.phone_number if request else "",
        accepted=bool(result and result.success),
        duration=duration,
        call_id=result.call_id if result else None,
        status_code=result.status_code if result else None,
        demo_mode=ctx.get("demo_mode", False),
        error=error or (result.error if result else None),
    )


@traced("submit_call_request", log_fn=_log_submit)
async def submit_call_request(request: OutboundCallRequest) -> CallServiceResult:
    """
    POST the request to the Outbound Call Service.

    Returns:
        CallServiceResult: success on any 2xx; otherwise the message from the
        response body, or FALLBACK_ERROR_MESSAGE.
    """
    if settings.demo_mode:
        get_trace_ctx()["demo_mode"] = True
        logger.info(f"[CALL] Demo mode: simulating accepted call for interview {request.interview_id}")
        return CallServiceResult(success=True, call_id=f"demo-{request.interview_id}")

    headers = {"Content-Type": "application/json"}
    if settings.call_service_api_key:
        headers["Authorization"] = f"Bearer {settings.call_service_api_key}"

    logger.info(f"[CALL] Requesting call for interview {request.interview_id}")

    try:
        client = await get_http_client()
        response = await client.post(
            settings.call_service_url,
            json=request.to_payload(),
            headers=headers,
        )
    except httpx.HTTPError as e:
        logger.error(f"[CALL] Outbound call service unreachable: {type(e).__name__}: {e}")
        return CallServiceResult(success=False, error=FALLBACK_ERROR_MESSAGE)
    except Exception as e:
        logger.error(f"[CALL] Unexpected error requesting call: {type(e).__name__}: {e}")
        return CallServiceResult(success=False, error=FALLBACK_ERROR_MESSAGE)

    if response.is_success:
        call_id = _extract_call_id(response)
        logger.info(f"[CALL] Call accepted for interview {request.interview_id} (call_id={call_id})")
        return CallServiceResult(
            success=True,
            call_id=call_id,
            status_code=response.status_code,
        )

    try:
        body = response.json()
    except ValueError:
        body = None

    message = extract_error_message(body) or FALLBACK_ERROR_MESSAGE
    logger.warning(
        f"[CALL] Call rejected for interview {request.interview_id}: "
        f"{response.status_code} {message}"
    )
    return CallServiceResult(
        success=False,
        error=message,
        status_code=response.status_code,
    )
