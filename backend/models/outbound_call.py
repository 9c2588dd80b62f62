"""
Pydantic models for the Outbound Call Service request and its outcome.
The wire format uses camelCase keys.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

CALL_TYPE_OUTBOUND = "outboundPhoneCall"


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class VoiceConfig(_CamelModel):
    provider: str
    voice_id: str


class LanguageModelConfig(_CamelModel):
    provider: str
    model: str


class AssistantConfig(_CamelModel):
    """Static assistant descriptor; only first_message is interpolated."""

    name: str
    first_message: str
    voice: VoiceConfig
    model: LanguageModelConfig


class OutboundCallRequest(_CamelModel):
    """Body POSTed to the Outbound Call Service."""

    phone_number: str
    user_name: str
    user_id: str
    interview_id: str
    position: str
    type: str = CALL_TYPE_OUTBOUND
    assistant: AssistantConfig

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class CallServiceResult(BaseModel):
    """Outcome of one submission. Failures carry a user-facing message."""

    success: bool
    error: Optional[str] = None
    call_id: Optional[str] = None
    status_code: Optional[int] = None
