from .base import Modality, Phase, ViewName
from .call_request import (
    AgentHandoff,
    Back,
    CallRequestEvent,
    CallRequestState,
    ProviderAccepted,
    ProviderRejected,
    Select,
    SelectRequest,
    Submit,
    SubmitRequest,
    TimerElapsed,
    ViewResponse,
)
from .outbound_call import (
    CALL_TYPE_OUTBOUND,
    AssistantConfig,
    CallServiceResult,
    LanguageModelConfig,
    OutboundCallRequest,
    VoiceConfig,
)
from .interview import InterviewMetadata

__all__ = [
    "Modality",
    "Phase",
    "ViewName",
    "AgentHandoff",
    "Back",
    "CallRequestEvent",
    "CallRequestState",
    "ProviderAccepted",
    "ProviderRejected",
    "Select",
    "SelectRequest",
    "Submit",
    "SubmitRequest",
    "TimerElapsed",
    "ViewResponse",
    "CALL_TYPE_OUTBOUND",
    "AssistantConfig",
    "CallServiceResult",
    "LanguageModelConfig",
    "OutboundCallRequest",
    "VoiceConfig",
    "InterviewMetadata",
]
