"""
Pydantic models for the call-request lifecycle.

CallRequestState is immutable; transitions build a new validated value so a
state that breaks an invariant (e.g. FAILED without a message) cannot exist.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, model_validator

from .base import Modality, Phase, ViewName


class CallRequestState(BaseModel):
    """State of one interview page view."""

    interview_id: str
    user_name: str = ""
    position: str = ""

    modality: Modality = Modality.UNSELECTED
    phase: Phase = Phase.IDLE
    phone_number: Optional[str] = None
    error_message: Optional[str] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_invariants(self) -> "CallRequestState":
        if self.phase in (Phase.SUBMITTING, Phase.IN_PROGRESS):
            if not self.phone_number or not self.phone_number.startswith("+"):
                raise ValueError(f"phone_number must be normalized while {self.phase.value}")
        if (self.phase == Phase.FAILED) != bool(self.error_message):
            raise ValueError("error_message must be set exactly when phase is failed")
        if self.phone_number is not None and self.modality != Modality.PHONE_CALLBACK:
            raise ValueError("phone_number is only held for phone callbacks")
        return self

    @property
    def handed_off(self) -> bool:
        """True once the user picked the immediate interview."""
        return self.modality == Modality.IMMEDIATE

    @property
    def view(self) -> ViewName:
        if self.handed_off:
            return ViewName.AGENT
        if self.phase in (Phase.SUBMITTING, Phase.IN_PROGRESS):
            return ViewName.CALLING
        if self.phase in (Phase.COLLECTING_PHONE, Phase.FAILED):
            return ViewName.PHONE_ENTRY
        return ViewName.CHOOSE_MODALITY

    def evolve(self, **changes: Any) -> "CallRequestState":
        """Return a validated copy with the given fields replaced."""
        return CallRequestState.model_validate({**self.model_dump(), **changes})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class AgentHandoff(BaseModel):
    """What the interview-conducting agent receives on an immediate start."""

    user_name: str
    user_id: str
    interview_id: str
    type: str = "interview"
    position: str = ""


# ==================== Events ====================


class CallRequestEvent(BaseModel):
    """Base class for controller events."""

    class Config:
        frozen = True


class Select(CallRequestEvent):
    modality: Modality


class Back(CallRequestEvent):
    pass


class Submit(CallRequestEvent):
    phone_number: str = ""


class ProviderAccepted(CallRequestEvent):
    pass


class ProviderRejected(CallRequestEvent):
    message: str


class TimerElapsed(CallRequestEvent):
    pass


# ==================== API payloads ====================


class SelectRequest(BaseModel):
    modality: Modality


class SubmitRequest(BaseModel):
    phone_number: str = ""


class ViewResponse(BaseModel):
    """Everything the page needs to render the current view."""

    view_id: str
    interview_id: str
    user_name: str
    position: str
    view: ViewName
    state: Dict[str, Any]
    handoff: Optional[AgentHandoff] = None
