"""
Call-request state machine.

`transition(state, event)` is pure: it returns the next CallRequestState or
raises a CallRequestError, leaving the input untouched. Side effects (provider
call, calling-notice timer, event publishing) belong to the controller.

    IDLE --select(phone)--> COLLECTING_PHONE --submit--> SUBMITTING
    SUBMITTING --accepted--> IN_PROGRESS --timer--> COLLECTING_PHONE
    SUBMITTING --rejected--> FAILED --submit--> SUBMITTING
    IDLE --select(immediate)--> agent hand-off (machine exits)
"""

from typing import Callable, Dict, Tuple, Type

from models import (
    Back,
    CallRequestEvent,
    CallRequestState,
    Modality,
    Phase,
    ProviderAccepted,
    ProviderRejected,
    Select,
    Submit,
    TimerElapsed,
)


class CallRequestError(Exception):
    """Base class for rejected controller events."""


class EmptyPhoneNumberError(CallRequestError):
    """Submit was attempted without a phone number."""

    def __init__(self):
        super().__init__("Phone number is required")


class CallInFlightError(CallRequestError):
    """A call request for this view is already being placed."""

    def __init__(self):
        super().__init__("A call request is already in progress")


class InvalidTransitionError(CallRequestError):
    def __init__(self, state: CallRequestState, event: CallRequestEvent):
        self.phase = state.phase
        self.event = type(event).__name__
        where = "after hand-off" if state.handed_off else f"in phase {state.phase.value}"
        super().__init__(f"Cannot handle {self.event} {where}")


def normalize_phone_number(phone_number: str) -> str:
    """Prefix a '+' unless the number already has one. No other validation."""
    if phone_number.startswith("+"):
        return phone_number
    return f"+{phone_number}"


# ==================== Handlers ====================


def _on_select(state: CallRequestState, event: Select) -> CallRequestState:
    if event.modality == Modality.IMMEDIATE:
        return state.evolve(modality=Modality.IMMEDIATE, phone_number=None)
    if event.modality == Modality.PHONE_CALLBACK:
        return state.evolve(modality=Modality.PHONE_CALLBACK, phase=Phase.COLLECTING_PHONE)
    raise InvalidTransitionError(state, event)


def _on_back(state: CallRequestState, event: Back) -> CallRequestState:
    return state.evolve(
        modality=Modality.UNSELECTED,
        phase=Phase.IDLE,
        phone_number=None,
        error_message=None,
    )


def _on_submit(state: CallRequestState, event: Submit) -> CallRequestState:
    if not event.phone_number:
        raise EmptyPhoneNumberError()
    return state.evolve(
        phase=Phase.SUBMITTING,
        phone_number=normalize_phone_number(event.phone_number),
        error_message=None,
    )


def _on_submit_in_flight(state: CallRequestState, event: Submit) -> CallRequestState:
    raise CallInFlightError()


def _on_accepted(state: CallRequestState, event: ProviderAccepted) -> CallRequestState:
    return state.evolve(phase=Phase.IN_PROGRESS)


def _on_rejected(state: CallRequestState, event: ProviderRejected) -> CallRequestState:
    return state.evolve(phase=Phase.FAILED, error_message=event.message)


def _on_timer(state: CallRequestState, event: TimerElapsed) -> CallRequestState:
    return state.evolve(phase=Phase.COLLECTING_PHONE, phone_number=None)


Handler = Callable[[CallRequestState, CallRequestEvent], CallRequestState]

TRANSITIONS: Dict[Tuple[Phase, Type[CallRequestEvent]], Handler] = {
    (Phase.IDLE, Select): _on_select,
    (Phase.COLLECTING_PHONE, Back): _on_back,
    (Phase.COLLECTING_PHONE, Submit): _on_submit,
    (Phase.SUBMITTING, Submit): _on_submit_in_flight,
    (Phase.SUBMITTING, ProviderAccepted): _on_accepted,
    (Phase.SUBMITTING, ProviderRejected): _on_rejected,
    (Phase.IN_PROGRESS, Submit): _on_submit_in_flight,
    (Phase.IN_PROGRESS, TimerElapsed): _on_timer,
    (Phase.FAILED, Submit): _on_submit,
    (Phase.FAILED, Back): _on_back,
}


def transition(state: CallRequestState, event: CallRequestEvent) -> CallRequestState:
    """Apply one event. Nothing is accepted after the immediate hand-off."""
    if state.handed_off:
        raise InvalidTransitionError(state, event)
    handler = TRANSITIONS.get((state.phase, type(event)))
    if handler is None:
        raise InvalidTransitionError(state, event)
    return handler(state, event)
