"""
Call-Request Controller and the in-memory view registry.

One controller per opened interview page. It applies events through the pure
state machine, performs the side effects (provider call, calling-notice timer,
event publishing), and is discarded when the view closes. Nothing is persisted.

All state changes run on the event loop; the SUBMITTING check-and-set happens
before the first await, so a view has at most one call request in flight.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core import settings
from core.events import emit_event
from models import (
    AgentHandoff,
    Back,
    CallRequestEvent,
    CallRequestState,
    CallServiceResult,
    Modality,
    Phase,
    ProviderAccepted,
    ProviderRejected,
    Select,
    Submit,
    TimerElapsed,
    ViewResponse,
)
from services.call_request import CallRequestError, transition
from services.call_service import (
    FALLBACK_ERROR_MESSAGE,
    build_call_request,
    submit_call_request,
)
from services.interview_metadata import resolve_position, resolve_user_name

logger = logging.getLogger(__name__)

EmitCallback = Callable[[str, str, Dict[str, Any]], Awaitable[None]]


class ViewClosedError(CallRequestError):
    def __init__(self, view_id: str):
        super().__init__(f"View {view_id} is closed")


class CallRequestController:
    """Drives one view's call-request lifecycle."""

    def __init__(
        self,
        interview_id: str,
        user_name: str,
        position: str = "",
        user_id: Optional[str] = None,
        view_id: Optional[str] = None,
        calling_notice_seconds: Optional[float] = None,
        emit_callback: Optional[EmitCallback] = None,
    ):
        self.view_id = view_id or str(uuid.uuid4())
        self.user_id = user_id or settings.default_user_id
        self.last_call_id: Optional[str] = None

        self._state = CallRequestState(
            interview_id=interview_id,
            user_name=user_name,
            position=position,
        )
        self._emit = emit_callback or emit_event
        self._calling_notice_seconds = (
            settings.calling_notice_seconds
            if calling_notice_seconds is None
            else calling_notice_seconds
        )
        self._timer: Optional[asyncio.Task] = None
        self._closed = False
        self.last_activity = time.monotonic()

    @property
    def state(self) -> CallRequestState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    def idle_for(self) -> float:
        return time.monotonic() - self.last_activity

    def handoff(self) -> Optional[AgentHandoff]:
        """Agent props for an immediate interview; None for any other state."""
        if not self._state.handed_off:
            return None
        return AgentHandoff(
            user_name=self._state.user_name,
            user_id=self.user_id,
            interview_id=self._state.interview_id,
            position=self._state.position,
        )

    def to_response(self) -> ViewResponse:
        return ViewResponse(
            view_id=self.view_id,
            interview_id=self._state.interview_id,
            user_name=self._state.user_name,
            position=self._state.position,
            view=self._state.view,
            state=self._state.to_dict(),
            handoff=self.handoff(),
        )

    # ==================== User events ====================

    async def select(self, modality: Modality) -> CallRequestState:
        state = await self._apply(Select(modality=modality))
        if state.handed_off:
            logger.info(f"[VIEW] {self.view_id} handed off to the interview agent")
            await self._publish("handoff", self.handoff().model_dump())
        return state

    async def back(self) -> CallRequestState:
        return await self._apply(Back())

    async def submit(self, phone_number: str) -> CallRequestState:
        """
        Submit a phone number and wait for the Outbound Call Service.

        Raises:
            EmptyPhoneNumberError: phone_number is empty (no call is made)
            CallInFlightError: a request for this view is already in flight
            InvalidTransitionError: the phone form is not showing
        """
        state = await self._apply(Submit(phone_number=phone_number))

        request = build_call_request(
            phone_number=state.phone_number,
            user_name=state.user_name,
            user_id=self.user_id,
            interview_id=state.interview_id,
            position=state.position,
        )
        try:
            result = await submit_call_request(request)
        except Exception as e:
            logger.error(f"[VIEW] {self.view_id} call request failed: {type(e).__name__}: {e}")
            result = CallServiceResult(success=False, error=FALLBACK_ERROR_MESSAGE)

        if self._closed:
            logger.info(f"[VIEW] {self.view_id} closed while its call request was in flight")
            return self._state

        if result.success:
            self.last_call_id = result.call_id
            state = await self._apply(ProviderAccepted())
            self._start_calling_timer()
        else:
            state = await self._apply(
                ProviderRejected(message=result.error or FALLBACK_ERROR_MESSAGE)
            )
        return state

    async def close(self) -> None:
        """Tear down the view; a pending calling-notice timer never fires."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        logger.info(f"[VIEW] Closed {self.view_id}")
        await self._publish("closed", {"view_id": self.view_id})

    # ==================== Internals ====================

    async def _apply(self, event: CallRequestEvent) -> CallRequestState:
        if self._closed:
            raise ViewClosedError(self.view_id)

        self.touch()
        previous = self._state.phase
        self._state = transition(self._state, event)
        logger.info(
            f"[VIEW] {self.view_id} {type(event).__name__}: "
            f"{previous.value} -> {self._state.phase.value}"
        )
        await self.publish_state()
        return self._state

    async def publish_state(self) -> None:
        await self._publish(
            "state",
            {"view": self._state.view.value, "state": self._state.to_dict()},
        )

    async def _publish(self, event_type: str, data: Dict[str, Any]) -> None:
        try:
            await self._emit(self.view_id, event_type, data)
        except Exception as e:
            logger.warning(f"[VIEW] Failed to publish {event_type} for {self.view_id}: {e}")

    def _start_calling_timer(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.create_task(self._calling_notice_elapsed())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _calling_notice_elapsed(self) -> None:
        try:
            await asyncio.sleep(self._calling_notice_seconds)
            if self._closed or self._state.phase != Phase.IN_PROGRESS:
                return
            await self._apply(TimerElapsed())
        finally:
            # Keep the reference until the transition is published
            if self._timer is asyncio.current_task():
                self._timer = None


# ==================== View registry ====================

_views: Dict[str, CallRequestController] = {}


async def open_view(interview_id: str, user_id: Optional[str] = None) -> CallRequestController:
    """Resolve the interview context and start a controller for it."""
    user_name = await resolve_user_name(interview_id)
    position = await resolve_position(interview_id)

    controller = CallRequestController(
        interview_id=interview_id,
        user_name=user_name,
        position=position,
        user_id=user_id,
    )
    _views[controller.view_id] = controller
    logger.info(
        f"[VIEW] Opened {controller.view_id} for interview {interview_id} "
        f"(user='{user_name}', position='{position}')"
    )
    await controller.publish_state()
    return controller


def get_view(view_id: str) -> Optional[CallRequestController]:
    controller = _views.get(view_id)
    if controller is not None:
        controller.touch()
    return controller


def list_views() -> List[CallRequestController]:
    return list(_views.values())


async def close_view(view_id: str) -> bool:
    controller = _views.pop(view_id, None)
    if controller is None:
        return False
    await controller.close()
    return True


async def close_all_views() -> None:
    """Application shutdown: cancel every pending timer."""
    for view_id in list(_views):
        await close_view(view_id)


async def evict_idle_views(max_idle_seconds: Optional[float] = None) -> List[str]:
    """
    Close views nobody has touched for max_idle_seconds.

    Defaults to settings.view_ttl_seconds, the lifetime of a view's event
    queue. Returns the evicted view ids.
    """
    limit = settings.view_ttl_seconds if max_idle_seconds is None else max_idle_seconds
    idle = [view_id for view_id, controller in _views.items() if controller.idle_for() > limit]

    for view_id in idle:
        logger.info(f"[VIEW] Evicting idle view {view_id}")
        await close_view(view_id)
    return idle


async def sweep_idle_views(interval_seconds: Optional[float] = None) -> None:
    """Background loop started by the application lifespan."""
    interval = (
        settings.view_sweep_interval_seconds
        if interval_seconds is None
        else interval_seconds
    )
    while True:
        await asyncio.sleep(interval)
        try:
            await evict_idle_views()
        except Exception as e:
            logger.warning(f"[VIEW] Idle view sweep failed: {e}")
