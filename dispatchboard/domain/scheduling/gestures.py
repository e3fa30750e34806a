"""
Drag-move / edge-resize gesture state machine.

    Idle → Armed → Dragging → Committing → Idle
                 ↘ Idle (cancelled)  ↘ Idle (cancelled / conflict)

Mouse and pen sessions start dragging on the first movement. Touch sessions
need a long press: the host calls ``tick(now)`` from its timer (or the next
event arrives after the deadline); moving more than the jitter threshold before
that means the user is scrolling, and the session is dropped without side
effects.

While dragging, every sample recomputes the proposed interval and the advisory
conflict flag. The flag only matters on release: a conflicting drop is refused
with a notice, a clean drop is handed to the committer (normally
``MutationCoordinator.submit``) and the controller returns to Idle as soon as
the call is dispatched.
"""

import asyncio
import logging
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict

from ...config import LONG_PRESS_MS, MIN_BOOKING_MINUTES, TOUCH_JITTER_PX
from ...shared.context import DispatchContext
from ...shared.exceptions import DispatchError
from .conflicts import describe_conflict, find_conflicts
from .grid import CalendarGrid
from .input import EventPhase, InputKind, PointerSample, event_phase, normalize_event
from .schemas import BookingCandidate, CalendarBooking, Interval, MoveRequest, MutationOutcome, ResizeRequest

logger = logging.getLogger(__name__)


class GestureState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"
    COMMITTING = "committing"


class GestureKind(str, Enum):
    MOVE = "move"
    RESIZE = "resize"


class ResizeEdge(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


class GestureSession(BaseModel):
    """Transient state of one in-progress move/resize; never persisted"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    booking_snapshot: CalendarBooking
    kind: GestureKind
    edge: Optional[ResizeEdge] = None
    input_kind: InputKind
    pointer_origin: PointerSample
    origin_scroll_top: float = 0.0
    last_sample: PointerSample
    armed_at: float
    state: GestureState = GestureState.ARMED
    proposed_interval: Optional[Interval] = None
    proposal_error: Optional[str] = None
    conflict: bool = False
    conflict_reason: Optional[str] = None


class GestureResult(BaseModel):
    """What happened when a session ended"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # committed: dispatched and applied optimistically (persistence may still fail)
    status: str  # committed | conflict | cancelled | rejected
    booking_id: Optional[str] = None
    request: Optional[Union[MoveRequest, ResizeRequest]] = None
    reason: Optional[str] = None
    dispatched: Any = None

    @property
    def committed(self) -> bool:
        return self.status == "committed"


class GestureController:
    """
    One controller per calendar view. Views on the same dashboard share a
    DispatchContext, which holds the single active session.
    """

    def __init__(
        self,
        context: DispatchContext,
        grid: CalendarGrid,
        bookings: Union[Iterable[CalendarBooking], Callable[[], Iterable[CalendarBooking]]],
        committer: Callable[[Union[MoveRequest, ResizeRequest]], Any],
        long_press_ms: float = LONG_PRESS_MS,
        jitter_px: float = TOUCH_JITTER_PX,
        min_duration_minutes: int = MIN_BOOKING_MINUTES,
    ):
        self.context = context
        self.grid = grid
        self.bookings = bookings
        self.committer = committer
        self.long_press_ms = long_press_ms
        self.jitter_px = jitter_px
        self.min_duration = timedelta(minutes=min_duration_minutes)
        self.session: Optional[GestureSession] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> GestureState:
        return self.session.state if self.session else GestureState.IDLE

    @property
    def conflict(self) -> bool:
        """Live advisory flag for the presentation layer"""
        return bool(self.session and self.session.conflict)

    @property
    def proposed_interval(self) -> Optional[Interval]:
        return self.session.proposed_interval if self.session else None

    def _existing(self) -> Iterable[CalendarBooking]:
        return self.bookings() if callable(self.bookings) else self.bookings

    # ------------------------------------------------------------------
    # Event entry points
    # ------------------------------------------------------------------

    def handle_event(
        self,
        raw: dict,
        booking: Optional[CalendarBooking] = None,
        kind: GestureKind = GestureKind.MOVE,
        edge: Optional[ResizeEdge] = None,
    ):
        """Dispatch a DOM-shaped event (see ``input.normalize_event``)"""
        phase = event_phase(raw)
        if phase == EventPhase.CANCEL:
            return self.cancel()

        sample = normalize_event(raw)
        if phase == EventPhase.DOWN:
            if booking is None:
                return False
            return self.pointer_down(booking, sample, kind=kind, edge=edge)
        if phase == EventPhase.MOVE:
            return self.pointer_move(sample)
        return self.pointer_up(sample)

    def pointer_down(
        self,
        booking: CalendarBooking,
        sample: PointerSample,
        kind: GestureKind = GestureKind.MOVE,
        edge: Optional[ResizeEdge] = None,
    ) -> bool:
        """Idle → Armed. Returns False (and changes nothing) if any session is already active."""
        if self.context.active_session is not None:
            logger.debug(f"Ignoring pointer-down on {booking.id}: another gesture is active")
            return False

        if kind == GestureKind.RESIZE and edge is None:
            edge = ResizeEdge.BOTTOM

        session = GestureSession(
            booking_snapshot=booking,
            kind=kind,
            edge=edge if kind == GestureKind.RESIZE else None,
            input_kind=sample.kind,
            pointer_origin=sample,
            origin_scroll_top=self.grid.viewport.scroll_top,
            last_sample=sample,
            armed_at=sample.timestamp,
        )
        if not self.context.claim_session(session):
            return False

        self.session = session
        logger.debug(f"Gesture armed: {kind.value} {booking.id} via {sample.kind.value}")
        return True

    def pointer_move(self, sample: PointerSample) -> Optional[GestureSession]:
        session = self.session
        if session is None:
            return None

        if session.state == GestureState.ARMED:
            if session.input_kind == InputKind.TOUCH:
                if not self._long_press_elapsed(sample.timestamp):
                    if self._exceeds_jitter(sample):
                        logger.debug(f"Touch moved before long press on {session.booking_snapshot.id}: scroll intent")
                        self._end_session()
                        return None
                    session.last_sample = sample
                    return session
                self._start_dragging()
            else:
                if sample.x == session.pointer_origin.x and sample.y == session.pointer_origin.y:
                    return session
                self._start_dragging()

        if session.state == GestureState.DRAGGING:
            session.last_sample = sample
            self._update_proposal(sample)
        return session

    def tick(self, now: float) -> float:
        """
        Animation-frame / timer callback.

        Promotes an armed touch session once the long press has elapsed and,
        while dragging, auto-scrolls the grid when the pointer is near its
        edge. Returns the scroll delta applied.
        """
        session = self.session
        if session is None:
            return 0.0

        if session.state == GestureState.ARMED:
            if session.input_kind == InputKind.TOUCH and self._long_press_elapsed(now):
                self._start_dragging()
            return 0.0

        if session.state != GestureState.DRAGGING:
            return 0.0

        delta = self.grid.viewport.auto_scroll(session.last_sample.y)
        if delta:
            # The same pointer position now sits over a different time slot
            self._update_proposal(session.last_sample)
        return delta

    def pointer_up(self, sample: Optional[PointerSample] = None) -> GestureResult:
        """Release: commit, refuse (conflict) or cancel"""
        session = self.session
        if session is None:
            return GestureResult(status="cancelled", reason="No active gesture")

        booking_id = session.booking_snapshot.id

        if session.state == GestureState.ARMED:
            # Tap / short press: not a drag
            self._end_session()
            return GestureResult(status="cancelled", booking_id=booking_id, reason="Released before dragging")

        if sample is not None:
            session.last_sample = sample
            self._update_proposal(sample)

        if session.proposed_interval is None:
            reason = session.proposal_error or "Dropped outside the calendar"
            self._end_session()
            return GestureResult(status="cancelled", booking_id=booking_id, reason=reason)

        if session.conflict:
            reason = session.conflict_reason or "Conflict"
            self.context.notifier.conflict(reason)
            logger.info(f"⚠️ Drop refused for booking {booking_id}: {reason}")
            self._end_session()
            return GestureResult(status="conflict", booking_id=booking_id, reason=reason)

        request = self._build_request(session)
        if request is None:
            self._end_session()
            return GestureResult(status="cancelled", booking_id=booking_id, reason="No change")

        session.state = GestureState.COMMITTING
        try:
            dispatched = self.committer(request)
        except DispatchError as e:
            logger.warning(f"⚠️ Commit of booking {booking_id} rejected: {e}")
            self.context.notifier.error(e.reason)
            return GestureResult(status="rejected", booking_id=booking_id, request=request, reason=e.reason)
        finally:
            self._end_session()

        rejection = _immediate_rejection(dispatched)
        if rejection is not None:
            logger.warning(f"⚠️ Commit of booking {booking_id} refused: {rejection}")
            return GestureResult(
                status="rejected", booking_id=booking_id, request=request, reason=rejection, dispatched=dispatched
            )

        return GestureResult(status="committed", booking_id=booking_id, request=request, dispatched=dispatched)

    def cancel(self) -> GestureResult:
        """Explicit cancel (Escape, touchcancel, dragend without drop)"""
        session = self.session
        if session is None:
            return GestureResult(status="cancelled", reason="No active gesture")
        self._end_session()
        return GestureResult(status="cancelled", booking_id=session.booking_snapshot.id, reason="Cancelled")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _long_press_elapsed(self, now: float) -> bool:
        return now - self.session.armed_at >= self.long_press_ms

    def _exceeds_jitter(self, sample: PointerSample) -> bool:
        origin = self.session.pointer_origin
        return abs(sample.x - origin.x) > self.jitter_px or abs(sample.y - origin.y) > self.jitter_px

    def _start_dragging(self) -> None:
        self.session.state = GestureState.DRAGGING
        logger.debug(f"Gesture dragging: {self.session.kind.value} {self.session.booking_snapshot.id}")

    def _end_session(self) -> None:
        if self.session is not None:
            self.context.release_session(self.session)
        self.session = None

    def _propose(self, sample: PointerSample) -> tuple[Optional[Interval], Optional[str]]:
        session = self.session
        booking = session.booking_snapshot

        if session.kind == GestureKind.MOVE:
            cell = self.grid.cell_at(sample.x, sample.y)
            if cell is None:
                return None, "Dropped outside the calendar"
            new_start = cell.instant
            return Interval(start=new_start, end=new_start + booking.duration), None

        # Resize: measure in content coordinates so auto-scroll counts as movement
        scroll_shift = self.grid.viewport.scroll_top - session.origin_scroll_top
        delta = timedelta(minutes=self.grid.delta_minutes(sample.y - session.pointer_origin.y + scroll_shift))
        new_start, new_end = booking.start, booking.end
        if session.edge == ResizeEdge.TOP:
            new_start = booking.start + delta
        else:
            new_end = booking.end + delta

        if new_end - new_start < self.min_duration:
            minutes = int(self.min_duration.total_seconds() // 60)
            return None, f"Booking must last at least {minutes} minutes"
        return Interval(start=new_start, end=new_end), None

    def _update_proposal(self, sample: PointerSample) -> None:
        session = self.session
        proposal, error = self._propose(sample)
        session.proposed_interval = proposal
        session.proposal_error = error

        if proposal is None:
            session.conflict = False
            session.conflict_reason = None
            return

        booking = session.booking_snapshot
        candidate = BookingCandidate(
            id=booking.id, assignee=booking.assignee, start=proposal.start, end=proposal.end
        )
        conflicts = find_conflicts(candidate, self._existing())
        session.conflict = bool(conflicts)
        session.conflict_reason = describe_conflict(conflicts, booking.assignee) if conflicts else None

    def _build_request(self, session: GestureSession) -> Optional[Union[MoveRequest, ResizeRequest]]:
        booking = session.booking_snapshot
        proposal = session.proposed_interval

        if session.kind == GestureKind.MOVE:
            return MoveRequest(booking_id=booking.id, new_start=proposal.start, new_end=proposal.end)

        if session.edge == ResizeEdge.TOP:
            if proposal.start == booking.start:
                return None
            return ResizeRequest(booking_id=booking.id, new_start=proposal.start)

        if proposal.end == booking.end:
            return None
        return ResizeRequest(booking_id=booking.id, new_end=proposal.end)


def _immediate_rejection(dispatched) -> Optional[str]:
    """Reason of an outcome the committer resolved as rejected before returning, else None"""
    if not isinstance(dispatched, asyncio.Future) or not dispatched.done():
        return None
    if dispatched.cancelled() or dispatched.exception() is not None:
        return None
    outcome = dispatched.result()
    if isinstance(outcome, MutationOutcome) and not outcome.committed:
        return outcome.reason or "Rejected"
    return None
