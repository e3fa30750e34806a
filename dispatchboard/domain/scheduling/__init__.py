"""
Scheduling Domain

Interactive booking scheduling for the dispatch calendar:

- conflicts.py  - staff double-booking detection (pure)
- input.py      - mouse/pen/touch events → PointerSample
- grid.py       - calendar grid geometry, snapping and auto-scroll
- gestures.py   - drag-move / edge-resize state machine
- mutations.py  - optimistic edits with field-scoped rollback
- repository.py - booking queries and the async SQLAlchemy booking store
- service.py / router.py - server-side window read and reschedule endpoints
"""

from .conflicts import find_conflicts, has_conflict
from .gestures import GestureController, GestureKind, GestureState, ResizeEdge
from .grid import CalendarGrid, ScrollViewport
from .input import InputKind, PointerSample, normalize_event
from .mutations import BookingBoard, MutationCommand, MutationCoordinator
from .schemas import CalendarBooking, MoveRequest, MutationOutcome, ResizeRequest

__all__ = [
    "BookingBoard",
    "CalendarBooking",
    "CalendarGrid",
    "GestureController",
    "GestureKind",
    "GestureState",
    "InputKind",
    "MoveRequest",
    "MutationCommand",
    "MutationCoordinator",
    "MutationOutcome",
    "PointerSample",
    "ResizeEdge",
    "ResizeRequest",
    "ScrollViewport",
    "find_conflicts",
    "has_conflict",
    "normalize_event",
]
