"""
Pointer input normalization.

Mouse, pen and touch events arrive with different shapes (``clientX`` on the
event for mouse, ``touches[0].clientX`` for touch, ``changedTouches`` on
touchend). They are converted here, once, into a ``PointerSample`` tagged with
its ``InputKind`` so the gesture state machine has a single code path.
"""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from ...shared.exceptions import ValidationError


class InputKind(str, Enum):
    MOUSE = "mouse"
    PEN = "pen"
    TOUCH = "touch"


class EventPhase(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    CANCEL = "cancel"


class PointerSample(BaseModel):
    """Viewport coordinates (px) and event time (ms) of one pointer event"""

    model_config = ConfigDict(frozen=True)

    kind: InputKind
    x: float
    y: float
    timestamp: float

    @classmethod
    def mouse(cls, x: float, y: float, timestamp: float = 0.0) -> "PointerSample":
        return cls(kind=InputKind.MOUSE, x=x, y=y, timestamp=timestamp)

    @classmethod
    def touch(cls, x: float, y: float, timestamp: float = 0.0) -> "PointerSample":
        return cls(kind=InputKind.TOUCH, x=x, y=y, timestamp=timestamp)

    @classmethod
    def pen(cls, x: float, y: float, timestamp: float = 0.0) -> "PointerSample":
        return cls(kind=InputKind.PEN, x=x, y=y, timestamp=timestamp)


_PHASES = {
    "mousedown": EventPhase.DOWN,
    "mousemove": EventPhase.MOVE,
    "mouseup": EventPhase.UP,
    "dragstart": EventPhase.DOWN,
    "dragover": EventPhase.MOVE,
    "drop": EventPhase.UP,
    "dragend": EventPhase.CANCEL,
    "pointerdown": EventPhase.DOWN,
    "pointermove": EventPhase.MOVE,
    "pointerup": EventPhase.UP,
    "pointercancel": EventPhase.CANCEL,
    "touchstart": EventPhase.DOWN,
    "touchmove": EventPhase.MOVE,
    "touchend": EventPhase.UP,
    "touchcancel": EventPhase.CANCEL,
}


def event_phase(raw: Mapping[str, Any]) -> EventPhase:
    event_type = str(raw.get("type", "")).lower()
    try:
        return _PHASES[event_type]
    except KeyError:
        raise ValidationError(f"Unsupported pointer event type: {event_type or '<missing>'}")


def _input_kind(event_type: str, raw: Mapping[str, Any]) -> InputKind:
    if event_type.startswith("touch"):
        return InputKind.TOUCH
    if event_type.startswith("pointer"):
        pointer_type = str(raw.get("pointerType", "mouse")).lower()
        try:
            return InputKind(pointer_type)
        except ValueError:
            raise ValidationError(f"Unsupported pointer type: {pointer_type}")
    return InputKind.MOUSE


def _client_point(event_type: str, raw: Mapping[str, Any]) -> Mapping[str, Any]:
    if not event_type.startswith("touch"):
        return raw
    # touchend reports the lifted finger only in changedTouches
    touches = raw.get("touches") or raw.get("changedTouches") or []
    if not touches:
        raise ValidationError("Touch event without touch points")
    return touches[0]


def normalize_event(raw: Mapping[str, Any]) -> PointerSample:
    """
    Convert a DOM-shaped event mapping into a PointerSample.

    Raises:
        ValidationError: unknown event type, missing coordinates or timestamp
    """
    event_phase(raw)
    event_type = str(raw["type"]).lower()
    point = _client_point(event_type, raw)

    try:
        x = float(point["clientX"])
        y = float(point["clientY"])
    except (KeyError, TypeError, ValueError):
        raise ValidationError(f"{event_type} event is missing clientX/clientY")

    try:
        timestamp = float(raw.get("timeStamp", 0.0))
    except (TypeError, ValueError):
        raise ValidationError(f"{event_type} event has an invalid timeStamp")

    return PointerSample(kind=_input_kind(event_type, raw), x=x, y=y, timestamp=timestamp)
