"""Scheduling domain schemas - Pydantic models for bookings and edits"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from ...shared.exceptions import DispatchError
from ...shared.validators import validate_interval


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Interval(BaseModel):
    """Half-open time interval [start, end)"""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self):
        validate_interval(self.start, self.end)
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class CalendarBooking(BaseModel):
    """
    In-memory booking as shown on the calendar.

    Instances are treated as immutable: edits replace the whole record in the
    board (``model_copy(update=...)``) so readers never see a half-written one.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
    start: datetime
    end: datetime
    assignee: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    customer_ref: Optional[str] = None
    tenant_id: Optional[str] = None
    summary: Optional[str] = None
    customer_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geofence_radius: Optional[float] = None

    @model_validator(mode="after")
    def check_interval(self):
        validate_interval(self.start, self.end)
        return self

    @property
    def interval(self) -> Interval:
        return Interval(start=self.start, end=self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class BookingCandidate(BaseModel):
    """A proposed placement of a booking, checked against the rest of the board"""

    model_config = ConfigDict(frozen=True)

    id: str
    start: datetime
    end: datetime
    assignee: Optional[str] = None


class MoveRequest(BaseModel):
    """Committed drag-move: both boundaries shift, duration preserved"""

    model_config = ConfigDict(frozen=True)

    booking_id: str
    new_start: datetime
    new_end: datetime


class ResizeRequest(BaseModel):
    """Committed edge-resize: exactly the dragged boundary changes"""

    model_config = ConfigDict(frozen=True)

    booking_id: str
    new_start: Optional[datetime] = None
    new_end: Optional[datetime] = None

    @model_validator(mode="after")
    def check_boundary(self):
        if self.new_start is None and self.new_end is None:
            raise ValueError("Resize needs a new start or a new end")
        return self


class MutationOutcome(BaseModel):
    """Result of a move/resize as seen by the presentation layer"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: Literal["committed", "rejected"]
    booking_id: str
    reason: Optional[str] = None
    error: Optional[DispatchError] = None

    @property
    def committed(self) -> bool:
        return self.status == "committed"

    @classmethod
    def ok(cls, booking_id: str) -> "MutationOutcome":
        return cls(status="committed", booking_id=booking_id)

    @classmethod
    def rejected(cls, booking_id: str, error: DispatchError) -> "MutationOutcome":
        return cls(status="rejected", booking_id=booking_id, reason=error.reason, error=error)


# ============================================================================
# HTTP SCHEMAS
# ============================================================================


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: str
    start: datetime
    end: datetime
    assignee: Optional[str] = None
    status: str
    customer_ref: Optional[str] = None
    customer_name: Optional[str] = None
    summary: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    class Config:
        from_attributes = True


class ScheduleUpdateRequest(BaseModel):
    """Schema for moving or resizing a booking (omitted boundary stays as stored)"""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @model_validator(mode="after")
    def check_any(self):
        if self.start is None and self.end is None:
            raise ValueError("Provide a new start, a new end, or both")
        return self
