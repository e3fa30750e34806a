"""Routing domain schemas - Pydantic models for route points and plans"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from ...shared.exceptions import DispatchError


class RoutePoint(BaseModel):
    """A geolocated booking to visit"""

    model_config = ConfigDict(frozen=True)

    booking_id: str
    lat: float
    lng: float
    label: str
    scheduled_start: datetime


class RouteStop(RoutePoint):
    """A RoutePoint placed in the route; sequence starts at 1"""

    sequence: int
    distance_from_previous_m: float = 0.0


class RouteResult(BaseModel):
    """Ordered visit sequence plus what accepting it costs"""

    stops: list[RouteStop]
    cost: Decimal
    total_distance_m: float
    accepted: bool = False
    balance_after: Optional[Decimal] = None

    @property
    def route(self) -> list[RoutePoint]:
        return [
            RoutePoint(
                booking_id=s.booking_id,
                lat=s.lat,
                lng=s.lng,
                label=s.label,
                scheduled_start=s.scheduled_start,
            )
            for s in self.stops
        ]

    @property
    def booking_ids(self) -> list[str]:
        return [s.booking_id for s in self.stops]


class PlanOutcome(BaseModel):
    """Success/failure wrapper returned by the route planner"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    result: Optional[RouteResult] = None
    reason: Optional[str] = None
    error: Optional[DispatchError] = None

    @classmethod
    def success(cls, result: RouteResult) -> "PlanOutcome":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, error: DispatchError) -> "PlanOutcome":
        return cls(ok=False, reason=error.reason, error=error)


# ============================================================================
# HTTP SCHEMAS
# ============================================================================


class RouteRequest(BaseModel):
    """Schema for planning a route over the bookings of a window"""

    start: datetime
    end: datetime
    assignee: Optional[str] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.end <= self.start:
            raise ValueError("Window end must be after its start")
        return self


class CheckInRequest(BaseModel):
    """Schema for a staff member's geofence check-in"""

    lat: float
    lng: float

    @model_validator(mode="after")
    def check_position(self):
        if not (-90 <= self.lat <= 90 and -180 <= self.lng <= 180):
            raise ValueError("Position is outside valid latitude/longitude ranges")
        return self


class CheckInResult(BaseModel):
    """Outcome of a geofence check-in attempt"""

    allowed: bool
    distance_m: float
    radius_m: float
    message: str
