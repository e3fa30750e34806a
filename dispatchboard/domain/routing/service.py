"""Routing service - loads a staff member's day and drives the route planner for HTTP callers"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...shared.context import DispatchContext
from ...shared.exceptions import InsufficientDataError, InsufficientFundsError, PersistenceError
from ..scheduling.repository import BookingRepository, to_calendar_booking
from ..scheduling.schemas import CalendarBooking
from ..wallet.service import CreditLedger
from .checkin import verify_check_in
from .planner import RoutePlanner
from .schemas import CheckInResult, PlanOutcome, RouteRequest, RouteResult

logger = logging.getLogger(__name__)

# DispatchError subclass -> HTTP status
ERROR_STATUS = {
    InsufficientFundsError: 402,
    InsufficientDataError: 422,
    PersistenceError: 503,
}


def raise_for_outcome(outcome: PlanOutcome) -> RouteResult:
    if outcome.ok:
        return outcome.result
    status_code = ERROR_STATUS.get(type(outcome.error), 400)
    raise HTTPException(status_code=status_code, detail=outcome.reason)


class RouteService:
    """Service layer for route planning and check-in"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def _planner(self, tenant_id: str) -> RoutePlanner:
        return RoutePlanner(DispatchContext(tenant_id), CreditLedger(db=self.db))

    def _load_bookings(
        self, tenant_id: str, start: datetime, end: datetime, assignee: Optional[str]
    ) -> list[CalendarBooking]:
        rows = self.repo.get_bookings_in_window(self.db, tenant_id, start, end)
        bookings = [to_calendar_booking(row) for row in rows]
        if assignee:
            bookings = [b for b in bookings if b.assignee == assignee]
        return bookings

    def preview(self, tenant_id: str, data: RouteRequest) -> RouteResult:
        """Plan a route over the window without charging"""
        bookings = self._load_bookings(tenant_id, data.start, data.end, data.assignee)
        return raise_for_outcome(self._planner(tenant_id).optimize_route(bookings))

    def accept(self, tenant_id: str, data: RouteRequest) -> RouteResult:
        """Re-plan the same window and charge for it"""
        planner = self._planner(tenant_id)
        bookings = self._load_bookings(tenant_id, data.start, data.end, data.assignee)
        result = raise_for_outcome(planner.optimize_route(bookings))
        return raise_for_outcome(planner.accept_route(result))

    def check_in(self, tenant_id: str, booking_id: str, lat: float, lng: float) -> CheckInResult:
        booking = self.repo.get_booking(self.db, booking_id, tenant_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        try:
            return verify_check_in(to_calendar_booking(booking), lat, lng)
        except InsufficientDataError as e:
            raise HTTPException(status_code=422, detail=e.reason)
