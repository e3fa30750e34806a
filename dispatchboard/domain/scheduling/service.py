"""Booking schedule service - server-side window reads and authoritative reschedules"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...shared.validators import validate_interval
from .conflicts import describe_conflict, find_conflicts
from .repository import BookingRepository, to_calendar_booking
from .schemas import BookingCandidate, CalendarBooking, ScheduleUpdateRequest

logger = logging.getLogger(__name__)


class BookingScheduleService:
    """Service layer for booking schedule operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def get_window(self, tenant_id: str, start: datetime, end: datetime) -> list[CalendarBooking]:
        """Get bookings overlapping a date window"""
        if end <= start:
            raise HTTPException(status_code=422, detail="Window end must be after its start")
        rows = self.repo.get_bookings_in_window(self.db, tenant_id, start, end)
        return [to_calendar_booking(row) for row in rows]

    def reschedule(self, tenant_id: str, booking_id: str, data: ScheduleUpdateRequest) -> CalendarBooking:
        """Move or resize a booking; refuses overlaps with the same staff member"""
        booking = self.repo.get_booking(self.db, booking_id, tenant_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        new_start = data.start or booking.start_date
        new_end = data.end or booking.end_date
        try:
            validate_interval(new_start, new_end, reference=booking.start_date)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        if booking.assigned_to:
            others = [
                to_calendar_booking(row)
                for row in self.repo.get_assignee_bookings(
                    self.db, tenant_id, booking.assigned_to, new_start, new_end
                )
            ]
            candidate = BookingCandidate(
                id=booking.id, assignee=booking.assigned_to, start=new_start, end=new_end
            )
            conflicts = find_conflicts(candidate, others)
            if conflicts:
                reason = describe_conflict(conflicts, booking.assigned_to)
                logger.warning(f"⚠️ Reschedule of booking {booking_id} refused: {reason}")
                raise HTTPException(status_code=409, detail=reason)

        columns = {}
        if data.start is not None:
            columns["start_date"] = data.start
        if data.end is not None:
            columns["end_date"] = data.end

        logger.info(f"📅 Rescheduling booking {booking_id}: {new_start} → {new_end}")
        updated = self.repo.update_booking_fields(self.db, booking, **columns)
        return to_calendar_booking(updated)
