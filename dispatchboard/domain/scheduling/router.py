"""Scheduling router - FastAPI endpoints for calendar bookings"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ..tenancy import get_tenant_id
from .schemas import BookingResponse, CalendarBooking, ScheduleUpdateRequest
from .service import BookingScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Scheduling"])


def get_schedule_service(db: Session = Depends(get_db)) -> BookingScheduleService:
    """Dependency injection for BookingScheduleService"""
    return BookingScheduleService(db)


def _to_response(booking: CalendarBooking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        start=booking.start,
        end=booking.end,
        assignee=booking.assignee,
        status=booking.status,
        customer_ref=booking.customer_ref,
        customer_name=booking.customer_name,
        summary=booking.summary,
        latitude=booking.latitude,
        longitude=booking.longitude,
    )


@router.get("", response_model=list[BookingResponse])
async def get_bookings(
    start: datetime = Query(...),
    end: datetime = Query(...),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingScheduleService = Depends(get_schedule_service),
):
    """Get bookings overlapping a date window"""
    return [_to_response(b) for b in service.get_window(tenant_id, start, end)]


@router.patch("/{booking_id}/schedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    data: ScheduleUpdateRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: BookingScheduleService = Depends(get_schedule_service),
):
    """Move or resize a booking (only the supplied boundaries are written)"""
    return _to_response(service.reschedule(tenant_id, booking_id, data))
