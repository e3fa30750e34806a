"""Booking repository - Database operations for bookings, plus the async store used by optimistic edits"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...database import SessionLocal
from ...models import Booking
from ...shared.exceptions import PersistenceError
from .schemas import CalendarBooking

logger = logging.getLogger(__name__)

# Domain field name -> bookings column
FIELD_COLUMNS = {
    "start": "start_date",
    "end": "end_date",
    "status": "status",
    "assignee": "assigned_to",
}


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_bookings_in_window(
        db: Session, tenant_id: str, window_start: datetime, window_end: datetime
    ) -> list[Booking]:
        """Get bookings of a tenant overlapping [window_start, window_end)"""
        return (
            db.query(Booking)
            .options(joinedload(Booking.customer))
            .filter(
                Booking.tenant_id == tenant_id,
                Booking.start_date < window_end,
                Booking.end_date > window_start,
            )
            .order_by(Booking.start_date)
            .all()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: str, tenant_id: Optional[str] = None) -> Optional[Booking]:
        """Get a booking by ID, optionally scoped to a tenant"""
        query = db.query(Booking).options(joinedload(Booking.customer)).filter(Booking.id == booking_id)
        if tenant_id is not None:
            query = query.filter(Booking.tenant_id == tenant_id)
        return query.first()

    @staticmethod
    def get_assignee_bookings(
        db: Session,
        tenant_id: str,
        assignee: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Booking]:
        """Get one staff member's bookings overlapping a window (for conflict checks)"""
        return (
            db.query(Booking)
            .filter(
                Booking.tenant_id == tenant_id,
                Booking.assigned_to == assignee,
                Booking.start_date < window_end,
                Booking.end_date > window_start,
            )
            .all()
        )

    @staticmethod
    def update_booking_fields(db: Session, booking: Booking, **columns) -> Booking:
        """Write only the given columns"""
        for key, value in columns.items():
            setattr(booking, key, value)

        db.commit()
        db.refresh(booking)
        return booking


def to_calendar_booking(row: Booking) -> CalendarBooking:
    customer = row.customer
    return CalendarBooking(
        id=row.id,
        start=row.start_date,
        end=row.end_date,
        assignee=row.assigned_to,
        status=row.status or "pending",
        customer_ref=row.customer_id,
        tenant_id=row.tenant_id,
        summary=row.summary,
        customer_name=customer.name if customer else None,
        latitude=customer.latitude if customer else None,
        longitude=customer.longitude if customer else None,
        geofence_radius=customer.geofence_radius if customer else None,
    )


def to_columns(fields: dict) -> dict:
    """Translate domain field names to columns; unknown fields are refused"""
    unknown = set(fields) - set(FIELD_COLUMNS)
    if unknown:
        raise PersistenceError(f"Unsupported booking fields: {', '.join(sorted(unknown))}")
    return {FIELD_COLUMNS[field]: value for field, value in fields.items()}


class SqlBookingStore:
    """
    Booking persistence collaborator backed by SQLAlchemy.

    Session work is blocking, so ``update`` runs it in a worker thread to keep
    the event loop (and gesture handling) responsive.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def load_window(self, tenant_id: str, window_start: datetime, window_end: datetime) -> list[CalendarBooking]:
        """Range-filtered read for the calendar board"""
        db = self.session_factory()
        try:
            rows = BookingRepository.get_bookings_in_window(db, tenant_id, window_start, window_end)
            logger.info(f"📊 Loaded {len(rows)} bookings for tenant {tenant_id} ({window_start:%Y-%m-%d} → {window_end:%Y-%m-%d})")
            return [to_calendar_booking(row) for row in rows]
        finally:
            db.close()

    async def update(self, booking_id: str, fields: dict) -> None:
        await asyncio.to_thread(self._update_sync, booking_id, dict(fields))

    def _update_sync(self, booking_id: str, fields: dict) -> None:
        columns = to_columns(fields)
        db = self.session_factory()
        try:
            booking = BookingRepository.get_booking(db, booking_id)
            if booking is None:
                raise PersistenceError("Booking not found")
            BookingRepository.update_booking_fields(db, booking, **columns)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Database error updating booking {booking_id}: {e}")
            raise PersistenceError("Database error while saving booking") from e
        finally:
            db.close()
