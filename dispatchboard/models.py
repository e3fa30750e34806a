import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID primary key (bookings and customers are keyed by uuid strings)"""
    return str(uuid.uuid4())


class Customer(Base):
    """Customer / property record. Coordinates are filled by the CRM geocoding flow."""

    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    geofence_radius = Column(Float, nullable=True)  # meters, None = default radius
    created_at = Column(DateTime, server_default=func.now())

    bookings = relationship("Booking", back_populates="customer")


class Booking(Base):
    """Scheduled work interval for a property, optionally assigned to a staff member"""

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True)
    assigned_to = Column(String(36), nullable=True, index=True)  # staff member id
    summary = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # Local wall-clock instants, [start_date, end_date)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    # Status workflow: pending → confirmed → in_progress → completed (or cancelled)
    status = Column(String(50), default="pending", nullable=False)
    price = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="bookings")

    __table_args__ = (Index("ix_bookings_tenant_window", "tenant_id", "start_date", "end_date"),)


class CreditLedgerEntry(Base):
    """Append-only wallet ledger row. Balance is the sum of amounts for a tenant."""

    __tablename__ = "wallet_ledger"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # positive = credit, negative = debit
    description = Column(String(255), nullable=False)
    # route_optimization, deposit, telephony, ai_transcription, sms
    service_type = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
