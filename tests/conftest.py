"""Shared fixtures: in-memory database, seeded tenant data, calendar boards"""

import os

# Keep the module-level engine off disk before dispatchboard.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dispatchboard import models
from dispatchboard.database import Base
from dispatchboard.domain.scheduling.schemas import CalendarBooking
from dispatchboard.shared.context import DispatchContext

TENANT_ID = "6f1c2a4e-1d2b-4c3a-9e8f-0a1b2c3d4e5f"
OTHER_TENANT_ID = "0b9a8c7d-6e5f-4a3b-8c2d-1e0f9a8b7c6d"
ALICE = "staff-alice"
BOB = "staff-bob"
DAY = date(2024, 3, 4)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 3, 4, hour, minute)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    """Three geolocated customers with one booking each for Alice, plus noise"""
    home = models.Customer(tenant_id=TENANT_ID, name="Origin Villa", latitude=0.0, longitude=0.0)
    far = models.Customer(tenant_id=TENANT_ID, name="Diagonal House", latitude=1.0, longitude=1.0)
    near = models.Customer(tenant_id=TENANT_ID, name="North Flat", latitude=0.0, longitude=1.0)
    blank = models.Customer(tenant_id=TENANT_ID, name="No Address Ltd")
    foreign = models.Customer(tenant_id=OTHER_TENANT_ID, name="Elsewhere", latitude=5.0, longitude=5.0)
    db.add_all([home, far, near, blank, foreign])
    db.flush()

    bookings = {
        "first": models.Booking(
            tenant_id=TENANT_ID, customer_id=home.id, assigned_to=ALICE, summary="Deep clean",
            start_date=at(8), end_date=at(9), status="confirmed", price=Decimal("120.00"),
        ),
        "second": models.Booking(
            tenant_id=TENANT_ID, customer_id=far.id, assigned_to=ALICE, summary="Windows",
            start_date=at(9), end_date=at(10), status="pending",
        ),
        "third": models.Booking(
            tenant_id=TENANT_ID, customer_id=near.id, assigned_to=ALICE, summary="Carpets",
            start_date=at(10), end_date=at(11), status="pending",
        ),
        "unlocated": models.Booking(
            tenant_id=TENANT_ID, customer_id=blank.id, assigned_to=BOB, summary="Office",
            start_date=at(12), end_date=at(13), status="pending",
        ),
        "foreign": models.Booking(
            tenant_id=OTHER_TENANT_ID, customer_id=foreign.id, assigned_to=ALICE, summary="Not ours",
            start_date=at(8), end_date=at(9), status="pending",
        ),
    }
    db.add_all(bookings.values())
    db.commit()
    return {key: booking.id for key, booking in bookings.items()}


@pytest.fixture
def context():
    return DispatchContext(TENANT_ID)


@pytest.fixture
def alice_day():
    """Alice 8-9 and 10-11, Bob 8-9 (in-memory board contents)"""
    return [
        CalendarBooking(id="b1", start=at(8), end=at(9), assignee=ALICE, summary="Deep clean"),
        CalendarBooking(id="b2", start=at(10), end=at(11), assignee=ALICE, summary="Windows"),
        CalendarBooking(id="b3", start=at(8), end=at(9), assignee=BOB, summary="Office"),
    ]


@pytest.fixture
def broken_session_factory():
    """Sessions on a database without tables: every query raises OperationalError"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
