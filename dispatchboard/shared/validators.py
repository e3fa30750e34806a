"""Shared validation utilities"""

import math
import uuid
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def validate_interval(
    start: datetime,
    end: datetime,
    min_duration: Optional[timedelta] = None,
    reference: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """
    Validate a booking interval.

    Args:
        start: Interval start (inclusive)
        end: Interval end (exclusive)
        min_duration: Optional floor for ``end - start``
        reference: An instant already on the calendar; the interval must use the
            same kind (naive or timezone-aware) so the two can be compared

    Returns:
        The (start, end) pair unchanged

    Raises:
        ValueError: If end is not after start, the interval is shorter than the
            floor, or naive and timezone-aware instants are mixed
    """
    if start is None or end is None:
        raise ValueError("Booking start and end are required")

    instants = [start, end] if reference is None else [start, end, reference]
    if len({_is_aware(value) for value in instants}) > 1:
        raise ValueError("Booking times must be all timezone-aware or all local (naive)")

    if end <= start:
        raise ValueError("Booking end must be after its start")

    if min_duration is not None and end - start < min_duration:
        minutes = int(min_duration.total_seconds() // 60)
        raise ValueError(f"Booking must last at least {minutes} minutes")

    return start, end


def has_valid_coordinates(lat: Optional[float], lng: Optional[float]) -> bool:
    """
    Check that a latitude/longitude pair is usable for distance math.

    (0, 0) is accepted: it is a real point, not a missing value.
    """
    if lat is None or lng is None:
        return False
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def validate_amount(amount) -> Decimal:
    """
    Normalize a money amount to a 2-place Decimal.

    Raises:
        ValueError: If the amount is not a finite number
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError("Amount must be a number")

    if not value.is_finite():
        raise ValueError("Amount must be a finite number")

    return value.quantize(Decimal("0.01"))
