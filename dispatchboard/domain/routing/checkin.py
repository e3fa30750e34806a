"""Geofence check-in - is the staff member actually at the property?"""

import logging
from typing import Optional

from ...config import DEFAULT_GEOFENCE_RADIUS_M
from ...shared.exceptions import InsufficientDataError
from ...shared.validators import has_valid_coordinates
from .distance import haversine_distance
from .schemas import CheckInResult

logger = logging.getLogger(__name__)


def verify_check_in(
    booking,
    lat: float,
    lng: float,
    default_radius: Optional[float] = None,
) -> CheckInResult:
    """
    Compare a reported position with the booking's property geofence.

    Args:
        booking: CalendarBooking carrying the customer's latitude/longitude
        lat, lng: Staff member's reported position
        default_radius: Radius used when the property has none (defaults to config)

    Raises:
        InsufficientDataError: the property has no usable coordinates
    """
    if not has_valid_coordinates(booking.latitude, booking.longitude):
        raise InsufficientDataError("This property has no location data")

    radius = booking.geofence_radius or default_radius or DEFAULT_GEOFENCE_RADIUS_M
    distance = haversine_distance(lat, lng, booking.latitude, booking.longitude)
    allowed = distance <= radius

    if allowed:
        message = "Checked in"
        logger.info(f"✅ Check-in accepted for booking {booking.id} ({distance:.0f}m of {radius:.0f}m)")
    else:
        message = f"You are {distance:.0f}m away. Move within {radius:.0f}m of the property to check in."
        logger.warning(f"⚠️ Check-in refused for booking {booking.id}: {distance:.0f}m > {radius:.0f}m")

    return CheckInResult(allowed=allowed, distance_m=distance, radius_m=radius, message=message)
