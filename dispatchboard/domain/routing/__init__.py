"""
Routing Domain

- distance.py - haversine distance
- planner.py  - nearest-neighbour route planning metered by the credit ledger
- checkin.py  - geofence check-in
- service.py / router.py - HTTP endpoints
"""

from .checkin import verify_check_in
from .distance import haversine_distance
from .planner import RoutePlanner, nearest_neighbor_route
from .schemas import PlanOutcome, RoutePoint, RouteResult, RouteStop

__all__ = [
    "PlanOutcome",
    "RoutePlanner",
    "RoutePoint",
    "RouteResult",
    "RouteStop",
    "haversine_distance",
    "nearest_neighbor_route",
    "verify_check_in",
]
