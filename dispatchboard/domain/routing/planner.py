"""
Credit-metered route planning for a staff member's visits.

Nearest-neighbour heuristic: start at the earliest-scheduled visit, then
repeatedly go to the closest unvisited property (haversine distance). O(n²),
deterministic for a given input, not an optimal tour.

Planning is free to preview but requires the wallet to cover the cost;
accepting a plan charges the tenant exactly once.
"""

import logging
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ...config import ROUTE_OPTIMIZATION_COST
from ...shared.context import DispatchContext
from ...shared.exceptions import DispatchError, InsufficientDataError, InsufficientFundsError
from ...shared.validators import has_valid_coordinates
from .distance import point_distance
from .schemas import PlanOutcome, RoutePoint, RouteResult, RouteStop

logger = logging.getLogger(__name__)

SERVICE_TYPE = "route_optimization"


def to_route_point(item) -> Optional[RoutePoint]:
    """Build a RoutePoint from a RoutePoint or a calendar booking; None without usable coordinates"""
    if isinstance(item, RoutePoint):
        return item if has_valid_coordinates(item.lat, item.lng) else None

    lat = getattr(item, "latitude", None)
    lng = getattr(item, "longitude", None)
    if not has_valid_coordinates(lat, lng):
        return None

    label = getattr(item, "customer_name", None) or getattr(item, "summary", None) or item.id
    return RoutePoint(booking_id=item.id, lat=lat, lng=lng, label=label, scheduled_start=item.start)


def collect_route_points(bookings: Iterable) -> list[RoutePoint]:
    points = []
    for booking in bookings:
        point = to_route_point(booking)
        if point is not None:
            points.append(point)
    return points


def nearest_neighbor_route(
    points: list[RoutePoint],
    distance: Callable[[RoutePoint, RoutePoint], float] = point_distance,
) -> list[RouteStop]:
    """Order points greedily from the earliest-scheduled one; ties go to the earlier point"""
    if not points:
        return []

    ordered = sorted(points, key=lambda p: p.scheduled_start)
    current = ordered[0]
    unvisited = ordered[1:]
    stops = [RouteStop(**current.model_dump(), sequence=1)]

    while unvisited:
        nearest_idx = 0
        min_distance = distance(current, unvisited[0])
        for idx in range(1, len(unvisited)):
            d = distance(current, unvisited[idx])
            if d < min_distance:
                min_distance = d
                nearest_idx = idx

        current = unvisited.pop(nearest_idx)
        stops.append(
            RouteStop(**current.model_dump(), sequence=len(stops) + 1, distance_from_previous_m=min_distance)
        )

    return stops


class RoutePlanner:
    """Plans and charges route optimizations for the context's tenant"""

    def __init__(
        self,
        context: DispatchContext,
        ledger,
        cost: Decimal = ROUTE_OPTIMIZATION_COST,
        distance: Callable[[RoutePoint, RoutePoint], float] = point_distance,
    ):
        self.context = context
        self.ledger = ledger
        self.cost = Decimal(cost)
        self.distance = distance

    def _fresh_balance(self) -> Decimal:
        balance = Decimal(self.ledger.get_balance(self.context.tenant_id))
        self.context.wallet_balance = balance
        return balance

    def _require_funds(self) -> Decimal:
        balance = self._fresh_balance()
        if balance < self.cost:
            raise InsufficientFundsError(
                f"Insufficient credits. Cost: ${self.cost:.2f}, balance: ${balance:.2f}"
            )
        return balance

    def optimize_route(self, bookings: Iterable) -> PlanOutcome:
        """
        Build a route preview. Nothing is charged until ``accept_route``.

        Fails with InsufficientDataError (<2 geolocated bookings) or
        InsufficientFundsError (balance below cost); neither writes anything.
        """
        try:
            points = collect_route_points(bookings)
            if len(points) < 2:
                raise InsufficientDataError("Not enough bookings with location data to optimize")

            self._require_funds()

            stops = nearest_neighbor_route(points, self.distance)
            result = RouteResult(
                stops=stops,
                cost=self.cost,
                total_distance_m=sum(s.distance_from_previous_m for s in stops),
            )
        except DispatchError as e:
            logger.warning(f"⚠️ Route optimization refused for tenant {self.context.tenant_id}: {e.reason}")
            self.context.notifier.error(e.reason)
            return PlanOutcome.failure(e)

        logger.info(
            f"🗺️ Route planned for tenant {self.context.tenant_id}: "
            f"{len(result.stops)} stops, {result.total_distance_m / 1000:.1f} km"
        )
        return PlanOutcome.success(result)

    def accept_route(self, result: RouteResult) -> PlanOutcome:
        """Charge the tenant once (a single negative ledger entry) and return the accepted route"""
        try:
            if len(result.stops) < 2:
                raise InsufficientDataError("Not enough bookings with location data to optimize")

            self._require_funds()
            new_balance = self.ledger.debit(
                self.context.tenant_id,
                self.cost,
                f"Route optimization ({len(result.stops)} stops)",
                SERVICE_TYPE,
            )
        except DispatchError as e:
            logger.warning(f"⚠️ Route acceptance failed for tenant {self.context.tenant_id}: {e.reason}")
            self.context.notifier.error(e.reason)
            return PlanOutcome.failure(e)

        self.context.wallet_balance = Decimal(new_balance)
        self.context.notifier.success("Route applied! Credits deducted.")
        logger.info(f"✅ Route accepted for tenant {self.context.tenant_id}, balance now {new_balance}")
        return PlanOutcome.success(
            result.model_copy(update={"accepted": True, "balance_after": Decimal(new_balance), "cost": self.cost})
        )
