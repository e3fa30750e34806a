"""Routing router - FastAPI endpoints for route optimization and check-in"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ..tenancy import get_tenant_id
from .schemas import CheckInRequest, CheckInResult, RouteRequest, RouteResult
from .service import RouteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["Routing"])


def get_route_service(db: Session = Depends(get_db)) -> RouteService:
    """Dependency injection for RouteService"""
    return RouteService(db)


@router.post("/optimize", response_model=RouteResult)
async def optimize_route(
    data: RouteRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: RouteService = Depends(get_route_service),
):
    """Preview the visit order for a window (requires enough credits, charges nothing)"""
    return service.preview(tenant_id, data)


@router.post("/accept", response_model=RouteResult)
async def accept_route(
    data: RouteRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: RouteService = Depends(get_route_service),
):
    """Apply the route for a window and deduct its cost from the wallet"""
    return service.accept(tenant_id, data)


@router.post("/bookings/{booking_id}/check-in", response_model=CheckInResult)
async def check_in(
    booking_id: str,
    data: CheckInRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: RouteService = Depends(get_route_service),
):
    """Check a staff member in if they are inside the property's geofence"""
    return service.check_in(tenant_id, booking_id, data.lat, data.lng)
