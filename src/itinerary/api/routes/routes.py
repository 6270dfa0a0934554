"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.routing import RouteRequest, RouteResponse
from ...services.routing.service import RouteResolver
from ..dependencies import get_route_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/resolve", response_model=RouteResponse, status_code=status.HTTP_200_OK)
async def resolve(payload: RouteRequest, resolver: RouteResolver = Depends(get_route_resolver)) -> RouteResponse:
    """Resolve a road route through waypoints in the given order.

    Provider failures are not errors here: the response carries a straight-line
    path with ``is_fallback`` set.
    """
    waypoints = payload.to_waypoints()
    try:
        resolution = await resolver.resolve(waypoints)
    except Exception as exc:
        logger.exception(f"Error resolving route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to resolve route: {str(exc)}",
        ) from exc
    return RouteResponse.from_resolution(waypoints, resolution)
