"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from ..services.routing.controller import RouteSnapshot
from ..services.routing.models import Waypoint
from ..services.routing.service import Resolution


class WaypointModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RouteRequest(BaseModel):
    waypoints: List[WaypointModel] = Field(..., description="Stops in travel order.")

    def to_waypoints(self) -> list[Waypoint]:
        return [Waypoint(lat=point.lat, lng=point.lng) for point in self.waypoints]


class RouteResponse(BaseModel):
    waypoints: List[WaypointModel]
    path: List[WaypointModel]
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None
    is_fallback: bool = False
    from_cache: bool = False
    error: Optional[str] = Field(default=None, description="Provider failure behind a fallback route, if any.")

    @classmethod
    def from_resolution(cls, waypoints: List[Waypoint], resolution: Resolution) -> RouteResponse:
        result = resolution.result
        return cls(
            waypoints=[WaypointModel(lat=point.lat, lng=point.lng) for point in waypoints],
            path=[WaypointModel(lat=point.lat, lng=point.lng) for point in result.path],
            distance_km=result.distance_km,
            duration_min=result.duration_min,
            is_fallback=result.is_fallback,
            from_cache=resolution.from_cache,
            error=resolution.error,
        )


class DayRouteResponse(BaseModel):
    plan_id: str
    day: str
    state: str = Field(..., description="idle, debouncing, fetching, resolved or fallback.")
    is_loading: bool = False
    waypoints: List[WaypointModel]
    path: List[WaypointModel]
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None
    is_fallback: bool = False
    error: Optional[str] = Field(default=None, description="Provider failure behind a fallback route, if any.")

    @classmethod
    def from_snapshot(
        cls, plan_id: str, day: str, waypoints: Sequence[Waypoint], snapshot: RouteSnapshot
    ) -> DayRouteResponse:
        result = snapshot.result
        return cls(
            plan_id=plan_id,
            day=day,
            state=snapshot.state.value,
            is_loading=snapshot.is_loading,
            waypoints=[WaypointModel(lat=point.lat, lng=point.lng) for point in waypoints],
            path=[WaypointModel(lat=point.lat, lng=point.lng) for point in result.path],
            distance_km=result.distance_km,
            duration_min=result.duration_min,
            is_fallback=result.is_fallback,
            error=snapshot.error,
        )
