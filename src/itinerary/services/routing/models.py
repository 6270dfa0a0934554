"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Waypoint:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class ProviderRoute:
    """Route as returned by a provider, in provider-native units."""

    path: tuple[Waypoint, ...]
    distance_meters: float
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class RouteResult:
    """Resolved route for an ordered waypoint list.

    Fallback results are the waypoints themselves joined by straight lines
    and never carry distance or duration.
    """

    path: tuple[Waypoint, ...]
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None
    is_fallback: bool = False

    @classmethod
    def empty(cls) -> RouteResult:
        return cls(path=())

    @classmethod
    def straight_line(cls, waypoints: tuple[Waypoint, ...]) -> RouteResult:
        return cls(path=tuple(waypoints), is_fallback=True)

    @classmethod
    def from_provider(cls, route: ProviderRoute) -> RouteResult:
        return cls(
            path=route.path,
            distance_km=route.distance_meters / 1000.0,
            duration_min=route.duration_seconds / 60.0,
        )
