"""Request-scoped access to the services created at startup."""

from __future__ import annotations

from fastapi import Request

from ..persistence.repository import ScheduleRepository
from ..services.routing.day_route import DayRouteRegistry
from ..services.routing.service import RouteResolver
from ..services.scheduling.reorder import ReorderCoordinator

def get_coordinator(request: Request) -> ReorderCoordinator:
    return request.app.state.coordinator

def get_schedule_repository(request: Request) -> ScheduleRepository:
    return request.app.state.schedule_repository

def get_route_resolver(request: Request) -> RouteResolver:
    return request.app.state.route_resolver

def get_day_routes(request: Request) -> DayRouteRegistry:
    return request.app.state.day_routes
