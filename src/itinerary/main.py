"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, items, routes, schedule
from .config import settings
from .db.supabase import get_supabase_client
from .persistence.database import SupabaseLocationRepository, SupabaseScheduleRepository
from .persistence.repository import (
    InMemoryLocationRepository,
    InMemoryScheduleRepository,
    LocationRepository,
    ScheduleRepository,
)
from .services.routing.cache import InMemoryRouteCache
from .services.routing.day_route import DayRouteRegistry
from .services.routing.provider import RouteProvider
from .services.routing.service import RouteResolver, build_route_provider
from .services.scheduling.reorder import ReorderCoordinator

logger = logging.getLogger(__name__)


def _default_repositories() -> tuple[ScheduleRepository, LocationRepository]:
    client = get_supabase_client()
    if client is not None:
        return SupabaseScheduleRepository(client), SupabaseLocationRepository(client)
    return InMemoryScheduleRepository(), InMemoryLocationRepository()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logger.info(f"{settings.app_name} started")
    yield
    logger.info(f"{settings.app_name} shutting down")
    await app.state.coordinator.drain()
    await app.state.day_routes.aclose()


def create_app(
    schedule_repository: ScheduleRepository | None = None,
    location_repository: LocationRepository | None = None,
    route_provider: RouteProvider | None = None,
    route_debounce_seconds: float | None = None,
) -> FastAPI:
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if schedule_repository is None or location_repository is None:
        default_schedule, default_locations = _default_repositories()
        schedule_repository = schedule_repository or default_schedule
        location_repository = location_repository or default_locations

    app.state.schedule_repository = schedule_repository
    app.state.location_repository = location_repository
    app.state.coordinator = ReorderCoordinator(schedule_repository)
    app.state.route_resolver = RouteResolver(route_provider or build_route_provider(), InMemoryRouteCache())
    app.state.day_routes = DayRouteRegistry(
        app.state.coordinator,
        location_repository,
        app.state.route_resolver,
        debounce_seconds=route_debounce_seconds,
    )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(schedule.router, prefix=settings.api_prefix)
    app.include_router(items.router, prefix=settings.api_prefix)
    app.include_router(routes.router, prefix=settings.api_prefix)
    return app


app = create_app()
