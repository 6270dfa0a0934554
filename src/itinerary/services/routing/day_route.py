"""Keep the route of one plan/day in step with its item order."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from ...models.domain import Location, ScheduleItem
from ...persistence.repository import LocationRepository
from ..scheduling.reorder import ReorderCoordinator
from .controller import RouteResolutionController, RouteSnapshot
from .models import Waypoint
from .scheduler import Scheduler
from .service import RouteResolver
from .waypoints import resolve_waypoints

logger = logging.getLogger(__name__)


class DayRoute:
    """Feed the visible order of the selected day into a route controller.

    Reorders only permute items, so waypoints are recomputed synchronously
    from the locations already loaded; unseen location ids trigger a reload.
    """

    def __init__(
        self,
        coordinator: ReorderCoordinator,
        locations: LocationRepository,
        controller: RouteResolutionController,
        plan_id: Optional[str] = None,
        day: Optional[str] = None,
    ) -> None:
        self._coordinator = coordinator
        self._location_repository = locations
        self._controller = controller
        self.plan_id = plan_id
        self.day = day
        self._locations: dict[str, Location] = {}
        self._requested: set[str] = set()
        self._waypoints: tuple[Waypoint, ...] = ()
        self._reload: Optional[asyncio.Task] = None
        self._unsubscribe = coordinator.subscribe(self._on_order_changed)

    @property
    def waypoints(self) -> tuple[Waypoint, ...]:
        return self._waypoints

    @property
    def route(self) -> RouteSnapshot:
        return self._controller.snapshot()

    async def select(self, plan_id: str, day: str) -> None:
        """Track another plan/day and resolve its route."""
        # Loaded before switching so the load notification is not routed twice.
        await self._coordinator.ensure_loaded(day, plan_id)
        self.plan_id = plan_id
        self.day = day
        await self.refresh()

    async def wait_until_settled(self) -> RouteSnapshot:
        return await self._controller.wait_until_settled()

    async def refresh(self) -> None:
        if not self.plan_id or not self.day:
            self._push(())
            return
        items = self._coordinator.items(self.day, self.plan_id)
        await self._load_locations(items)
        self._push(items)

    async def aclose(self) -> None:
        self._unsubscribe()
        if self._reload is not None and not self._reload.done():
            self._reload.cancel()
        await self._controller.aclose()

    def _on_order_changed(self, plan_id: str, day: str, items: list[ScheduleItem]) -> None:
        if plan_id != self.plan_id or day != self.day:
            return
        if self._unseen_location_ids(items):
            self._reload = asyncio.get_running_loop().create_task(self.refresh())
            return
        self._push(items)

    def _unseen_location_ids(self, items: Sequence[ScheduleItem]) -> set[str]:
        return {item.location_id for item in items if item.location_id} - self._requested

    async def _load_locations(self, items: Sequence[ScheduleItem]) -> None:
        missing = self._unseen_location_ids(items)
        if not missing:
            return
        loaded = await self._location_repository.get_locations(missing)
        self._requested |= missing
        self._locations.update(loaded)
        if len(loaded) < len(missing):
            logger.debug(f"{len(missing) - len(loaded)} location(s) not found for plan '{self.plan_id}' on {self.day}")

    def _push(self, items: Sequence[ScheduleItem]) -> None:
        self._waypoints = resolve_waypoints(items, self._locations)
        self._controller.update_waypoints(self._waypoints)


class DayRouteRegistry:
    """One live ``DayRoute`` per plan/day, created on first request.

    All day routes share the coordinator and the resolver, and so the route
    cache. ``aclose`` stops their timers and in-flight fetches.
    """

    def __init__(
        self,
        coordinator: ReorderCoordinator,
        locations: LocationRepository,
        resolver: RouteResolver,
        scheduler: Optional[Scheduler] = None,
        debounce_seconds: Optional[float] = None,
    ) -> None:
        self._coordinator = coordinator
        self._locations = locations
        self._resolver = resolver
        self._scheduler = scheduler
        self._debounce = debounce_seconds
        self._routes: dict[tuple[str, str], DayRoute] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._routes)

    async def get(self, plan_id: str, day: str) -> DayRoute:
        """Return the day route for ``plan_id``/``day`` with its waypoints up to date."""
        key = (plan_id, day)
        async with self._lock:
            day_route = self._routes.get(key)
            if day_route is not None:
                await day_route.refresh()
                return day_route

            controller = RouteResolutionController(
                self._resolver, scheduler=self._scheduler, debounce_seconds=self._debounce
            )
            day_route = DayRoute(self._coordinator, self._locations, controller)
            try:
                await day_route.select(plan_id, day)
            except BaseException:
                await day_route.aclose()
                raise
            self._routes[key] = day_route
            logger.debug(f"Tracking route for plan '{plan_id}' on {day}")
            return day_route

    async def aclose(self) -> None:
        routes = list(self._routes.values())
        self._routes.clear()
        for day_route in routes:
            await day_route.aclose()
        if routes:
            logger.info(f"Closed {len(routes)} day route(s)")
