import asyncio

import pytest

from itinerary.errors import PersistenceError
from itinerary.models.domain import Location
from itinerary.services.routing.controller import RouteResolutionController, RouteState
from itinerary.services.routing.day_route import DayRoute, DayRouteRegistry
from itinerary.services.routing.models import Waypoint
from itinerary.services.routing.service import RouteResolver
from itinerary.services.scheduling.reorder import ReorderCoordinator

from conftest import DAY, PLAN

X = Waypoint(lat=3.1390, lng=101.6869)
Y = Waypoint(lat=3.1579, lng=101.7116)
Z = Waypoint(lat=3.1478, lng=101.6953)


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


def _day_route(schedule_repo, location_repo, provider, scheduler):
    coordinator = ReorderCoordinator(schedule_repo)
    controller = RouteResolutionController(RouteResolver(provider), scheduler=scheduler, debounce_seconds=0.3)
    return coordinator, controller, DayRoute(coordinator, location_repo, controller)


async def test_selecting_a_day_resolves_its_route(schedule_repo, location_repo, provider, manual_scheduler):
    _, controller, day_route = _day_route(schedule_repo, location_repo, provider, manual_scheduler)

    await day_route.select(PLAN, DAY)
    assert day_route.waypoints == (X, Y, Z)
    assert day_route.route.state == RouteState.DEBOUNCING

    manual_scheduler.fire()
    await controller.drain()

    assert provider.calls == [(X, Y, Z)]
    assert day_route.route.state == RouteState.RESOLVED


async def test_reorder_updates_waypoints_immediately(schedule_repo, location_repo, provider, manual_scheduler):
    coordinator, controller, day_route = _day_route(schedule_repo, location_repo, provider, manual_scheduler)
    await day_route.select(PLAN, DAY)
    manual_scheduler.fire()
    await controller.drain()

    task = coordinator.reorder(DAY, PLAN, "X", "Z")

    assert day_route.waypoints == (Y, Z, X)
    assert day_route.route.state == RouteState.DEBOUNCING
    await task
    manual_scheduler.fire()
    await controller.drain()
    assert provider.calls[-1] == (Y, Z, X)


async def test_failed_reorder_returns_to_the_cached_route(
    xyz_items, location_repo, provider, manual_scheduler
):
    class FailingRepository:
        def __init__(self, items):
            self.items = items

        async def list_items(self, plan_id, day):
            return list(self.items)

        async def persist_order(self, plan_id, day, ordered_ids, actor=None):
            raise RuntimeError("offline")

    coordinator, controller, day_route = _day_route(
        FailingRepository(xyz_items), location_repo, provider, manual_scheduler
    )
    await day_route.select(PLAN, DAY)
    manual_scheduler.fire()
    await controller.drain()
    original = controller.result

    task = coordinator.reorder(DAY, PLAN, "X", "Z")
    await asyncio.gather(task, return_exceptions=True)
    manual_scheduler.fire()

    assert day_route.waypoints == (X, Y, Z)
    assert controller.state == RouteState.RESOLVED
    assert controller.result is original
    assert len(provider.calls) == 1


async def test_new_location_is_loaded_before_routing(
    schedule_repo, location_repo, provider, manual_scheduler, make_item
):
    coordinator, _, day_route = _day_route(schedule_repo, location_repo, provider, manual_scheduler)
    await day_route.select(PLAN, DAY)

    location_repo.add(Location(location_id="loc-w", lat=3.2, lng=101.6))
    schedule_repo.add(make_item("W", 3, "12:00", location_id="loc-w"))
    await coordinator.load(DAY, PLAN)
    await _settle()

    assert day_route.waypoints == (X, Y, Z, Waypoint(lat=3.2, lng=101.6))


async def test_other_days_do_not_affect_the_route(
    schedule_repo, location_repo, provider, manual_scheduler, make_item
):
    coordinator, _, day_route = _day_route(schedule_repo, location_repo, provider, manual_scheduler)
    await day_route.select(PLAN, DAY)
    schedule_repo.add(make_item("P", 0, "09:00", location_id="loc-x", day="2025-12-22"))
    schedule_repo.add(make_item("Q", 1, "10:00", location_id="loc-y", day="2025-12-22"))
    await coordinator.load("2025-12-22", PLAN)

    await coordinator.reorder("2025-12-22", PLAN, "P", "Q")

    assert day_route.waypoints == (X, Y, Z)


async def test_aclose_stops_following_the_coordinator(schedule_repo, location_repo, provider, manual_scheduler):
    coordinator, controller, day_route = _day_route(schedule_repo, location_repo, provider, manual_scheduler)
    await day_route.select(PLAN, DAY)

    await day_route.aclose()
    await coordinator.reorder(DAY, PLAN, "X", "Z")

    assert day_route.waypoints == (X, Y, Z)
    assert controller.state == RouteState.IDLE


async def test_selecting_a_day_schedules_a_single_debounce(schedule_repo, location_repo, provider, manual_scheduler):
    _, _, day_route = _day_route(schedule_repo, location_repo, provider, manual_scheduler)

    await day_route.select(PLAN, DAY)
    await _settle()

    assert len(manual_scheduler.tasks) == 1


def _registry(schedule_repo, location_repo, provider, scheduler):
    coordinator = ReorderCoordinator(schedule_repo)
    registry = DayRouteRegistry(
        coordinator, location_repo, RouteResolver(provider), scheduler=scheduler, debounce_seconds=0.3
    )
    return coordinator, registry


async def test_registry_keeps_one_route_per_day(schedule_repo, location_repo, provider, manual_scheduler):
    _, registry = _registry(schedule_repo, location_repo, provider, manual_scheduler)

    first = await registry.get(PLAN, DAY)
    again = await registry.get(PLAN, DAY)
    other = await registry.get(PLAN, "2025-12-22")

    assert again is first
    assert other is not first
    assert len(registry) == 2
    assert first.waypoints == (X, Y, Z)
    assert other.waypoints == ()


async def test_registry_routes_follow_reorders(schedule_repo, location_repo, provider, manual_scheduler):
    coordinator, registry = _registry(schedule_repo, location_repo, provider, manual_scheduler)
    day_route = await registry.get(PLAN, DAY)
    manual_scheduler.fire()
    await day_route.wait_until_settled()

    await coordinator.reorder(DAY, PLAN, "X", "Z")
    assert day_route.route.state == RouteState.DEBOUNCING
    manual_scheduler.fire()
    snapshot = await day_route.wait_until_settled()

    assert snapshot.state == RouteState.RESOLVED
    assert provider.calls == [(X, Y, Z), (Y, Z, X)]


async def test_registry_aclose_stops_pending_work(schedule_repo, location_repo, provider, manual_scheduler):
    coordinator, registry = _registry(schedule_repo, location_repo, provider, manual_scheduler)
    day_route = await registry.get(PLAN, DAY)

    await registry.aclose()
    await coordinator.reorder(DAY, PLAN, "X", "Z")

    assert len(registry) == 0
    assert manual_scheduler.pending == []
    assert day_route.route.state == RouteState.IDLE
    assert provider.calls == []


async def test_registry_does_not_keep_a_day_that_failed_to_load(location_repo, provider, manual_scheduler):
    class UnreachableRepository:
        async def list_items(self, plan_id, day):
            raise PersistenceError("store unreachable")

    _, registry = _registry(UnreachableRepository(), location_repo, provider, manual_scheduler)

    with pytest.raises(PersistenceError):
        await registry.get(PLAN, DAY)

    assert len(registry) == 0
