"""Shared fixtures: schedule data builders, a manual debounce scheduler and a scripted routing provider."""

import asyncio
import os

import pytest

# Keep tests off real services regardless of the developer's .env
os.environ["ITINERARY_ORS_API_KEY"] = ""
os.environ["ITINERARY_SUPABASE_URL"] = ""
os.environ["ITINERARY_SUPABASE_KEY"] = ""

from itinerary.errors import ProviderError  # noqa: E402
from itinerary.models.domain import Location, ScheduleItem  # noqa: E402
from itinerary.persistence.repository import InMemoryLocationRepository, InMemoryScheduleRepository  # noqa: E402
from itinerary.services.routing.models import ProviderRoute, Waypoint  # noqa: E402

PLAN = "plan-a"
DAY = "2025-12-21"


def _item(item_id: str, order, start_time: str, location_id=None, plan_id: str = PLAN, day: str = DAY) -> ScheduleItem:
    return ScheduleItem(
        item_id=item_id,
        trip_id="trip-1",
        plan_id=plan_id,
        day=day,
        title=f"Activity {item_id}",
        start_time=start_time,
        end_time=start_time,
        order=order,
        location_id=location_id,
    )


@pytest.fixture
def make_item():
    return _item


@pytest.fixture
def xyz_items():
    """X(order 0, 09:00), Y(order 1, 10:00), Z(order 2, 08:00)."""
    return [
        _item("X", 0, "09:00", location_id="loc-x"),
        _item("Y", 1, "10:00", location_id="loc-y"),
        _item("Z", 2, "08:00", location_id="loc-z"),
    ]


@pytest.fixture
def xyz_locations():
    return [
        Location(location_id="loc-x", lat=3.1390, lng=101.6869),
        Location(location_id="loc-y", lat=3.1579, lng=101.7116),
        Location(location_id="loc-z", lat=3.1478, lng=101.6953),
    ]


@pytest.fixture
def schedule_repo(xyz_items):
    return InMemoryScheduleRepository(xyz_items)


@pytest.fixture
def location_repo(xyz_locations):
    return InMemoryLocationRepository(xyz_locations)


class ManualTask:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Delayed tasks that only run when the test fires them."""

    def __init__(self):
        self.tasks = []

    def schedule(self, delay, callback):
        task = ManualTask(delay, callback)
        self.tasks.append(task)
        return task

    @property
    def pending(self):
        return [task for task in self.tasks if not task.cancelled and not task.fired]

    def fire(self):
        for task in self.pending:
            task.fired = True
            task.callback()


@pytest.fixture
def manual_scheduler():
    return ManualScheduler()


class ScriptedProvider:
    """Routing provider double that records calls.

    With ``hold=True`` each call waits until the test releases it, which lets
    tests choose the order in which responses arrive.
    """

    name = "scripted"

    def __init__(self, configured=True, fail=False, hold=False):
        self._configured = configured
        self.fail = fail
        self.hold = hold
        self.calls = []
        self.releases = []

    @property
    def configured(self):
        return self._configured

    async def fetch_route(self, waypoints):
        points = tuple(waypoints)
        self.calls.append(points)
        if self.hold:
            release = asyncio.Event()
            self.releases.append(release)
            await release.wait()
        if self.fail:
            raise ProviderError("Route service unavailable", status_code=503)
        path = points + (Waypoint(lat=points[-1].lat + 0.001, lng=points[-1].lng),)
        return ProviderRoute(path=path, distance_meters=2500.0 * len(points), duration_seconds=300.0 * len(points))


@pytest.fixture
def provider_factory():
    return ScriptedProvider


@pytest.fixture
def provider():
    return ScriptedProvider()
