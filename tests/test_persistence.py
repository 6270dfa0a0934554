from types import SimpleNamespace

import pytest

from itinerary.errors import ErrorCode, NotFoundError, PersistenceError, ValidationError
from itinerary.models.domain import ScheduleComment
from itinerary.persistence.database import (
    SupabaseLocationRepository,
    SupabaseScheduleRepository,
    item_to_row,
    row_to_item,
)

from conftest import DAY, PLAN


class FakeQuery:
    """Just enough of the Supabase query builder for the repositories."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.filters = []
        self.action = ("select",)
        self.limit_to = None

    def select(self, *_):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def limit(self, count):
        self.limit_to = count
        return self

    def update(self, values):
        self.action = ("update", values)
        return self

    def insert(self, row):
        self.action = ("insert", row)
        return self

    def delete(self):
        self.action = ("delete",)
        return self

    def execute(self):
        if self.client.fail_writes and self.action[0] != "select":
            raise RuntimeError("database offline")
        rows = self.client.tables.setdefault(self.table, [])
        matching = [row for row in rows if all(check(row) for check in self.filters)]
        if self.action[0] == "update":
            for row in matching:
                row.update(self.action[1])
        elif self.action[0] == "insert":
            rows.append(dict(self.action[1]))
            matching = [self.action[1]]
        elif self.action[0] == "delete":
            self.client.tables[self.table] = [row for row in rows if row not in matching]
        elif self.limit_to is not None:
            matching = matching[: self.limit_to]
        return SimpleNamespace(data=[dict(row) for row in matching])


class FakeSupabase:
    def __init__(self, tables=None):
        self.tables = tables or {}
        self.fail_writes = False

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def supabase(xyz_items):
    return FakeSupabase(
        {
            "trip_schedule_items": [item_to_row(item) for item in xyz_items],
            "trip_comments": [
                {"id": "c1", "schedule_item_id": "X", "plan_id": PLAN, "day_date": DAY},
                {"id": "c2", "schedule_item_id": "X", "plan_id": PLAN, "day_date": DAY},
            ],
            "trip_locations": [
                {"id": "loc-x", "location_id": "base-1", "custom_lat": None, "custom_lng": None},
                {"id": "loc-y", "location_id": "base-2", "custom_lat": 3.2, "custom_lng": 101.8, "custom_name": "Hotel"},
            ],
            "locations": [
                {"id": "base-1", "lat": 3.139, "lng": 101.6869, "name": "Tower", "category": "sight"},
                {"id": "base-2", "lat": 3.1579, "lng": 101.7116, "name": "Inn", "category": "hotel"},
            ],
        }
    )


def _orders(items):
    return {item.item_id: item.order for item in items}


async def test_in_memory_persist_order_sets_dense_orders(schedule_repo):
    await schedule_repo.persist_order(PLAN, DAY, ["Z", "X", "Y"], actor="user-1")

    items = await schedule_repo.list_items(PLAN, DAY)
    assert _orders(items) == {"Z": 0, "X": 1, "Y": 2}
    assert {item.updated_by for item in items} == {"user-1"}


async def test_persist_order_rejects_foreign_and_duplicate_ids(schedule_repo, make_item):
    schedule_repo.add(make_item("other", 0, "09:00", plan_id="plan-b"))

    with pytest.raises(ValidationError) as excinfo:
        await schedule_repo.persist_order(PLAN, DAY, ["X", "other"])
    assert excinfo.value.code == ErrorCode.INVALID_REORDER

    with pytest.raises(ValidationError):
        await schedule_repo.persist_order(PLAN, DAY, ["X", "X"])

    assert _orders(await schedule_repo.list_items(PLAN, DAY)) == {"X": 0, "Y": 1, "Z": 2}


async def test_listed_items_are_copies(schedule_repo):
    items = await schedule_repo.list_items(PLAN, DAY)
    items[0].order = 99

    assert (await schedule_repo.get_item(items[0].item_id)).order != 99


async def test_create_item_appends_to_the_day(schedule_repo):
    item = await schedule_repo.create_item("trip-1", PLAN, DAY, "Dinner", "19:00", "21:00", actor="user-1")

    assert item.order == 3
    assert item.created_by == "user-1"
    assert len(await schedule_repo.list_items(PLAN, DAY)) == 4


async def test_update_item_only_touches_allowed_fields(schedule_repo):
    updated = await schedule_repo.update_item("Y", title="Museum", notes="Closed Mondays")
    assert updated.title == "Museum"
    assert updated.order == 1

    with pytest.raises(ValidationError):
        await schedule_repo.update_item("Y", order=5)


async def test_delete_item_removes_its_comments(schedule_repo):
    schedule_repo.add_comment(ScheduleComment(comment_id="c1", item_id="X", plan_id=PLAN, day=DAY, body="hi"))

    assert await schedule_repo.delete_item("X") == 1
    assert schedule_repo.comments_for("X") == []
    with pytest.raises(NotFoundError):
        await schedule_repo.get_item("X")


async def test_move_item_appends_to_target_day_and_carries_comments(schedule_repo, make_item):
    schedule_repo.add(make_item("P", 0, "09:00", plan_id="plan-b"))
    schedule_repo.add_comment(ScheduleComment(comment_id="c1", item_id="X", plan_id=PLAN, day=DAY, body="hi"))

    moved = await schedule_repo.move_item("X", "plan-b")

    assert (moved.plan_id, moved.day, moved.order) == ("plan-b", DAY, 1)
    assert schedule_repo.comments_for("X")[0].plan_id == "plan-b"
    assert [item.item_id for item in await schedule_repo.list_items(PLAN, DAY)] == ["Y", "Z"]


async def test_location_repository_returns_known_ids_only(location_repo):
    locations = await location_repo.get_locations(["loc-x", "nowhere"])
    assert list(locations) == ["loc-x"]


def test_row_mapping_uses_day_date_column(xyz_items):
    row = item_to_row(xyz_items[0])

    assert row["day_date"] == DAY
    assert "day" not in row
    assert row_to_item(row) == xyz_items[0]


async def test_supabase_persist_order(supabase):
    repository = SupabaseScheduleRepository(client=supabase)

    await repository.persist_order(PLAN, DAY, ["Y", "Z", "X"], actor="user-1")

    assert _orders(await repository.list_items(PLAN, DAY)) == {"Y": 0, "Z": 1, "X": 2}


async def test_supabase_write_failure_is_a_persistence_error(supabase):
    repository = SupabaseScheduleRepository(client=supabase)
    supabase.fail_writes = True

    with pytest.raises(PersistenceError):
        await repository.persist_order(PLAN, DAY, ["Y", "Z", "X"])


async def test_supabase_delete_counts_comments(supabase):
    repository = SupabaseScheduleRepository(client=supabase)

    assert await repository.delete_item("X") == 2
    assert supabase.tables["trip_comments"] == []
    with pytest.raises(NotFoundError):
        await repository.get_item("X")


async def test_supabase_move_item(supabase):
    repository = SupabaseScheduleRepository(client=supabase)

    moved = await repository.move_item("Z", PLAN, target_day="2025-12-22")

    assert (moved.day, moved.order) == ("2025-12-22", 0)


async def test_supabase_locations_merge_custom_coordinates(supabase):
    repository = SupabaseLocationRepository(client=supabase)

    locations = await repository.get_locations(["loc-x", "loc-y"])

    assert (locations["loc-x"].lat, locations["loc-x"].lng, locations["loc-x"].name) == (3.139, 101.6869, "Tower")
    assert (locations["loc-y"].custom_lat, locations["loc-y"].custom_lng) == (3.2, 101.8)
    assert locations["loc-y"].name == "Hotel"
    assert locations["loc-y"].category == "hotel"


def test_supabase_repository_requires_a_client(monkeypatch):
    from itinerary.persistence import database

    monkeypatch.setattr(database, "get_supabase_client", lambda: None)
    with pytest.raises(ValueError):
        SupabaseScheduleRepository()
