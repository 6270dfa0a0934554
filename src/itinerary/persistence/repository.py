"""Storage interfaces for schedule items and trip locations, with in-process implementations."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Protocol, Sequence

from ..errors import ErrorCode, NotFoundError, ValidationError
from ..models.domain import Location, ScheduleComment, ScheduleItem

UPDATABLE_FIELDS = frozenset({"title", "start_time", "end_time", "location_id", "notes", "is_flexible"})


def _now() -> float:
    return datetime.now(timezone.utc).timestamp()


def validate_reorder(items: Sequence[ScheduleItem], plan_id: str, day: str, ordered_ids: Sequence[str]) -> None:
    """Check that every id belongs to (plan_id, day) and appears once."""
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError("Duplicate item ids in reorder request", code=ErrorCode.INVALID_REORDER)
    known = {item.item_id: item for item in items}
    for item_id in ordered_ids:
        item = known.get(item_id)
        if item is None or item.plan_id != plan_id or item.day != day:
            raise ValidationError(
                f"Invalid item ID '{item_id}' or item does not belong to plan '{plan_id}' on {day}",
                code=ErrorCode.INVALID_REORDER,
            )


def next_order(items: Iterable[ScheduleItem]) -> int:
    orders = [item.order for item in items if item.order is not None]
    return max(orders) + 1 if orders else 0


class ScheduleRepository(Protocol):
    async def list_items(self, plan_id: str, day: str) -> list[ScheduleItem]:
        ...

    async def get_item(self, item_id: str) -> ScheduleItem:
        ...

    async def persist_order(
        self, plan_id: str, day: str, ordered_ids: Sequence[str], actor: Optional[str] = None
    ) -> None:
        ...

    async def create_item(
        self,
        trip_id: str,
        plan_id: str,
        day: str,
        title: str,
        start_time: str,
        end_time: str,
        location_id: Optional[str] = None,
        notes: Optional[str] = None,
        is_flexible: bool = False,
        actor: Optional[str] = None,
    ) -> ScheduleItem:
        ...

    async def update_item(self, item_id: str, actor: Optional[str] = None, **fields: Any) -> ScheduleItem:
        ...

    async def delete_item(self, item_id: str) -> int:
        ...

    async def move_item(
        self,
        item_id: str,
        target_plan_id: str,
        target_day: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> ScheduleItem:
        ...


class LocationRepository(Protocol):
    async def get_locations(self, location_ids: Iterable[str]) -> dict[str, Location]:
        ...


class InMemoryScheduleRepository:
    """Dictionary-backed schedule store used when no database is configured."""

    def __init__(self, items: Iterable[ScheduleItem] = ()) -> None:
        self._items: dict[str, ScheduleItem] = {item.item_id: item for item in items}
        self._comments: dict[str, ScheduleComment] = {}

    def add(self, item: ScheduleItem) -> None:
        self._items[item.item_id] = item

    def add_comment(self, comment: ScheduleComment) -> None:
        self._comments[comment.comment_id] = comment

    def comments_for(self, item_id: str) -> list[ScheduleComment]:
        return [comment for comment in self._comments.values() if comment.item_id == item_id]

    async def list_items(self, plan_id: str, day: str) -> list[ScheduleItem]:
        return [
            replace(item) for item in self._items.values() if item.plan_id == plan_id and item.day == day
        ]

    async def get_item(self, item_id: str) -> ScheduleItem:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"Schedule item '{item_id}' not found")
        return replace(item)

    async def persist_order(
        self, plan_id: str, day: str, ordered_ids: Sequence[str], actor: Optional[str] = None
    ) -> None:
        validate_reorder(list(self._items.values()), plan_id, day, ordered_ids)
        timestamp = _now()
        for index, item_id in enumerate(ordered_ids):
            self._items[item_id] = replace(
                self._items[item_id], order=index, updated_at=timestamp, updated_by=actor
            )

    async def create_item(
        self,
        trip_id: str,
        plan_id: str,
        day: str,
        title: str,
        start_time: str,
        end_time: str,
        location_id: Optional[str] = None,
        notes: Optional[str] = None,
        is_flexible: bool = False,
        actor: Optional[str] = None,
    ) -> ScheduleItem:
        siblings = [item for item in self._items.values() if item.plan_id == plan_id and item.day == day]
        timestamp = _now()
        item = ScheduleItem(
            item_id=uuid.uuid4().hex,
            trip_id=trip_id,
            plan_id=plan_id,
            day=day,
            title=title,
            start_time=start_time,
            end_time=end_time,
            order=next_order(siblings),
            location_id=location_id,
            notes=notes,
            is_flexible=is_flexible,
            created_by=actor,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._items[item.item_id] = item
        return replace(item)

    async def update_item(self, item_id: str, actor: Optional[str] = None, **fields: Any) -> ScheduleItem:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        item = await self.get_item(item_id)
        updated = replace(item, **fields, updated_at=_now(), updated_by=actor)
        self._items[item_id] = updated
        return replace(updated)

    async def delete_item(self, item_id: str) -> int:
        if item_id not in self._items:
            raise NotFoundError(f"Schedule item '{item_id}' not found")
        comment_ids = [comment.comment_id for comment in self.comments_for(item_id)]
        for comment_id in comment_ids:
            del self._comments[comment_id]
        del self._items[item_id]
        return len(comment_ids)

    async def move_item(
        self,
        item_id: str,
        target_plan_id: str,
        target_day: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> ScheduleItem:
        item = await self.get_item(item_id)
        day = target_day or item.day
        siblings = [
            other
            for other in self._items.values()
            if other.plan_id == target_plan_id and other.day == day and other.item_id != item_id
        ]
        moved = replace(
            item,
            plan_id=target_plan_id,
            day=day,
            order=next_order(siblings),
            updated_at=_now(),
            updated_by=actor,
        )
        self._items[item_id] = moved
        for comment in self.comments_for(item_id):
            self._comments[comment.comment_id] = replace(comment, plan_id=target_plan_id, day=day)
        return replace(moved)


class InMemoryLocationRepository:
    def __init__(self, locations: Iterable[Location] = ()) -> None:
        self._locations: dict[str, Location] = {location.location_id: location for location in locations}

    def add(self, location: Location) -> None:
        self._locations[location.location_id] = location

    async def get_locations(self, location_ids: Iterable[str]) -> dict[str, Location]:
        return {
            location_id: self._locations[location_id]
            for location_id in set(location_ids)
            if location_id in self._locations
        }
