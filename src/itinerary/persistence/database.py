"""Supabase persistence for schedule items and trip locations."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from ..db.supabase import get_supabase_client
from ..errors import NotFoundError, PersistenceError, ValidationError
from ..models.domain import Location, ScheduleItem
from .repository import UPDATABLE_FIELDS, next_order, validate_reorder

logger = logging.getLogger(__name__)

SCHEDULE_TABLE = "trip_schedule_items"
COMMENTS_TABLE = "trip_comments"
TRIP_LOCATIONS_TABLE = "trip_locations"
BASE_LOCATIONS_TABLE = "locations"

T = TypeVar("T")


def _now() -> float:
    return datetime.now(timezone.utc).timestamp()


def row_to_item(row: dict[str, Any]) -> ScheduleItem:
    return ScheduleItem(
        item_id=str(row["id"]),
        trip_id=str(row["trip_id"]),
        plan_id=str(row["plan_id"]),
        day=row["day_date"],
        title=row.get("title") or "",
        start_time=row.get("start_time") or "",
        end_time=row.get("end_time") or "",
        order=row.get("order"),
        location_id=row.get("location_id"),
        notes=row.get("notes"),
        is_flexible=bool(row.get("is_flexible", False)),
        created_by=row.get("created_by"),
        updated_by=row.get("updated_by"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def item_to_row(item: ScheduleItem) -> dict[str, Any]:
    return {
        "id": item.item_id,
        "trip_id": item.trip_id,
        "plan_id": item.plan_id,
        "day_date": item.day,
        "title": item.title,
        "start_time": item.start_time,
        "end_time": item.end_time,
        "order": item.order,
        "location_id": item.location_id,
        "notes": item.notes,
        "is_flexible": item.is_flexible,
        "created_by": item.created_by,
        "updated_by": item.updated_by,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


class _SupabaseRepository:
    def __init__(self, client: Any | None = None) -> None:
        self._client = client or get_supabase_client()
        if self._client is None:
            raise ValueError("Supabase is not configured (missing URL or key).")

    async def _run(self, operation: Callable[[], T]) -> T:
        # The Supabase client is synchronous.
        return await asyncio.to_thread(operation)


class SupabaseScheduleRepository(_SupabaseRepository):
    async def list_items(self, plan_id: str, day: str) -> list[ScheduleItem]:
        def query() -> list[dict[str, Any]]:
            response = (
                self._client.table(SCHEDULE_TABLE)
                .select("*")
                .eq("plan_id", plan_id)
                .eq("day_date", day)
                .execute()
            )
            return response.data or []

        return [row_to_item(row) for row in await self._run(query)]

    async def get_item(self, item_id: str) -> ScheduleItem:
        def query() -> list[dict[str, Any]]:
            response = self._client.table(SCHEDULE_TABLE).select("*").eq("id", item_id).limit(1).execute()
            return response.data or []

        rows = await self._run(query)
        if not rows:
            raise NotFoundError(f"Schedule item '{item_id}' not found")
        return row_to_item(rows[0])

    async def persist_order(
        self, plan_id: str, day: str, ordered_ids: Sequence[str], actor: Optional[str] = None
    ) -> None:
        items = await self.list_items(plan_id, day)
        validate_reorder(items, plan_id, day, ordered_ids)
        timestamp = _now()

        def write() -> None:
            for index, item_id in enumerate(ordered_ids):
                self._client.table(SCHEDULE_TABLE).update(
                    {"order": index, "updated_at": timestamp, "updated_by": actor}
                ).eq("id", item_id).execute()

        try:
            await self._run(write)
        except Exception as e:
            logger.error(f"Failed to persist order for plan '{plan_id}' on {day}: {e}")
            raise PersistenceError(f"Failed to persist order for plan '{plan_id}' on {day}: {e}") from e
        logger.info(f"Persisted order of {len(ordered_ids)} items for plan '{plan_id}' on {day}")

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
        siblings = await self.list_items(plan_id, day)
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
        await self._run(lambda: self._client.table(SCHEDULE_TABLE).insert(item_to_row(item)).execute())
        return item

    async def update_item(self, item_id: str, actor: Optional[str] = None, **fields: Any) -> ScheduleItem:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        await self.get_item(item_id)

        updates = dict(fields)
        updates.update({"updated_at": _now(), "updated_by": actor})
        await self._run(lambda: self._client.table(SCHEDULE_TABLE).update(updates).eq("id", item_id).execute())
        return await self.get_item(item_id)

    async def delete_item(self, item_id: str) -> int:
        await self.get_item(item_id)

        def delete() -> int:
            comments = (
                self._client.table(COMMENTS_TABLE).select("id").eq("schedule_item_id", item_id).execute()
            )
            deleted_comments = len(comments.data or [])
            if deleted_comments:
                self._client.table(COMMENTS_TABLE).delete().eq("schedule_item_id", item_id).execute()
            self._client.table(SCHEDULE_TABLE).delete().eq("id", item_id).execute()
            return deleted_comments

        deleted = await self._run(delete)
        logger.info(f"Deleted schedule item '{item_id}' and {deleted} comment(s)")
        return deleted

    async def move_item(
        self,
        item_id: str,
        target_plan_id: str,
        target_day: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> ScheduleItem:
        item = await self.get_item(item_id)
        day = target_day or item.day
        siblings = [other for other in await self.list_items(target_plan_id, day) if other.item_id != item_id]
        order = next_order(siblings)

        def move() -> None:
            self._client.table(SCHEDULE_TABLE).update(
                {
                    "plan_id": target_plan_id,
                    "day_date": day,
                    "order": order,
                    "updated_at": _now(),
                    "updated_by": actor,
                }
            ).eq("id", item_id).execute()
            self._client.table(COMMENTS_TABLE).update({"plan_id": target_plan_id, "day_date": day}).eq(
                "schedule_item_id", item_id
            ).execute()

        await self._run(move)
        return await self.get_item(item_id)


class SupabaseLocationRepository(_SupabaseRepository):
    async def get_locations(self, location_ids: Iterable[str]) -> dict[str, Location]:
        ids = sorted(set(location_ids))
        if not ids:
            return {}

        def query() -> tuple[list[dict[str, Any]], dict[str, dict[str, Any]]]:
            trip_rows = self._client.table(TRIP_LOCATIONS_TABLE).select("*").in_("id", ids).execute().data or []
            base_ids = sorted({row["location_id"] for row in trip_rows if row.get("location_id")})
            base_rows: dict[str, dict[str, Any]] = {}
            if base_ids:
                response = self._client.table(BASE_LOCATIONS_TABLE).select("*").in_("id", base_ids).execute()
                base_rows = {str(row["id"]): row for row in response.data or []}
            return trip_rows, base_rows

        trip_rows, base_rows = await self._run(query)
        locations: dict[str, Location] = {}
        for row in trip_rows:
            base = base_rows.get(str(row.get("location_id")), {})
            location = Location(
                location_id=str(row["id"]),
                lat=base.get("lat"),
                lng=base.get("lng"),
                custom_lat=row.get("custom_lat"),
                custom_lng=row.get("custom_lng"),
                category=row.get("custom_category") or base.get("category"),
                name=row.get("custom_name") or base.get("name"),
            )
            locations[location.location_id] = location
        return locations
