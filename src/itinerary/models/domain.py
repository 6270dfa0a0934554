"""Domain models for scheduled activities and trip locations."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True)
class ScheduleItem:
    """An activity scheduled on one day of a trip plan.

    ``order`` is the position within (plan_id, day); items created before
    ordering existed may carry ``None`` and sort after ordered ones.
    """

    item_id: str
    trip_id: str
    plan_id: str
    day: str
    title: str
    start_time: str
    end_time: str
    order: Optional[int] = None
    location_id: Optional[str] = None
    notes: Optional[str] = None
    is_flexible: bool = False
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[float] = None
    updated_at: Optional[float] = None


@dataclass(slots=True)
class Location:
    """A place saved to a trip.

    ``custom_lat``/``custom_lng`` are the trip-level override; ``lat``/``lng``
    come from the referenced canonical location when there is one.
    """

    location_id: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    custom_lat: Optional[float] = None
    custom_lng: Optional[float] = None
    category: Optional[str] = None
    name: Optional[str] = None


@dataclass(slots=True)
class ScheduleComment:
    comment_id: str
    item_id: str
    plan_id: str
    day: str
    body: str = ""


@dataclass(frozen=True, slots=True)
class ReorderRequest:
    """Ordered id list sent to the schedule store for one plan/day."""

    plan_id: str
    day: str
    ordered_item_ids: tuple[str, ...] = field(default_factory=tuple)
