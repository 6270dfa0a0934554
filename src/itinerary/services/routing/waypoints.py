"""Derive ordered route waypoints from a day's schedule items."""

from __future__ import annotations

import logging
import sys
from typing import Mapping, Optional, Sequence

from ...models.domain import Location, ScheduleItem
from .models import Waypoint

logger = logging.getLogger(__name__)


def _route_sort_key(item: ScheduleItem) -> tuple[int, str]:
    order = item.order if item.order is not None else sys.maxsize
    return order, item.start_time


def location_coordinates(location: Location) -> Optional[Waypoint]:
    """Return the coordinates for a location, preferring the trip-level override."""
    lat = location.custom_lat if location.custom_lat is not None else location.lat
    lng = location.custom_lng if location.custom_lng is not None else location.lng
    if lat is None or lng is None:
        return None
    return Waypoint(lat=float(lat), lng=float(lng))


def resolve_waypoints(
    items: Sequence[ScheduleItem],
    locations: Mapping[str, Location],
) -> tuple[Waypoint, ...]:
    """Build the ordered waypoint list for one plan/day.

    Items are taken in ``order`` (ties broken by start time). Items without a
    location, or whose location has no coordinates, are skipped; the relative
    order of the remaining stops is preserved.
    """
    points: list[Waypoint] = []
    for item in sorted(items, key=_route_sort_key):
        if not item.location_id:
            continue
        location = locations.get(item.location_id)
        if location is None:
            logger.debug(f"Location '{item.location_id}' for item '{item.item_id}' not found; skipping stop")
            continue
        point = location_coordinates(location)
        if point is None:
            logger.debug(f"Location '{item.location_id}' has no coordinates; skipping stop")
            continue
        points.append(point)
    return tuple(points)
