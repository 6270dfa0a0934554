"""Route result memo keyed by a canonical waypoint signature."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from ...config import settings
from .models import RouteResult, Waypoint

logger = logging.getLogger(__name__)


def _canonical(value: float, precision: int) -> str:
    # Adding 0.0 folds -0.0 into 0.0 so both hemispheres of zero share a key.
    return f"{round(value, precision) + 0.0:.{precision}f}"


def route_signature(waypoints: Sequence[Waypoint], precision: int | None = None) -> str:
    """Build the cache key for an ordered waypoint list.

    Each coordinate is rounded to ``precision`` decimals and the pairs are
    joined in order, so identical sequences always produce the same key.
    """
    digits = settings.route_cache_precision if precision is None else precision
    return "|".join(
        f"{_canonical(point.lat, digits)},{_canonical(point.lng, digits)}" for point in waypoints
    )


class RouteCache(Protocol):
    """Key-value store for resolved routes."""

    def get(self, key: str) -> Optional[RouteResult]:
        ...

    def set(self, key: str, value: RouteResult) -> None:
        ...


class InMemoryRouteCache:
    """Unbounded session-scoped cache. Entries are write-once."""

    def __init__(self) -> None:
        self._entries: dict[str, RouteResult] = {}

    def get(self, key: str) -> Optional[RouteResult]:
        return self._entries.get(key)

    def set(self, key: str, value: RouteResult) -> None:
        if key in self._entries:
            logger.debug(f"Route cache already holds '{key}'; keeping first entry")
            return
        self._entries[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
