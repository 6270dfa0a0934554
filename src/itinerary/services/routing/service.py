"""Route resolution: cache lookup, provider call and straight-line fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import Settings, settings
from ...errors import ProviderError
from .cache import InMemoryRouteCache, RouteCache, route_signature
from .models import RouteResult, Waypoint
from .ors_client import OpenRouteServiceClient
from .osrm_client import OSRMClient
from .provider import RouteProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Resolution:
    signature: str
    result: RouteResult
    error: Optional[str] = None
    from_cache: bool = False


def build_route_provider(config: Settings | None = None) -> RouteProvider:
    """Instantiate the routing client selected by configuration."""
    config = config or settings
    if config.routing_provider == "osrm":
        return OSRMClient(
            base_url=config.osrm_base_url,
            profile=config.osrm_profile,
            timeout=config.routing_timeout_seconds,
            max_retries=config.routing_max_retries,
            backoff_seconds=config.routing_backoff_seconds,
        )
    return OpenRouteServiceClient(
        api_key=config.ors_api_key,
        base_url=config.ors_base_url,
        profile=config.ors_profile,
        timeout=config.routing_timeout_seconds,
        max_retries=config.routing_max_retries,
        backoff_seconds=config.routing_backoff_seconds,
    )


class RouteResolver:
    """Resolve one ordered waypoint list to a route, without debouncing.

    Only provider successes are cached; fallback results are recomputed on the
    next request so a transient outage does not stick for the session.
    """

    def __init__(
        self,
        provider: RouteProvider,
        cache: RouteCache | None = None,
        precision: int | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache if cache is not None else InMemoryRouteCache()
        self.precision = precision

    def signature(self, waypoints: Sequence[Waypoint]) -> str:
        return route_signature(waypoints, self.precision)

    def lookup(self, signature: str) -> Optional[RouteResult]:
        return self.cache.get(signature)

    async def resolve(self, waypoints: Sequence[Waypoint], signature: str | None = None) -> Resolution:
        points = tuple(waypoints)
        key = signature if signature is not None else self.signature(points)
        if len(points) < 2:
            return Resolution(signature=key, result=RouteResult.empty())

        cached = self.lookup(key)
        if cached is not None:
            logger.debug(f"Route cache hit for {len(points)} waypoints")
            return Resolution(signature=key, result=cached, from_cache=True)

        if not self.provider.configured:
            logger.warning(f"{self.provider.name} is not configured. Using straight line fallback.")
            return Resolution(signature=key, result=RouteResult.straight_line(points))

        try:
            route = await self.provider.fetch_route(points)
        except ProviderError as e:
            logger.warning(f"{self.provider.name} route request failed: {e.message}. Using straight line fallback.")
            return Resolution(signature=key, result=RouteResult.straight_line(points), error=e.message)

        result = RouteResult.from_provider(route)
        self.cache.set(key, result)
        logger.info(
            f"Resolved route through {len(points)} waypoints: "
            f"{result.distance_km:.1f}km, {result.duration_min:.0f}min"
        )
        return Resolution(signature=key, result=result)
