"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...errors import ErrorCode, ProviderError
from .models import ProviderRoute, Waypoint
from .provider import HTTPRouteClient

logger = logging.getLogger(__name__)


class OSRMClient(HTTPRouteClient):
    name = "OSRM"

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            timeout=timeout,
            max_retries=max_retries,
            backoff_seconds=backoff_seconds,
            transport=transport,
        )
        base = base_url or settings.osrm_base_url
        self.base_url = base.rstrip("/") if base else None
        self.profile = profile or settings.osrm_profile

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def fetch_route(self, waypoints: Sequence[Waypoint]) -> ProviderRoute:
        """Get route geometry between waypoints using the OSRM route endpoint.

        Returns the route path that follows streets, decoded from the polyline
        geometry, with the total distance (meters) and duration (seconds).
        """
        self._require_waypoints(waypoints)
        if not self.configured:
            raise ProviderError("OSRM base URL is not configured.")

        # OSRM route endpoint expects coordinates as "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{point.lng},{point.lat}" for point in waypoints)
        params = {
            "overview": "full",  # Get full geometry
            "geometries": "polyline",  # Use polyline encoding
            "steps": "false",  # Don't need step-by-step instructions
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        response = await self._send("GET", url, params=params)
        data = self._json(response)

        if data.get("code") != "Ok":
            error_msg = data.get("message", "Unknown OSRM route error")
            raise ProviderError(f"OSRM route request failed: {error_msg}", code=ErrorCode.PROVIDER_BAD_RESPONSE)

        routes = data.get("routes") or []
        if not routes:
            raise ProviderError("OSRM returned no route", code=ErrorCode.PROVIDER_BAD_RESPONSE)

        try:
            route = routes[0]
            path = tuple(Waypoint(lat=lat, lng=lng) for lat, lng in decode_polyline(route["geometry"]))
            distance = float(route["distance"])
            duration = float(route["duration"])
        except (KeyError, TypeError, ValueError, IndexError) as e:
            raise ProviderError(
                f"OSRM returned a malformed route: {e}",
                code=ErrorCode.PROVIDER_BAD_RESPONSE,
            ) from e

        if not path:
            raise ProviderError("OSRM returned an empty route geometry", code=ErrorCode.PROVIDER_BAD_RESPONSE)
        return ProviderRoute(path=path, distance_meters=distance, duration_seconds=duration)


def decode_polyline(polyline: str) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates.

    OSRM uses Google's polyline encoding format (precision 5) for route geometry.
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1f) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]

        coordinates.append((lat / 1e5, lon / 1e5))

    return coordinates
