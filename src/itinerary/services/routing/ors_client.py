"""HTTP client for the OpenRouteService directions API."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...errors import ErrorCode, ProviderError
from .models import ProviderRoute, Waypoint
from .provider import HTTPRouteClient

logger = logging.getLogger(__name__)


class OpenRouteServiceClient(HTTPRouteClient):
    name = "OpenRouteService"

    def __init__(
        self,
        api_key: str | None = None,
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
        self.api_key = api_key if api_key is not None else settings.ors_api_key
        self.base_url = (base_url or settings.ors_base_url).rstrip("/")
        self.profile = profile or settings.ors_profile

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_route(self, waypoints: Sequence[Waypoint]) -> ProviderRoute:
        """Request a road route through the waypoints, in the given order.

        OpenRouteService takes coordinates as ``[lng, lat]`` and answers with a
        GeoJSON feature collection whose first feature holds the route line and
        a summary in meters and seconds.
        """
        self._require_waypoints(waypoints)
        if not self.configured:
            raise ProviderError("OpenRouteService API key is not configured.")

        url = f"{self.base_url}/v2/directions/{self.profile}/geojson"
        body = {"coordinates": [[point.lng, point.lat] for point in waypoints]}
        headers = {
            "Authorization": self.api_key,
            "Accept": "application/json, application/geo+json",
        }
        response = await self._send("POST", url, json=body, headers=headers)
        data = self._json(response)
        return self._parse(data)

    def _parse(self, data: dict) -> ProviderRoute:
        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderError(
                f"OpenRouteService error: {message or 'No route found'}",
                code=ErrorCode.PROVIDER_BAD_RESPONSE,
            )

        features = data.get("features") or []
        if not features:
            raise ProviderError("OpenRouteService returned no route", code=ErrorCode.PROVIDER_BAD_RESPONSE)

        try:
            feature = features[0]
            coordinates = feature["geometry"]["coordinates"]
            summary = feature["properties"].get("summary") or {}
            path = tuple(Waypoint(lat=float(lat), lng=float(lng)) for lng, lat, *_ in coordinates)
            distance = float(summary.get("distance", 0.0))
            duration = float(summary.get("duration", 0.0))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError(
                f"OpenRouteService returned a malformed route: {e}",
                code=ErrorCode.PROVIDER_BAD_RESPONSE,
            ) from e

        if not path:
            raise ProviderError("OpenRouteService returned an empty route", code=ErrorCode.PROVIDER_BAD_RESPONSE)
        return ProviderRoute(path=path, distance_meters=distance, duration_seconds=duration)
