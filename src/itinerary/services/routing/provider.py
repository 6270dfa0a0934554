"""Shared plumbing for HTTP routing providers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, Sequence

import httpx

from ...config import settings
from ...errors import ErrorCode, ProviderError
from .models import ProviderRoute, Waypoint

logger = logging.getLogger(__name__)


class RouteProvider(Protocol):
    """A single external routing call."""

    name: str

    @property
    def configured(self) -> bool:
        ...

    async def fetch_route(self, waypoints: Sequence[Waypoint]) -> ProviderRoute:
        ...


class HTTPRouteClient:
    """Base class handling timeouts, retries and error translation."""

    name = "routing provider"

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.routing_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.routing_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.routing_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        # A fresh client per call keeps cancellation of one fetch from touching another.
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            transport=self._transport,
        )

    @staticmethod
    def _require_waypoints(waypoints: Sequence[Waypoint]) -> None:
        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required to compute a route.")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        attempt = 0
        async with self._get_client() as client:
            while True:
                try:
                    response = await client.request(method, url, **kwargs)
                    response.raise_for_status()
                    return response
                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    retryable = status_code >= 500 or status_code == 429
                    if not retryable or attempt >= self.max_retries:
                        raise ProviderError(
                            f"{self.name} request failed: HTTP {status_code} {e.response.text[:200]}",
                            status_code=status_code,
                        ) from e
                except httpx.TimeoutException as e:
                    if attempt >= self.max_retries:
                        raise ProviderError(
                            f"{self.name} request timed out after {attempt + 1} attempt(s)"
                        ) from e
                except httpx.HTTPError as e:
                    if attempt >= self.max_retries:
                        raise ProviderError(f"Failed to connect to {self.name}: {e}") from e
                attempt += 1
                wait_time = self.backoff_seconds * attempt
                logger.debug(
                    f"{self.name} request failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})"
                )
                await asyncio.sleep(wait_time)

    def _json(self, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.name} returned a non-JSON body",
                status_code=response.status_code,
                code=ErrorCode.PROVIDER_BAD_RESPONSE,
            ) from e
        if not isinstance(data, dict):
            raise ProviderError(
                f"{self.name} returned an unexpected payload",
                status_code=response.status_code,
                code=ErrorCode.PROVIDER_BAD_RESPONSE,
            )
        return data
