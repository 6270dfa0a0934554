"""Debounced, cache-backed route resolution for a changing waypoint list."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from ...config import settings
from .models import RouteResult, Waypoint
from .scheduler import AsyncioScheduler, DelayedTask, Scheduler
from .service import Resolution, RouteResolver

logger = logging.getLogger(__name__)


class RouteState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    FETCHING = "fetching"
    RESOLVED = "resolved"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class RouteSnapshot:
    state: RouteState
    result: RouteResult
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.state in (RouteState.DEBOUNCING, RouteState.FETCHING)


RouteListener = Callable[[RouteSnapshot], None]


class RouteResolutionController:
    """Turn successive waypoint lists into one visible route result.

    Every input is identified by its waypoint signature. A new signature
    cancels the pending debounce timer and makes any in-flight fetch stale;
    a fetch only commits its result if its signature is still the target
    when it completes, so the last request wins regardless of arrival order.
    Returning to a signature whose fetch is still running joins that fetch
    instead of starting another one.

    RESOLVED and FALLBACK are resting states that hold until the next input.
    IDLE means there is no route (fewer than two waypoints, or closed).
    """

    def __init__(
        self,
        resolver: RouteResolver,
        scheduler: Scheduler | None = None,
        debounce_seconds: float | None = None,
    ) -> None:
        self._resolver = resolver
        self._scheduler = scheduler or AsyncioScheduler()
        self._debounce = debounce_seconds if debounce_seconds is not None else settings.route_debounce_seconds
        self._state = RouteState.IDLE
        self._result = RouteResult.empty()
        self._error: Optional[str] = None
        self._target: Optional[str] = None
        self._timer: Optional[DelayedTask] = None
        self._inflight: dict[str, asyncio.Task] = {}
        self._listeners: list[RouteListener] = []
        self._settled = asyncio.Event()
        self._settled.set()

    @property
    def state(self) -> RouteState:
        return self._state

    @property
    def result(self) -> RouteResult:
        return self._result

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def target_signature(self) -> Optional[str]:
        return self._target

    def snapshot(self) -> RouteSnapshot:
        return RouteSnapshot(state=self._state, result=self._result, error=self._error)

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update_waypoints(self, waypoints: Sequence[Waypoint]) -> None:
        points = tuple(waypoints)
        if len(points) < 2:
            self._supersede()
            self._target = None
            self._transition(RouteState.IDLE, result=RouteResult.empty(), error=None)
            return

        signature = self._resolver.signature(points)
        if signature == self._target:
            # Same route already pending or shown.
            return

        self._supersede()
        self._target = signature
        self._transition(RouteState.DEBOUNCING)
        self._timer = self._scheduler.schedule(
            self._debounce, lambda: self._on_debounce_elapsed(signature, points)
        )

    async def drain(self) -> None:
        """Wait until no fetch is in flight."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight.values()), return_exceptions=True)

    async def wait_until_settled(self) -> RouteSnapshot:
        """Wait until the route is neither debouncing nor fetching."""
        await self._settled.wait()
        return self.snapshot()

    async def aclose(self) -> None:
        """Cancel pending work and abort in-flight requests."""
        self._supersede()
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._target = None
        self._transition(RouteState.IDLE, result=RouteResult.empty(), error=None)
        self._listeners.clear()

    def _supersede(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_debounce_elapsed(self, signature: str, points: tuple[Waypoint, ...]) -> None:
        self._timer = None
        if signature != self._target:
            return

        self._transition(RouteState.FETCHING)
        cached = self._resolver.lookup(signature)
        if cached is not None:
            logger.debug(f"Route cache hit after debounce for '{signature}'")
            self._commit(Resolution(signature=signature, result=cached, from_cache=True))
            return

        if signature in self._inflight:
            # Commits on completion now that its signature is the target again.
            logger.debug(f"Joining in-flight route request for '{signature}'")
            return

        task = asyncio.get_running_loop().create_task(self._fetch(signature, points))
        self._inflight[signature] = task
        task.add_done_callback(lambda done: self._forget(signature, done))

    def _forget(self, signature: str, task: asyncio.Task) -> None:
        if self._inflight.get(signature) is task:
            del self._inflight[signature]

    async def _fetch(self, signature: str, points: tuple[Waypoint, ...]) -> None:
        try:
            resolution = await self._resolver.resolve(points, signature=signature)
        except Exception as e:
            logger.exception(f"Unexpected error resolving route: {e}. Using straight line fallback.")
            resolution = Resolution(signature=signature, result=RouteResult.straight_line(points), error=str(e))

        if signature != self._target:
            logger.debug(f"Discarding stale route for '{signature}'")
            return
        self._commit(resolution)

    def _commit(self, resolution: Resolution) -> None:
        state = RouteState.FALLBACK if resolution.result.is_fallback else RouteState.RESOLVED
        self._transition(state, result=resolution.result, error=resolution.error)

    def _transition(
        self,
        state: RouteState,
        result: RouteResult | None = None,
        error: Optional[str] = None,
    ) -> None:
        self._state = state
        if state in (RouteState.DEBOUNCING, RouteState.FETCHING):
            self._settled.clear()
        else:
            self._settled.set()
        if result is not None:
            self._result = result
            self._error = error
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
