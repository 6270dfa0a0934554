"""Day itinerary endpoints: ordered items, reordering and the day route."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...errors import ItineraryError
from ...schemas.routing import DayRouteResponse
from ...schemas.scheduling import DayItemsResponse, ReorderPayload, ReorderResponse, ScheduleItemModel
from ...services.routing.day_route import DayRouteRegistry
from ...services.scheduling.reorder import ReorderCoordinator
from ..dependencies import get_coordinator, get_day_routes
from ..errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans/{plan_id}/days/{day}", tags=["schedule"])


def _day_response(coordinator: ReorderCoordinator, plan_id: str, day: str) -> dict:
    return {
        "plan_id": plan_id,
        "day": day,
        "items": [ScheduleItemModel.from_item(item) for item in coordinator.items(day, plan_id)],
        "has_manual_order": coordinator.has_manual_order(day, plan_id),
        "is_reordering": coordinator.is_reordering(day, plan_id),
    }


@router.get("/items", response_model=DayItemsResponse, status_code=status.HTTP_200_OK)
async def list_day_items(
    plan_id: str,
    day: str,
    coordinator: ReorderCoordinator = Depends(get_coordinator),
) -> DayItemsResponse:
    try:
        await coordinator.load(day, plan_id)
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    return DayItemsResponse(**_day_response(coordinator, plan_id, day))


@router.post("/reorder", response_model=ReorderResponse, status_code=status.HTTP_200_OK)
async def reorder_items(
    plan_id: str,
    day: str,
    payload: ReorderPayload,
    coordinator: ReorderCoordinator = Depends(get_coordinator),
) -> ReorderResponse:
    """Move ``dragged_id`` into ``target_id``'s position and persist the new order."""
    try:
        await coordinator.ensure_loaded(day, plan_id)
        task = coordinator.reorder(day, plan_id, payload.dragged_id, payload.target_id)
        outcome = (await task).value if task is not None else "noop"
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    return ReorderResponse(outcome=outcome, **_day_response(coordinator, plan_id, day))


@router.post("/reset-time-order", response_model=ReorderResponse, status_code=status.HTTP_200_OK)
async def reset_time_order(
    plan_id: str,
    day: str,
    coordinator: ReorderCoordinator = Depends(get_coordinator),
) -> ReorderResponse:
    """Put the day back into chronological order by start time."""
    try:
        await coordinator.ensure_loaded(day, plan_id)
        outcome = await coordinator.reset_to_time_order(day, plan_id)
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    return ReorderResponse(outcome=outcome.value, **_day_response(coordinator, plan_id, day))


@router.get("/route", response_model=DayRouteResponse, status_code=status.HTTP_200_OK)
async def day_route(
    plan_id: str,
    day: str,
    wait: bool = Query(False, description="Wait for the pending debounce and fetch to finish."),
    day_routes: DayRouteRegistry = Depends(get_day_routes),
) -> DayRouteResponse:
    """Current travel route through the day's stops in their visible order."""
    try:
        route = await day_routes.get(plan_id, day)
        snapshot = await route.wait_until_settled() if wait else route.route
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:
        logger.exception(f"Error resolving route for plan '{plan_id}' on {day}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to resolve day route: {str(exc)}",
        ) from exc
    return DayRouteResponse.from_snapshot(plan_id, day, route.waypoints, snapshot)
