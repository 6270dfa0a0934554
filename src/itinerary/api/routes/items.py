"""Schedule item CRUD endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...errors import ItineraryError
from ...persistence.repository import ScheduleRepository
from ...schemas.scheduling import (
    CreateItemRequest,
    DeleteItemResponse,
    MoveItemRequest,
    ScheduleItemModel,
    UpdateItemRequest,
)
from ...services.scheduling.reorder import ReorderCoordinator
from ..dependencies import get_coordinator, get_schedule_repository
from ..errors import to_http_exception

router = APIRouter(prefix="/items", tags=["items"])


@router.post("", response_model=ScheduleItemModel, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: CreateItemRequest,
    repository: ScheduleRepository = Depends(get_schedule_repository),
    coordinator: ReorderCoordinator = Depends(get_coordinator),
) -> ScheduleItemModel:
    """Append an activity to the end of its day."""
    try:
        item = await repository.create_item(
            trip_id=payload.trip_id,
            plan_id=payload.plan_id,
            day=payload.day,
            title=payload.title,
            start_time=payload.start_time,
            end_time=payload.end_time,
            location_id=payload.location_id,
            notes=payload.notes,
            is_flexible=payload.is_flexible,
            actor=payload.requested_by,
        )
        await coordinator.load(item.day, item.plan_id)
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    return ScheduleItemModel.from_item(item)


@router.patch("/{item_id}", response_model=ScheduleItemModel, status_code=status.HTTP_200_OK)
async def update_item(
    item_id: str,
    payload: UpdateItemRequest,
    repository: ScheduleRepository = Depends(get_schedule_repository),
    coordinator: ReorderCoordinator = Depends(get_coordinator),
) -> ScheduleItemModel:
    fields = payload.model_dump(exclude_unset=True, exclude={"requested_by"})
    try:
        item = await repository.update_item(item_id, actor=payload.requested_by, **fields)
        await coordinator.load(item.day, item.plan_id)
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    return ScheduleItemModel.from_item(item)


@router.delete("/{item_id}", response_model=DeleteItemResponse, status_code=status.HTTP_200_OK)
async def delete_item(
    item_id: str,
    repository: ScheduleRepository = Depends(get_schedule_repository),
    coordinator: ReorderCoordinator = Depends(get_coordinator),
) -> DeleteItemResponse:
    """Delete an activity together with its comments."""
    try:
        item = await repository.get_item(item_id)
        deleted_comments = await repository.delete_item(item_id)
        await coordinator.load(item.day, item.plan_id)
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    return DeleteItemResponse(success=True, deleted_comments=deleted_comments)


@router.post("/{item_id}/move", response_model=ScheduleItemModel, status_code=status.HTTP_200_OK)
async def move_item(
    item_id: str,
    payload: MoveItemRequest,
    repository: ScheduleRepository = Depends(get_schedule_repository),
    coordinator: ReorderCoordinator = Depends(get_coordinator),
) -> ScheduleItemModel:
    """Move an activity to another plan (and optionally another day), appending it there."""
    try:
        source = await repository.get_item(item_id)
        item = await repository.move_item(
            item_id, payload.target_plan_id, target_day=payload.target_day, actor=payload.requested_by
        )
        await coordinator.load(source.day, source.plan_id)
        await coordinator.load(item.day, item.plan_id)
    except ItineraryError as exc:
        raise to_http_exception(exc) from exc
    return ScheduleItemModel.from_item(item)
