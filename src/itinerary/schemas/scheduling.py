"""Schedule item request/response schemas."""

from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import ScheduleItem

DAY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ScheduleItemModel(BaseModel):
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

    @classmethod
    def from_item(cls, item: ScheduleItem) -> ScheduleItemModel:
        return cls(**asdict(item))


class DayItemsResponse(BaseModel):
    plan_id: str
    day: str
    items: List[ScheduleItemModel]
    has_manual_order: bool
    is_reordering: bool = False


class ReorderPayload(BaseModel):
    dragged_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)


class ReorderResponse(DayItemsResponse):
    outcome: str = Field(..., description="'applied', 'superseded' or 'noop'.")


class CreateItemRequest(BaseModel):
    trip_id: str
    plan_id: str
    day: str = Field(..., pattern=DAY_PATTERN)
    title: str = Field(..., min_length=1)
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    location_id: Optional[str] = None
    notes: Optional[str] = None
    is_flexible: bool = False
    requested_by: Optional[str] = Field(default=None, description="User creating the item.")


class UpdateItemRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    location_id: Optional[str] = None
    notes: Optional[str] = None
    is_flexible: Optional[bool] = None
    requested_by: Optional[str] = None


class MoveItemRequest(BaseModel):
    target_plan_id: str
    target_day: Optional[str] = Field(default=None, pattern=DAY_PATTERN)
    requested_by: Optional[str] = None


class DeleteItemResponse(BaseModel):
    success: bool
    deleted_comments: int
