"""Optimistic reordering of a day's schedule items."""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from ...errors import ErrorCode, NotFoundError, PersistenceError, ValidationError
from ...models.domain import ReorderRequest, ScheduleItem
from ...persistence.repository import ScheduleRepository
from .ordering import apply_order, array_move, has_manual_order, sort_by_order, sort_by_time

logger = logging.getLogger(__name__)

OrderListener = Callable[[str, str, list[ScheduleItem]], None]


class ReorderOutcome(str, Enum):
    APPLIED = "applied"
    SUPERSEDED = "superseded"


@dataclass
class _DayOrder:
    """Confirmed order, optimistic overlay and the newest request id for one plan/day."""

    confirmed: list[ScheduleItem] = field(default_factory=list)
    optimistic: Optional[list[ScheduleItem]] = None
    latest_request_id: int = 0
    loaded: bool = False
    # One write in flight per plan/day, so the store sees requests in issue order.
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def visible(self) -> list[ScheduleItem]:
        return self.optimistic if self.optimistic is not None else self.confirmed


class ReorderCoordinator:
    """Publish reorders immediately and reconcile them with the schedule store.

    ``reorder`` and ``reset_to_time_order`` update the visible order before
    they return and hand back a task for the write. Each write carries a
    request id; only the newest request for a plan/day may clear or revert the
    optimistic order. Writes for one plan/day are sent one at a time, and a
    request that is already superseded when its turn comes is not sent at
    all, so a burst of edits sends the final list only and an older write can
    never land after a newer one.

    The returned task may be awaited for the outcome or dropped; failures are
    logged either way.
    """

    def __init__(self, repository: ScheduleRepository, actor: Optional[str] = None) -> None:
        self._repository = repository
        self._actor = actor
        self._days: dict[tuple[str, str], _DayOrder] = {}
        self._request_ids = itertools.count(1)
        self._listeners: list[OrderListener] = []
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, listener: OrderListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self, day: str, plan_id: str) -> list[ScheduleItem]:
        """Refresh the confirmed order from the schedule store."""
        items = await self._repository.list_items(plan_id, day)
        state = self._day(day, plan_id)
        state.confirmed = sort_by_order(items)
        state.loaded = True
        self._notify(day, plan_id)
        return self.items(day, plan_id)

    async def ensure_loaded(self, day: str, plan_id: str) -> list[ScheduleItem]:
        if not self._day(day, plan_id).loaded:
            return await self.load(day, plan_id)
        return self.items(day, plan_id)

    def items(self, day: str, plan_id: str) -> list[ScheduleItem]:
        """Items in display order: the optimistic order while a write is pending, else the confirmed one."""
        return list(self._day(day, plan_id).visible)

    def confirmed_items(self, day: str, plan_id: str) -> list[ScheduleItem]:
        return list(self._day(day, plan_id).confirmed)

    def is_reordering(self, day: str, plan_id: str) -> bool:
        return self._day(day, plan_id).optimistic is not None

    def has_manual_order(self, day: str, plan_id: str) -> bool:
        return has_manual_order(self._day(day, plan_id).confirmed)

    def reorder(
        self, day: str, plan_id: str, dragged_id: str, target_id: str
    ) -> Optional[asyncio.Task[ReorderOutcome]]:
        """Move ``dragged_id`` to ``target_id``'s position.

        Returns ``None`` when the item is dropped on itself.
        """
        visible = self._require_items(day, plan_id, "reorder")
        if dragged_id == target_id:
            logger.debug(f"Ignoring reorder of '{dragged_id}' onto itself")
            return None

        ids = [item.item_id for item in visible]
        for item_id in (dragged_id, target_id):
            if item_id not in ids:
                logger.warning(f"Cannot reorder: item '{item_id}' not found in plan '{plan_id}' on {day}")
                raise NotFoundError(f"Schedule item '{item_id}' not found in plan '{plan_id}' on {day}")

        return self._submit(day, plan_id, visible, array_move(ids, dragged_id, target_id))

    def reset_to_time_order(self, day: str, plan_id: str) -> asyncio.Task[ReorderOutcome]:
        """Reorder chronologically by start time, ties keeping their current order."""
        visible = self._require_items(day, plan_id, "reset order")
        ordered_ids = [item.item_id for item in sort_by_time(visible)]
        return self._submit(day, plan_id, visible, ordered_ids)

    async def drain(self) -> None:
        """Wait for every pending write to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _day(self, day: str, plan_id: str) -> _DayOrder:
        return self._days.setdefault((plan_id, day), _DayOrder())

    def _require_items(self, day: str, plan_id: str, action: str) -> list[ScheduleItem]:
        if not plan_id or not day:
            logger.error(f"Cannot {action}: missing plan or day")
            raise ValidationError(f"Cannot {action}: missing plan or day", code=ErrorCode.INVALID_REORDER)
        visible = self.items(day, plan_id)
        if not visible:
            logger.error(f"Cannot {action}: no schedule items for plan '{plan_id}' on {day}")
            raise ValidationError(
                f"Cannot {action}: no schedule items for plan '{plan_id}' on {day}",
                code=ErrorCode.INVALID_REORDER,
            )
        return visible

    def _submit(
        self, day: str, plan_id: str, visible: Sequence[ScheduleItem], ordered_ids: Sequence[str]
    ) -> asyncio.Task[ReorderOutcome]:
        state = self._day(day, plan_id)
        request_id = next(self._request_ids)
        state.latest_request_id = request_id
        state.optimistic = apply_order(visible, ordered_ids)
        self._notify(day, plan_id)

        request = ReorderRequest(plan_id=plan_id, day=day, ordered_item_ids=tuple(ordered_ids))
        task = asyncio.get_running_loop().create_task(self._persist(state, request_id, request))
        self._tasks.add(task)
        task.add_done_callback(self._on_write_done)
        return task

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            # Already logged in _persist; marks the failure as retrieved for callers that drop the task.
            task.exception()

    async def _persist(self, state: _DayOrder, request_id: int, request: ReorderRequest) -> ReorderOutcome:
        try:
            async with state.write_lock:
                return await self._send(state, request_id, request)
        except asyncio.CancelledError:
            self._revert(state, request_id, request)
            logger.warning(
                f"Persisting order for plan '{request.plan_id}' on {request.day} was cancelled. "
                f"Restored last confirmed order."
            )
            raise

    def _revert(self, state: _DayOrder, request_id: int, request: ReorderRequest) -> None:
        if request_id == state.latest_request_id:
            state.optimistic = None
            self._notify(request.day, request.plan_id)

    async def _send(self, state: _DayOrder, request_id: int, request: ReorderRequest) -> ReorderOutcome:
        if request_id != state.latest_request_id:
            logger.debug(f"Reorder request {request_id} superseded before it was sent")
            return ReorderOutcome.SUPERSEDED

        try:
            await self._repository.persist_order(
                request.plan_id, request.day, list(request.ordered_item_ids), actor=self._actor
            )
        except Exception as e:
            self._revert(state, request_id, request)
            logger.error(
                f"Failed to persist order for plan '{request.plan_id}' on {request.day}: {e}. "
                f"Restored last confirmed order."
            )
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(
                f"Failed to persist order for plan '{request.plan_id}' on {request.day}: {e}"
            ) from e

        # The store sets order = index for every listed id.
        state.confirmed = apply_order(state.confirmed, request.ordered_item_ids)
        if request_id != state.latest_request_id:
            logger.debug(f"Reorder request {request_id} persisted but a newer order is pending")
            return ReorderOutcome.SUPERSEDED

        state.optimistic = None
        self._notify(request.day, request.plan_id)
        logger.info(
            f"Persisted order of {len(request.ordered_item_ids)} items for plan '{request.plan_id}' on {request.day}"
        )
        return ReorderOutcome.APPLIED

    def _notify(self, day: str, plan_id: str) -> None:
        items = self.items(day, plan_id)
        for listener in list(self._listeners):
            listener(plan_id, day, items)
