"""Pure ordering helpers for a day's schedule items."""

from __future__ import annotations

import sys
from dataclasses import replace
from typing import Sequence

from ...models.domain import ScheduleItem


def _order_value(item: ScheduleItem) -> int:
    # Items without an order go last.
    return item.order if item.order is not None else sys.maxsize


def sort_by_order(items: Sequence[ScheduleItem]) -> list[ScheduleItem]:
    return sorted(items, key=_order_value)


def sort_by_time(items: Sequence[ScheduleItem]) -> list[ScheduleItem]:
    """Chronological order by start time; equal start times keep their previous order."""
    return sorted(items, key=lambda item: (item.start_time, _order_value(item)))


def has_manual_order(items: Sequence[ScheduleItem]) -> bool:
    """True when the stored order differs from the chronological order."""
    if not items:
        return False
    by_order = [item.item_id for item in sort_by_order(items)]
    by_time = [item.item_id for item in sort_by_time(items)]
    return by_order != by_time


def array_move(ordered_ids: Sequence[str], dragged_id: str, target_id: str) -> list[str]:
    """Move ``dragged_id`` to the position currently held by ``target_id``.

    The dragged id is removed and reinserted at the target's original index,
    so dragging down places it after the target and dragging up before it.
    """
    ids = list(ordered_ids)
    old_index = ids.index(dragged_id)
    new_index = ids.index(target_id)
    moved = ids.pop(old_index)
    ids.insert(new_index, moved)
    return ids


def apply_order(items: Sequence[ScheduleItem], ordered_ids: Sequence[str]) -> list[ScheduleItem]:
    """Set ``order`` to each id's index in ``ordered_ids`` and return the items sorted.

    This mirrors what the schedule store does on a reorder write. Items not
    listed keep their current order.
    """
    positions = {item_id: index for index, item_id in enumerate(ordered_ids)}
    updated = [
        replace(item, order=positions[item.item_id]) if item.item_id in positions else item for item in items
    ]
    return sort_by_order(updated)
