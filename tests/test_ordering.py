import pytest

from itinerary.services.scheduling.ordering import (
    apply_order,
    array_move,
    has_manual_order,
    sort_by_order,
    sort_by_time,
)


def _ids(items):
    return [item.item_id for item in items]


def test_array_move_dragging_down_places_item_at_target_index():
    assert array_move(["X", "Y", "Z"], "X", "Z") == ["Y", "Z", "X"]


def test_array_move_dragging_up_places_item_before_target():
    assert array_move(["X", "Y", "Z"], "Z", "X") == ["Z", "X", "Y"]


def test_array_move_adjacent_swap():
    assert array_move(["A", "B", "C", "D"], "B", "C") == ["A", "C", "B", "D"]


def test_array_move_does_not_mutate_input():
    ids = ["X", "Y", "Z"]
    array_move(ids, "X", "Y")
    assert ids == ["X", "Y", "Z"]


def test_array_move_unknown_id_raises():
    with pytest.raises(ValueError):
        array_move(["X", "Y"], "X", "Q")


def test_sort_by_time_uses_start_time(xyz_items):
    assert _ids(sort_by_time(xyz_items)) == ["Z", "X", "Y"]


def test_sort_by_time_breaks_ties_by_previous_order(make_item):
    items = [
        make_item("late", 2, "09:00"),
        make_item("early", 0, "09:00"),
        make_item("first", 1, "07:30"),
    ]
    assert _ids(sort_by_time(items)) == ["first", "early", "late"]


def test_sort_by_order_puts_unordered_items_last(make_item):
    items = [make_item("a", None, "08:00"), make_item("b", 1, "09:00"), make_item("c", 0, "10:00")]
    assert _ids(sort_by_order(items)) == ["c", "b", "a"]


def test_has_manual_order(make_item, xyz_items):
    assert has_manual_order(xyz_items) is True

    chronological = [make_item("Z", 0, "08:00"), make_item("X", 1, "09:00"), make_item("Y", 2, "10:00")]
    assert has_manual_order(chronological) is False
    assert has_manual_order([]) is False


def test_apply_order_sets_dense_orders(xyz_items):
    reordered = apply_order(xyz_items, ["Y", "Z", "X"])

    assert _ids(reordered) == ["Y", "Z", "X"]
    assert [item.order for item in reordered] == [0, 1, 2]
    # originals are untouched
    assert [item.order for item in xyz_items] == [0, 1, 2]
    assert _ids(xyz_items) == ["X", "Y", "Z"]
